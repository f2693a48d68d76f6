"""
Profile endpoints for the authenticated user.
"""

from fastapi import APIRouter, Depends, status, Response
from estate_api.models.user import User
from estate_api.services.user import UserService
from estate_api.schemas.user import UserUpdate, UserResponse, PasswordChangeRequest
from estate_api.schemas.error import error_responses
from estate_api.utils.dependencies import get_current_active_user, get_user_service


router = APIRouter(prefix="/users", tags=["Users"])


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Get own profile",
    responses=error_responses(401)
)
async def get_profile(
    current_user: User = Depends(get_current_active_user)
) -> UserResponse:
    return UserResponse.model_validate(current_user.to_dict())


@router.put(
    "/me",
    response_model=UserResponse,
    summary="Update own profile",
    responses=error_responses(401, 409, 422)
)
async def update_profile(
    update_data: UserUpdate,
    current_user: User = Depends(get_current_active_user),
    user_service: UserService = Depends(get_user_service)
) -> UserResponse:
    user = await user_service.update_profile(update_data, current_user)
    return UserResponse.model_validate(user.to_dict())


@router.put(
    "/me/password",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Change password",
    description="Requires the current password. The new password must differ from it.",
    responses=error_responses(401, 422)
)
async def change_password(
    password_data: PasswordChangeRequest,
    current_user: User = Depends(get_current_active_user),
    user_service: UserService = Depends(get_user_service)
) -> Response:
    await user_service.change_password(password_data, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

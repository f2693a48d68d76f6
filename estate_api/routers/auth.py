"""
Authentication API endpoints for registration, login, token refresh and the current user.
"""

from fastapi import APIRouter, Depends, status, Response
from estate_api.models.user import User
from estate_api.services.auth import AuthService
from estate_api.schemas.auth import (
    LoginRequest,
    LoginResponse,
    RefreshTokenRequest,
    AccessTokenResponse,
    CurrentUserResponse
)
from estate_api.schemas.user import UserCreate, UserResponse
from estate_api.schemas.error import error_responses
from estate_api.utils.dependencies import (
    get_auth_service,
    get_current_active_user
)
from estate_api.utils.exceptions import (
    APIException,
    InvalidCredentialsError,
    InvalidTokenError
)
from estate_api.config import settings
import logging

logger = logging.getLogger(__name__)


router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
    description="Create a user or agent account. Admin accounts cannot be self-registered.",
    responses=error_responses(409, 422)
)
async def register(
    user_data: UserCreate,
    auth_service: AuthService = Depends(get_auth_service)
) -> UserResponse:
    user = await auth_service.register(user_data)
    return UserResponse.model_validate(user.to_dict())


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    summary="User login",
    description="Authenticate user with email and password, returns JWT tokens",
    responses=error_responses(401, 422)
)
async def login(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> LoginResponse:
    """
    Authenticate user and return JWT tokens.

    Raises:
        InvalidCredentialsError: If credentials are invalid
        InactiveUserError: If user account is inactive
    """
    try:
        user, access_token, refresh_token = await auth_service.login(
            email=login_data.email,
            password=login_data.password
        )
    except APIException:
        raise
    except Exception as e:
        logger.error(f"Login failed for {login_data.email}: {str(e)}")
        raise InvalidCredentialsError()

    return LoginResponse(
        user=CurrentUserResponse.model_validate(user.to_dict()),
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60
    )


@router.post(
    "/refresh",
    response_model=AccessTokenResponse,
    status_code=status.HTTP_200_OK,
    summary="Refresh access token",
    description="Generate new access token using refresh token",
    responses=error_responses(401)
)
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> AccessTokenResponse:
    try:
        access_token = await auth_service.refresh_access_token(
            refresh_token=refresh_data.refresh_token
        )
    except APIException:
        raise
    except Exception:
        raise InvalidTokenError("Failed to refresh token")

    return AccessTokenResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60
    )


@router.get(
    "/me",
    response_model=CurrentUserResponse,
    status_code=status.HTTP_200_OK,
    summary="Get current user",
    description="Get current authenticated user information with role permissions",
    responses=error_responses(401)
)
async def get_current_user_info(
    current_user: User = Depends(get_current_active_user)
) -> CurrentUserResponse:
    return CurrentUserResponse.model_validate(current_user.to_dict())


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="User logout",
    description="Tokens are stateless; the client discards them.",
    responses=error_responses(401)
)
async def logout(
    current_user: User = Depends(get_current_active_user)
) -> Response:
    logger.info(f"User {current_user.id} logged out")
    return Response(status_code=status.HTTP_204_NO_CONTENT)

"""
Favorite (bookmarked) properties of the authenticated user.
"""

from fastapi import APIRouter, Depends, status, Query, Path, Response
from uuid import UUID
import math

from estate_api.models.user import User
from estate_api.services.user import UserService
from estate_api.schemas.property import PropertyResponse, PropertyListResponse
from estate_api.schemas.error import error_responses
from estate_api.utils.dependencies import get_current_active_user, get_user_service


router = APIRouter(prefix="/favorites", tags=["Favorites"])


@router.get(
    "",
    response_model=PropertyListResponse,
    summary="List favorite properties",
    responses=error_responses(401)
)
async def list_favorites(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_active_user),
    user_service: UserService = Depends(get_user_service)
) -> PropertyListResponse:
    properties, total_count = await user_service.list_favorites(current_user, page, page_size)

    total_pages = math.ceil(total_count / page_size) if total_count > 0 else 1

    return PropertyListResponse(
        properties=[PropertyResponse.model_validate(prop.to_dict()) for prop in properties],
        total=total_count,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_previous=page > 1
    )


@router.post(
    "/{property_id}",
    status_code=status.HTTP_201_CREATED,
    summary="Add property to favorites",
    responses=error_responses(401, 404, 422)
)
async def add_favorite(
    property_id: UUID = Path(..., description="Property unique identifier"),
    current_user: User = Depends(get_current_active_user),
    user_service: UserService = Depends(get_user_service)
) -> dict:
    favorite = await user_service.add_favorite(property_id, current_user)
    return {"property_id": str(favorite.property_id), "message": "Property added to favorites"}


@router.delete(
    "/{property_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove property from favorites",
    responses=error_responses(401, 422)
)
async def remove_favorite(
    property_id: UUID = Path(..., description="Property unique identifier"),
    current_user: User = Depends(get_current_active_user),
    user_service: UserService = Depends(get_user_service)
) -> Response:
    await user_service.remove_favorite(property_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

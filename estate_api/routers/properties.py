"""
Property API endpoints for listing, search, availability quotes and management.
"""

from fastapi import APIRouter, Depends, status, Query, Path, Response
from typing import Optional, List
from datetime import date
from decimal import Decimal
from uuid import UUID
import math

from estate_api.models.user import User
from estate_api.models.property import PropertyType, PropertyStatus
from estate_api.services.property import PropertyService
from estate_api.schemas.property import (
    PropertyCreate,
    PropertyUpdate,
    PropertyResponse,
    PropertyListResponse,
    PropertySearchParams,
    AvailabilityQuoteResponse
)
from estate_api.schemas.error import error_responses
from estate_api.utils.dependencies import (
    get_current_active_user,
    get_current_agent_user,
    get_property_service
)


router = APIRouter(prefix="/properties", tags=["Properties"])


@router.get(
    "",
    response_model=PropertyListResponse,
    summary="List properties with search and filtering",
    responses=error_responses(422)
)
async def list_properties(
    search: Optional[str] = Query(None, description="Search in title, description and address"),
    city: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    property_type: Optional[PropertyType] = Query(None),
    status_filter: Optional[PropertyStatus] = Query(None, alias="status"),

    min_price: Optional[Decimal] = Query(None, ge=0, description="Minimum nightly price"),
    max_price: Optional[Decimal] = Query(None, ge=0, description="Maximum nightly price"),
    bedrooms: Optional[int] = Query(None, ge=0, description="Minimum number of bedrooms"),
    bathrooms: Optional[int] = Query(None, ge=0, description="Minimum number of bathrooms"),
    min_area: Optional[Decimal] = Query(None, ge=0),
    max_area: Optional[Decimal] = Query(None, ge=0),
    min_rating: Optional[Decimal] = Query(None, ge=0, le=5),

    page: int = Query(1, ge=1, description="Page number (starts from 1)"),
    page_size: int = Query(10, ge=1, le=100, description="Number of properties per page"),
    sort_by: str = Query("created_at", description="Sort field"),
    sort_order: str = Query("desc", description="Sort order (asc/desc)"),

    property_service: PropertyService = Depends(get_property_service)
) -> PropertyListResponse:
    """
    Get paginated list of properties. Public endpoint.
    """
    search_params = PropertySearchParams(
        search=search,
        city=city,
        state=state,
        property_type=property_type,
        status=status_filter,
        min_price=min_price,
        max_price=max_price,
        bedrooms=bedrooms,
        bathrooms=bathrooms,
        min_area=min_area,
        max_area=max_area,
        min_rating=min_rating,
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        sort_order=sort_order
    )

    properties, total_count = await property_service.search_properties(search_params)

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


@router.get(
    "/featured",
    response_model=List[PropertyResponse],
    summary="Get featured properties"
)
async def get_featured_properties(
    limit: int = Query(10, ge=1, le=100),
    property_service: PropertyService = Depends(get_property_service)
) -> List[PropertyResponse]:
    properties = await property_service.get_featured_properties(limit)
    return [PropertyResponse.model_validate(prop.to_dict()) for prop in properties]


@router.get(
    "/{property_id}",
    response_model=PropertyResponse,
    summary="Get property by ID",
    responses=error_responses(404)
)
async def get_property(
    property_id: UUID = Path(..., description="Property unique identifier"),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.get_property(property_id)
    return PropertyResponse.model_validate(property_obj.to_dict())


@router.get(
    "/{property_id}/availability",
    response_model=AvailabilityQuoteResponse,
    summary="Check availability and price for a stay",
    description="Returns whether the property is free for [check_in, check_out) and the total price.",
    responses=error_responses(404, 422)
)
async def check_availability(
    property_id: UUID = Path(..., description="Property unique identifier"),
    check_in: date = Query(..., description="First night of the stay"),
    check_out: date = Query(..., description="Departure day"),
    property_service: PropertyService = Depends(get_property_service)
) -> AvailabilityQuoteResponse:
    quote = await property_service.quote_stay(property_id, check_in, check_out)
    return AvailabilityQuoteResponse(**quote)


@router.post(
    "",
    response_model=PropertyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create new property",
    description="Create a new property listing. Requires agent or admin role.",
    responses=error_responses(401, 403, 422)
)
async def create_property(
    property_data: PropertyCreate,
    current_user: User = Depends(get_current_agent_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.create_property(property_data, current_user)
    return PropertyResponse.model_validate(property_obj.to_dict())


@router.put(
    "/{property_id}",
    response_model=PropertyResponse,
    summary="Update property",
    description="Update a property. Only the owner or an admin may do this.",
    responses=error_responses(401, 403, 404, 422)
)
async def update_property(
    property_data: PropertyUpdate,
    property_id: UUID = Path(..., description="Property unique identifier"),
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> PropertyResponse:
    property_obj = await property_service.update_property(property_id, property_data, current_user)
    return PropertyResponse.model_validate(property_obj.to_dict())


@router.delete(
    "/{property_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete property",
    description="Soft delete a property without upcoming reservations. Owner or admin only.",
    responses=error_responses(400, 401, 403, 404)
)
async def delete_property(
    property_id: UUID = Path(..., description="Property unique identifier"),
    current_user: User = Depends(get_current_active_user),
    property_service: PropertyService = Depends(get_property_service)
) -> Response:
    await property_service.delete_property(property_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

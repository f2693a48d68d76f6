"""
Reservation API endpoints: booking, listing, modification and status changes.
"""

from fastapi import APIRouter, Depends, status, Query, Path, Response, Body
from typing import Optional
from datetime import date
from uuid import UUID
import math

from estate_api.models.user import User
from estate_api.models.reservation import ReservationStatus, utc_today
from estate_api.services.reservation import ReservationService
from estate_api.schemas.reservation import (
    ReservationCreate,
    ReservationUpdate,
    ReservationStatusUpdate,
    ReservationResponse,
    ReservationListResponse,
    ReservationSearchParams,
    CompleteFinishedResponse
)
from estate_api.schemas.error import error_responses
from estate_api.utils.dependencies import (
    get_current_active_user,
    get_current_admin_user,
    get_reservation_service
)


router = APIRouter(prefix="/reservations", tags=["Reservations"])


@router.get(
    "",
    response_model=ReservationListResponse,
    summary="List reservations",
    description="Admins see every reservation. Other users see their own bookings and bookings of properties they own.",
    responses=error_responses(401, 422)
)
async def list_reservations(
    status_filter: Optional[ReservationStatus] = Query(None, alias="status"),
    property_id: Optional[UUID] = Query(None),
    check_in_from: Optional[date] = Query(None),
    check_out_to: Optional[date] = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_active_user),
    reservation_service: ReservationService = Depends(get_reservation_service)
) -> ReservationListResponse:
    params = ReservationSearchParams(
        status=status_filter,
        property_id=property_id,
        check_in_from=check_in_from,
        check_out_to=check_out_to,
        page=page,
        page_size=page_size
    )

    reservations, total_count = await reservation_service.list_reservations(params, current_user)

    total_pages = math.ceil(total_count / page_size) if total_count > 0 else 1

    return ReservationListResponse(
        reservations=[ReservationResponse.model_validate(r.to_dict()) for r in reservations],
        total=total_count,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        has_next=page < total_pages,
        has_previous=page > 1
    )


@router.post(
    "",
    response_model=ReservationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Book a property",
    description=(
        "Create a pending reservation for [check_in_date, check_out_date). "
        "Fails with PROPERTY_NOT_AVAILABLE when the dates overlap an existing booking."
    ),
    responses=error_responses(401, 404, 409, 422)
)
async def create_reservation(
    reservation_data: ReservationCreate,
    current_user: User = Depends(get_current_active_user),
    reservation_service: ReservationService = Depends(get_reservation_service)
) -> ReservationResponse:
    reservation = await reservation_service.create_reservation(reservation_data, current_user)
    return ReservationResponse.model_validate(reservation.to_dict())


@router.post(
    "/complete-finished",
    response_model=CompleteFinishedResponse,
    summary="Complete finished stays",
    description="Mark confirmed reservations whose check-out date has passed as completed. Admin only.",
    responses=error_responses(401, 403)
)
async def complete_finished_reservations(
    today: Optional[date] = Body(None, embed=True, description="Reference date, defaults to the current UTC day"),
    current_user: User = Depends(get_current_admin_user),
    reservation_service: ReservationService = Depends(get_reservation_service)
) -> CompleteFinishedResponse:
    as_of = today or utc_today()
    completed = await reservation_service.complete_finished_reservations(as_of, current_user)
    return CompleteFinishedResponse(completed=completed, as_of=as_of)


@router.get(
    "/{reservation_id}",
    response_model=ReservationResponse,
    summary="Get reservation",
    responses=error_responses(401, 403, 404)
)
async def get_reservation(
    reservation_id: UUID = Path(..., description="Reservation unique identifier"),
    current_user: User = Depends(get_current_active_user),
    reservation_service: ReservationService = Depends(get_reservation_service)
) -> ReservationResponse:
    reservation = await reservation_service.get_reservation(reservation_id, current_user)
    return ReservationResponse.model_validate(reservation.to_dict())


@router.put(
    "/{reservation_id}",
    response_model=ReservationResponse,
    summary="Modify a pending reservation",
    description=(
        "Either date may be sent alone and keeps the other stored date. Changing dates re-checks "
        "availability, excluding this reservation, and recomputes the price."
    ),
    responses=error_responses(401, 403, 404, 409, 422)
)
async def update_reservation(
    update_data: ReservationUpdate,
    reservation_id: UUID = Path(..., description="Reservation unique identifier"),
    current_user: User = Depends(get_current_active_user),
    reservation_service: ReservationService = Depends(get_reservation_service)
) -> ReservationResponse:
    reservation = await reservation_service.update_reservation(reservation_id, update_data, current_user)
    return ReservationResponse.model_validate(reservation.to_dict())


@router.patch(
    "/{reservation_id}/status",
    response_model=ReservationResponse,
    summary="Change reservation status",
    description="Guests may cancel. Property owners and admins may confirm, complete or cancel.",
    responses=error_responses(401, 403, 404, 422)
)
async def change_reservation_status(
    status_data: ReservationStatusUpdate,
    reservation_id: UUID = Path(..., description="Reservation unique identifier"),
    current_user: User = Depends(get_current_active_user),
    reservation_service: ReservationService = Depends(get_reservation_service)
) -> ReservationResponse:
    reservation = await reservation_service.change_status(reservation_id, status_data, current_user)
    return ReservationResponse.model_validate(reservation.to_dict())


@router.delete(
    "/{reservation_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a pending reservation",
    responses=error_responses(401, 403, 404, 422)
)
async def delete_reservation(
    reservation_id: UUID = Path(..., description="Reservation unique identifier"),
    current_user: User = Depends(get_current_active_user),
    reservation_service: ReservationService = Depends(get_reservation_service)
) -> Response:
    await reservation_service.delete_reservation(reservation_id, current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

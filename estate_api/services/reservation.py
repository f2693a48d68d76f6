"""
Reservation service implementing booking, editing and the reservation lifecycle.

Bookings and date changes run check-and-write in one transaction that first
locks the property row, so two requests for the same property cannot both pass
the availability check.
"""

from typing import Optional, List, Tuple, Callable, Awaitable
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError, DBAPIError
from datetime import date, datetime, timezone
import asyncio
import uuid
import logging

from estate_api.config import settings
from estate_api.models.reservation import Reservation, ReservationStatus, utc_today
from estate_api.models.user import User
from estate_api.repositories.property import PropertyRepository
from estate_api.repositories.reservation import ReservationRepository, ReservationSearchFilters
from estate_api.schemas.reservation import (
    ReservationCreate,
    ReservationUpdate,
    ReservationStatusUpdate,
    ReservationSearchParams
)
from estate_api.services.availability import (
    AvailabilityService,
    calculate_total_price,
    validate_stay_dates
)
from estate_api.utils.exceptions import (
    APIException,
    ConflictError,
    ForbiddenError,
    InsufficientPermissionsError,
    PropertyNotAvailableError,
    PropertyNotFoundError,
    ReservationNotFoundError,
    ReservationStateError,
    ValidationError
)

logger = logging.getLogger(__name__)

OVERLAP_CONSTRAINT = "ex_reservations_no_overlap"

# Optional reservation fields a guest may clear with an explicit null
CLEARABLE_FIELDS = ("special_requests",)


def _is_overlap_violation(error: IntegrityError) -> bool:
    return OVERLAP_CONSTRAINT in str(error.orig) or getattr(error.orig, "sqlstate", None) == "23P01"


class ReservationService:
    """
    Reservation service handling bookings and status transitions.
    The acting user is always passed in explicitly.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.reservation_repo = ReservationRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.availability = AvailabilityService(db_session)

    async def _run_locked(self, operation: Callable[[], Awaitable[Reservation]], description: str) -> Reservation:
        """
        Run a check-and-write operation in its own transaction and commit it.

        Lock waits that time out, deadlocks and serialization failures roll
        back and retry the whole operation. Rolling back expires every object
        in the session, so ``operation`` must reload what it needs.

        Raises:
            PropertyNotAvailableError: If the database rejects an overlapping reservation
            ConflictError: If the operation keeps failing after all retries
        """
        max_attempts = settings.booking_max_retries

        for attempt in range(1, max_attempts + 1):
            try:
                reservation = await operation()
                await self.db.commit()
                await self.db.refresh(reservation)
                return reservation
            except APIException:
                await self.db.rollback()
                raise
            except IntegrityError as e:
                await self.db.rollback()
                if _is_overlap_violation(e):
                    logger.warning(f"Overlap constraint rejected {description}")
                    raise PropertyNotAvailableError()
                raise
            except DBAPIError as e:
                await self.db.rollback()
                logger.warning(f"Attempt {attempt}/{max_attempts} to {description} failed: {e}")
                if attempt == max_attempts:
                    raise ConflictError("The property is busy, please retry the request")
                await asyncio.sleep(settings.booking_retry_backoff_seconds * attempt)

        raise ConflictError("The property is busy, please retry the request")

    async def create_reservation(self, reservation_data: ReservationCreate, current_user: User) -> Reservation:
        """
        Book a property for a date range.

        Args:
            reservation_data: Validated booking request
            current_user: Guest making the booking

        Returns:
            The new pending reservation with its total price

        Raises:
            PropertyNotFoundError: If the property does not exist
            PropertyNotAvailableError: If the property is not bookable or the dates are taken
            ValidationError: If the dates are invalid
        """
        if not current_user.is_active:
            raise ForbiddenError("Inactive users cannot make reservations")

        user_id = current_user.id
        property_id = reservation_data.property_id
        check_in = reservation_data.check_in_date
        check_out = reservation_data.check_out_date

        validate_stay_dates(check_in, check_out)
        if check_in <= utc_today():
            raise ValidationError(
                "Check-in date must be after today",
                field_errors=[{"field": "check_in_date", "message": "Must be after today"}]
            )

        if not await self.property_repo.exists(property_id):
            raise PropertyNotFoundError(str(property_id))

        async def book() -> Reservation:
            property_obj = await self.property_repo.lock_for_booking(property_id)
            if property_obj is None:
                raise PropertyNotFoundError(str(property_id))

            if not property_obj.is_bookable:
                raise PropertyNotAvailableError("Property is not available for booking")

            if not await self.availability.is_available(property_id, check_in, check_out):
                raise PropertyNotAvailableError()

            return await self.reservation_repo.create({
                "property_id": property_id,
                "user_id": user_id,
                "check_in_date": check_in,
                "check_out_date": check_out,
                "guests": reservation_data.guests,
                "special_requests": reservation_data.special_requests,
                "status": ReservationStatus.PENDING,
                "total_price": calculate_total_price(property_obj.price, check_in, check_out),
            }, commit=False)

        try:
            reservation = await self._run_locked(book, f"book property {property_id}")
        except PropertyNotAvailableError:
            logger.warning(
                f"Reservation rejected for property {property_id} from {check_in} to {check_out} (user {user_id})"
            )
            raise

        logger.info(
            f"Reservation {reservation.id} created for property {property_id} "
            f"from {check_in} to {check_out}, total {reservation.total_price}"
        )
        return reservation

    async def _get_reservation_or_404(self, reservation_id: uuid.UUID) -> Reservation:
        reservation = await self.reservation_repo.get_fresh(reservation_id)
        if not reservation:
            raise ReservationNotFoundError(str(reservation_id))
        return reservation

    def _is_property_owner(self, reservation: Reservation, user: User) -> bool:
        return reservation.property_rel is not None and reservation.property_rel.owner_id == user.id

    def _can_view(self, reservation: Reservation, user: User) -> bool:
        return user.is_admin or reservation.user_id == user.id or self._is_property_owner(reservation, user)

    async def get_reservation(self, reservation_id: uuid.UUID, current_user: User) -> Reservation:
        """
        Get a reservation visible to the current user.

        Raises:
            ReservationNotFoundError: If the reservation does not exist
            InsufficientPermissionsError: If the user is not the guest, the property owner or an admin
        """
        reservation = await self._get_reservation_or_404(reservation_id)

        if not self._can_view(reservation, current_user):
            raise InsufficientPermissionsError("view this reservation")

        return reservation

    async def list_reservations(
        self,
        params: ReservationSearchParams,
        current_user: User
    ) -> Tuple[List[Reservation], int]:
        """Admins see every reservation, everybody else their own and those on properties they own."""
        filters = ReservationSearchFilters(
            status=params.status,
            property_id=params.property_id,
            check_in_from=params.check_in_from,
            check_out_to=params.check_out_to
        )
        skip = (params.page - 1) * params.page_size

        return await self.reservation_repo.search_reservations(
            filters,
            skip=skip,
            limit=params.page_size,
            visible_to_user_id=None if current_user.is_admin else current_user.id
        )

    async def update_reservation(
        self,
        reservation_id: uuid.UUID,
        update_data: ReservationUpdate,
        current_user: User
    ) -> Reservation:
        """
        Edit a pending reservation.

        A date sent alone keeps the other stored date. The merged range is
        checked against other reservations under the property lock, ignoring
        the reservation itself, and the price is recomputed.

        Raises:
            InsufficientPermissionsError: If the user is neither the guest nor an admin
            ReservationStateError: If the reservation is no longer pending
            PropertyNotAvailableError: If the new dates are taken
            ValidationError: If nothing changes or the merged range has no nights
        """
        reservation = await self._get_reservation_or_404(reservation_id)

        if not (current_user.is_admin or reservation.user_id == current_user.id):
            raise InsufficientPermissionsError("update this reservation")

        if reservation.status != ReservationStatus.PENDING:
            raise ReservationStateError("Only pending reservations can be updated")

        changes = {
            field: value
            for field, value in update_data.model_dump(exclude_unset=True).items()
            if value is not None or field in CLEARABLE_FIELDS
        }
        if not changes:
            raise ValidationError("No valid fields provided for update")

        property_id = reservation.property_id

        async def edit() -> Reservation:
            property_obj = await self.property_repo.lock_for_booking(property_id)
            if property_obj is None:
                raise PropertyNotFoundError(str(property_id))

            current = await self.reservation_repo.get_fresh(reservation_id)
            if current is None:
                raise ReservationNotFoundError(str(reservation_id))
            if current.status != ReservationStatus.PENDING:
                raise ReservationStateError("Only pending reservations can be updated")

            values = dict(changes)
            if update_data.changes_dates:
                check_in = update_data.check_in_date or current.check_in_date
                check_out = update_data.check_out_date or current.check_out_date
                validate_stay_dates(check_in, check_out)

                if not await self.availability.is_available(
                    property_id, check_in, check_out, exclude_reservation_id=reservation_id
                ):
                    raise PropertyNotAvailableError()

                values["total_price"] = calculate_total_price(property_obj.price, check_in, check_out)

            # The repository skips None values
            for field in CLEARABLE_FIELDS:
                if field in values and values[field] is None:
                    setattr(current, field, None)

            return await self.reservation_repo.update(current, values, commit=False)

        reservation = await self._run_locked(edit, f"update reservation {reservation_id}")

        if update_data.changes_dates:
            logger.info(
                f"Reservation {reservation_id} moved to {reservation.check_in_date}..{reservation.check_out_date}, "
                f"total {reservation.total_price}"
            )
        else:
            logger.info(f"Reservation {reservation_id} details updated")
        return reservation

    def _check_transition(self, reservation: Reservation, target: ReservationStatus) -> None:
        if not reservation.status.can_transition_to(target):
            raise ReservationStateError(
                f"Cannot change reservation status from {reservation.status.value} to {target.value}"
            )

        if target == ReservationStatus.CANCELLED and not reservation.can_be_cancelled(
            datetime.now(timezone.utc), settings.reservation_cancellation_lead_hours
        ):
            raise ReservationStateError(
                f"Confirmed reservations can only be cancelled more than "
                f"{settings.reservation_cancellation_lead_hours} hours before check-in"
            )

    async def change_status(
        self,
        reservation_id: uuid.UUID,
        status_data: ReservationStatusUpdate,
        current_user: User
    ) -> Reservation:
        """
        Move a reservation through its lifecycle.

        The guest may only cancel. The property owner and admins may make any
        valid transition. The transition is checked again against a fresh copy
        of the reservation under the property lock, so a change that raced
        with another one cannot revive a cancelled reservation.

        Raises:
            InsufficientPermissionsError: If the user may not make this change
            ReservationStateError: If the transition is invalid or cancellation is too late
        """
        reservation = await self._get_reservation_or_404(reservation_id)
        target = status_data.status

        is_manager = current_user.is_admin or self._is_property_owner(reservation, current_user)
        is_guest = reservation.user_id == current_user.id

        if not (is_manager or is_guest):
            raise InsufficientPermissionsError("change the status of this reservation")

        if not is_manager and target != ReservationStatus.CANCELLED:
            raise InsufficientPermissionsError(f"mark this reservation as {target.value}")

        self._check_transition(reservation, target)

        property_id = reservation.property_id
        previous = reservation.status

        async def transition() -> Reservation:
            nonlocal previous
            await self.property_repo.lock_for_booking(property_id, include_deleted=True)

            current = await self.reservation_repo.get_fresh(reservation_id)
            if current is None:
                raise ReservationNotFoundError(str(reservation_id))
            self._check_transition(current, target)
            previous = current.status

            changes = {"status": target}
            if target == ReservationStatus.CANCELLED:
                changes["cancellation_reason"] = status_data.cancellation_reason
            return await self.reservation_repo.update(current, changes, commit=False)

        reservation = await self._run_locked(transition, f"change status of reservation {reservation_id}")
        logger.info(f"Reservation {reservation_id} status changed from {previous.value} to {target.value}")
        return reservation

    async def delete_reservation(self, reservation_id: uuid.UUID, current_user: User) -> None:
        """
        Soft delete a pending reservation, releasing its dates.

        Raises:
            InsufficientPermissionsError: If the user is neither the guest nor an admin
            ReservationStateError: If the reservation is not pending
        """
        reservation = await self._get_reservation_or_404(reservation_id)

        if not (current_user.is_admin or reservation.user_id == current_user.id):
            raise InsufficientPermissionsError("delete this reservation")

        if reservation.status != ReservationStatus.PENDING:
            raise ReservationStateError("Only pending reservations can be deleted")

        property_id = reservation.property_id

        async def remove() -> Reservation:
            await self.property_repo.lock_for_booking(property_id, include_deleted=True)

            current = await self.reservation_repo.get_fresh(reservation_id)
            if current is None:
                raise ReservationNotFoundError(str(reservation_id))
            if current.status != ReservationStatus.PENDING:
                raise ReservationStateError("Only pending reservations can be deleted")
            return await self.reservation_repo.soft_delete(current, commit=False)

        await self._run_locked(remove, f"delete reservation {reservation_id}")
        logger.info(f"Reservation {reservation_id} deleted")

    async def complete_finished_reservations(self, today: Optional[date], current_user: User) -> int:
        """
        Mark confirmed reservations whose check-out is on or before ``today`` as completed.

        Returns:
            Number of reservations completed
        """
        if not current_user.is_admin:
            raise InsufficientPermissionsError("complete reservations")

        return await self.reservation_repo.complete_finished(today or utc_today())

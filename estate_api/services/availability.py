"""
Availability and pricing engine.

Stays are half-open night ranges ``[check_in, check_out)``: the check-out day
is not a night of the stay, so a guest leaving on the 10th and another arriving
on the 10th do not collide.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from estate_api.repositories.reservation import ReservationRepository
from estate_api.models.property import Property
from estate_api.utils.exceptions import ValidationError
import uuid
import logging

logger = logging.getLogger(__name__)

PRICE_QUANTUM = Decimal("0.01")


def dates_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Return True if ``[a_start, a_end)`` and ``[b_start, b_end)`` share at least one night."""
    return a_start < b_end and b_start < a_end


def nights_between(check_in: date, check_out: date) -> int:
    """Number of nights from check-in to check-out."""
    return (check_out - check_in).days


def calculate_total_price(nightly_price: Decimal, check_in: date, check_out: date) -> Decimal:
    """
    Total price of a stay: nightly price multiplied by the number of nights.

    Args:
        nightly_price: Price per night
        check_in: First night
        check_out: Departure day

    Returns:
        Total rounded to cents

    Raises:
        ValueError: If check-out is before check-in
    """
    nights = nights_between(check_in, check_out)
    if nights < 0:
        raise ValueError("Check-out date cannot be before check-in date")

    total = Decimal(str(nightly_price)) * nights
    return total.quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)


def validate_stay_dates(check_in: date, check_out: date) -> None:
    """
    Raises:
        ValidationError: If the range does not cover at least one night
    """
    if check_out <= check_in:
        raise ValidationError(
            "Check-out date must be after check-in date",
            field_errors=[{"field": "check_out_date", "message": "Must be after check_in_date"}]
        )


class AvailabilityService:
    """
    Read-only availability checks and price quotes.

    Callers that need the answer to stay true until they write (bookings) must
    run the check inside the transaction holding the property lock.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.reservation_repo = ReservationRepository(db_session)

    async def is_available(
        self,
        property_id: uuid.UUID,
        check_in: date,
        check_out: date,
        exclude_reservation_id: Optional[uuid.UUID] = None
    ) -> bool:
        """
        Check whether a property is free for ``[check_in, check_out)``.

        Args:
            property_id: Property to check
            check_in: First night
            check_out: Departure day
            exclude_reservation_id: Reservation to ignore, used when moving its own dates

        Returns:
            False exactly when a non-cancelled, non-deleted reservation overlaps
        """
        validate_stay_dates(check_in, check_out)

        conflict = await self.reservation_repo.has_overlap(
            property_id, check_in, check_out, exclude_reservation_id
        )
        if conflict:
            logger.debug(f"Property {property_id} is booked between {check_in} and {check_out}")
        return not conflict

    async def quote(self, property_obj: Property, check_in: date, check_out: date) -> Dict[str, Any]:
        """Availability and total price for a prospective stay."""
        validate_stay_dates(check_in, check_out)

        available = property_obj.is_bookable and await self.is_available(property_obj.id, check_in, check_out)

        return {
            "property_id": str(property_obj.id),
            "check_in_date": check_in,
            "check_out_date": check_out,
            "available": available,
            "nights": nights_between(check_in, check_out),
            "nightly_price": property_obj.price,
            "total_price": calculate_total_price(property_obj.price, check_in, check_out),
        }

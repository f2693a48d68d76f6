"""
Reservation repository with the overlap query behind availability checks.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, and_, or_, func, desc
from estate_api.repositories.base import BaseRepository
from estate_api.models.reservation import Reservation, ReservationStatus, BLOCKING_STATUSES
from estate_api.models.property import Property
from typing import Optional, List, Tuple
from datetime import date
import uuid
import logging

logger = logging.getLogger(__name__)


class ReservationSearchFilters:
    """Data class for reservation list filters."""

    def __init__(
        self,
        status: Optional[ReservationStatus] = None,
        property_id: Optional[uuid.UUID] = None,
        user_id: Optional[uuid.UUID] = None,
        check_in_from: Optional[date] = None,
        check_out_to: Optional[date] = None
    ):
        self.status = status
        self.property_id = property_id
        self.user_id = user_id
        self.check_in_from = check_in_from
        self.check_out_to = check_out_to


class ReservationRepository(BaseRepository[Reservation]):
    """
    Repository for reservations.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Reservation, db)

    async def get_fresh(self, reservation_id: uuid.UUID) -> Optional[Reservation]:
        """Load a non-deleted reservation, overwriting any stale copy in the session."""
        query = (
            self._base_query()
            .where(Reservation.id == reservation_id)
            .execution_options(populate_existing=True)
        )
        return (await self.db.execute(query)).scalar_one_or_none()

    def _overlap_conditions(
        self,
        property_id: uuid.UUID,
        check_in: date,
        check_out: date,
        exclude_reservation_id: Optional[uuid.UUID] = None
    ) -> List:
        # Half-open ranges: [a, b) and [c, d) overlap iff a < d and c < b
        conditions = [
            Reservation.property_id == property_id,
            Reservation.deleted_at.is_(None),
            Reservation.status.in_(BLOCKING_STATUSES),
            Reservation.check_in_date < check_out,
            Reservation.check_out_date > check_in,
        ]
        if exclude_reservation_id is not None:
            conditions.append(Reservation.id != exclude_reservation_id)
        return conditions

    async def has_overlap(
        self,
        property_id: uuid.UUID,
        check_in: date,
        check_out: date,
        exclude_reservation_id: Optional[uuid.UUID] = None
    ) -> bool:
        """
        Check whether a live reservation of the property overlaps [check_in, check_out).

        Cancelled and soft-deleted reservations never conflict.
        """
        query = select(func.count(Reservation.id)).where(
            and_(*self._overlap_conditions(property_id, check_in, check_out, exclude_reservation_id))
        )
        return ((await self.db.execute(query)).scalar() or 0) > 0

    async def search_reservations(
        self,
        filters: ReservationSearchFilters,
        skip: int = 0,
        limit: int = 20,
        visible_to_user_id: Optional[uuid.UUID] = None
    ) -> Tuple[List[Reservation], int]:
        """
        List reservations newest first.

        Args:
            filters: ReservationSearchFilters instance
            skip: Number of records to skip
            limit: Maximum number of records to return
            visible_to_user_id: Restrict results to this user's own reservations and
                reservations of properties the user owns

        Returns:
            Tuple of (reservations list, total count)
        """
        conditions = [Reservation.deleted_at.is_(None)]

        if visible_to_user_id is not None:
            owned = select(Property.id).where(Property.owner_id == visible_to_user_id)
            conditions.append(or_(
                Reservation.user_id == visible_to_user_id,
                Reservation.property_id.in_(owned)
            ))
        if filters.user_id is not None:
            conditions.append(Reservation.user_id == filters.user_id)
        if filters.status is not None:
            conditions.append(Reservation.status == filters.status)
        if filters.property_id is not None:
            conditions.append(Reservation.property_id == filters.property_id)
        if filters.check_in_from is not None:
            conditions.append(Reservation.check_in_date >= filters.check_in_from)
        if filters.check_out_to is not None:
            conditions.append(Reservation.check_out_date <= filters.check_out_to)

        count_query = select(func.count(Reservation.id)).where(and_(*conditions))
        total_count = (await self.db.execute(count_query)).scalar() or 0

        query = (
            select(Reservation)
            .where(and_(*conditions))
            .order_by(desc(Reservation.created_at))
            .offset(skip)
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all()), total_count

    async def has_completed_stay(self, user_id: uuid.UUID, property_id: uuid.UUID) -> bool:
        """Check whether the user has a completed reservation at the property."""
        query = select(func.count(Reservation.id)).where(
            Reservation.user_id == user_id,
            Reservation.property_id == property_id,
            Reservation.deleted_at.is_(None),
            Reservation.status == ReservationStatus.COMPLETED
        )
        return ((await self.db.execute(query)).scalar() or 0) > 0

    async def complete_finished(self, today: date) -> int:
        """
        Mark confirmed reservations that checked out on or before ``today`` as completed.

        Returns:
            Number of reservations updated
        """
        stmt = (
            update(Reservation)
            .where(
                Reservation.deleted_at.is_(None),
                Reservation.status == ReservationStatus.CONFIRMED,
                Reservation.check_out_date <= today
            )
            .values(status=ReservationStatus.COMPLETED)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.db.execute(stmt)
        await self.db.commit()

        logger.info(f"Marked {result.rowcount} reservations as completed")
        return result.rowcount

"""
Review repository.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, func, desc
from estate_api.repositories.base import BaseRepository
from estate_api.models.review import Review
from typing import Optional, List, Tuple
from decimal import Decimal
import uuid


class ReviewSearchFilters:
    """Data class for review list filters."""

    def __init__(
        self,
        property_id: Optional[uuid.UUID] = None,
        user_id: Optional[uuid.UUID] = None,
        min_rating: Optional[Decimal] = None,
        max_rating: Optional[Decimal] = None,
        is_verified: Optional[bool] = None
    ):
        self.property_id = property_id
        self.user_id = user_id
        self.min_rating = min_rating
        self.max_rating = max_rating
        self.is_verified = is_verified


class ReviewRepository(BaseRepository[Review]):

    def __init__(self, db: AsyncSession):
        super().__init__(Review, db)

    async def get_user_review_for_property(
        self,
        user_id: uuid.UUID,
        property_id: uuid.UUID,
        include_deleted: bool = False
    ) -> Optional[Review]:
        query = self._base_query(include_deleted).where(
            Review.user_id == user_id,
            Review.property_id == property_id
        )
        return (await self.db.execute(query)).scalars().first()

    async def search_reviews(
        self,
        filters: ReviewSearchFilters,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Review], int]:
        """
        List non-deleted reviews newest first.

        Returns:
            Tuple of (reviews list, total count)
        """
        conditions = [Review.deleted_at.is_(None)]

        if filters.property_id is not None:
            conditions.append(Review.property_id == filters.property_id)
        if filters.user_id is not None:
            conditions.append(Review.user_id == filters.user_id)
        if filters.min_rating is not None:
            conditions.append(Review.rating >= filters.min_rating)
        if filters.max_rating is not None:
            conditions.append(Review.rating <= filters.max_rating)
        if filters.is_verified is not None:
            conditions.append(Review.is_verified == filters.is_verified)

        count_query = select(func.count(Review.id)).where(and_(*conditions))
        total_count = (await self.db.execute(count_query)).scalar() or 0

        query = (
            select(Review)
            .where(and_(*conditions))
            .order_by(desc(Review.created_at))
            .offset(skip)
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all()), total_count

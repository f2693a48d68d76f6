"""
Favorite repository for users' bookmarked properties.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, func
from estate_api.repositories.base import BaseRepository
from estate_api.models.favorite import Favorite
from estate_api.models.property import Property
from typing import Optional, List, Tuple
import uuid
import logging

logger = logging.getLogger(__name__)


class FavoriteRepository(BaseRepository[Favorite]):

    def __init__(self, db: AsyncSession):
        super().__init__(Favorite, db)

    async def get_favorite(self, user_id: uuid.UUID, property_id: uuid.UUID) -> Optional[Favorite]:
        query = select(Favorite).where(
            Favorite.user_id == user_id,
            Favorite.property_id == property_id
        )
        return (await self.db.execute(query)).scalar_one_or_none()

    async def get_favorite_properties(
        self,
        user_id: uuid.UUID,
        skip: int = 0,
        limit: int = 20
    ) -> Tuple[List[Property], int]:
        """
        Get the user's favorite properties, most recently added first.
        Soft-deleted properties are left out.
        """
        conditions = [Favorite.user_id == user_id, Property.deleted_at.is_(None)]

        count_query = (
            select(func.count(Favorite.id))
            .join(Property, Property.id == Favorite.property_id)
            .where(*conditions)
        )
        total_count = (await self.db.execute(count_query)).scalar() or 0

        query = (
            select(Property)
            .join(Favorite, Favorite.property_id == Property.id)
            .where(*conditions)
            .order_by(Favorite.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all()), total_count

    async def remove_favorite(self, user_id: uuid.UUID, property_id: uuid.UUID) -> bool:
        """
        Remove a favorite.

        Returns:
            True if a favorite was removed, False if there was none
        """
        stmt = delete(Favorite).where(
            Favorite.user_id == user_id,
            Favorite.property_id == property_id
        )
        result = await self.db.execute(stmt)
        await self.db.commit()

        removed = result.rowcount > 0
        if removed:
            logger.debug(f"Removed favorite {property_id} for user {user_id}")
        return removed

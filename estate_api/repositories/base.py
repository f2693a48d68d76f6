"""
Base repository class with common CRUD operations using async SQLAlchemy.
Provides generic database operations that can be extended by specific repositories.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.sql import Select
from estate_api.database import Base
from typing import TypeVar, Generic, Optional, Dict, Any, Type
import uuid
import logging

logger = logging.getLogger(__name__)

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """
    Base repository class providing common CRUD operations.

    Models with a ``deleted_at`` column are soft-deletable: deleted rows are
    hidden from every read unless ``include_deleted`` is requested.

    Write methods take a ``commit`` flag. Passing ``commit=False`` only flushes,
    so a caller can group several writes into one transaction.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Initialize repository with model class and database session.

        Args:
            model: SQLAlchemy model class
            db: Async database session
        """
        self.model = model
        self.db = db

    @property
    def soft_deletable(self) -> bool:
        return hasattr(self.model, "deleted_at")

    def _base_query(self, include_deleted: bool = False) -> Select:
        query = select(self.model)
        if self.soft_deletable and not include_deleted:
            query = query.where(self.model.deleted_at.is_(None))
        return query

    def _apply_filters(self, query: Select, filters: Optional[Dict[str, Any]]) -> Select:
        """Apply equality (or IN for lists) filters on model columns."""
        if not filters:
            return query

        for field, value in filters.items():
            if value is None or not hasattr(self.model, field):
                continue
            column = getattr(self.model, field)
            if isinstance(value, (list, tuple, set)):
                query = query.where(column.in_(list(value)))
            else:
                query = query.where(column == value)
        return query

    async def _save(self, db_obj: ModelType, commit: bool) -> ModelType:
        if commit:
            await self.db.commit()
        else:
            await self.db.flush()
        # Reload server-side defaults such as timestamps
        await self.db.refresh(db_obj)
        return db_obj

    async def create(self, obj_in: Dict[str, Any], commit: bool = True) -> ModelType:
        """
        Create a new record in the database.

        Args:
            obj_in: Dictionary of field values for the new record
            commit: Commit the transaction, or only flush when False

        Returns:
            Created model instance

        Raises:
            Exception: If database operation fails
        """
        try:
            db_obj = self.model(**obj_in)
            self.db.add(db_obj)
            await self._save(db_obj, commit)
            logger.debug(f"Created {self.model.__name__} with id: {db_obj.id}")
            return db_obj
        except Exception as e:
            if commit:
                await self.db.rollback()
            logger.error(f"Failed to create {self.model.__name__}: {e}")
            raise

    async def get_by_id(self, id: uuid.UUID, include_deleted: bool = False) -> Optional[ModelType]:
        """
        Get a record by its ID.

        Args:
            id: UUID of the record to retrieve
            include_deleted: Whether soft-deleted records are returned

        Returns:
            Model instance if found, None otherwise
        """
        query = self._base_query(include_deleted).where(self.model.id == id)
        result = await self.db.execute(query)
        obj = result.scalar_one_or_none()

        if obj is None:
            logger.debug(f"{self.model.__name__} with id {id} not found")

        return obj

    async def update(self, db_obj: ModelType, obj_in: Dict[str, Any], commit: bool = True) -> ModelType:
        """
        Update a loaded record with the given field values.

        None values are ignored; a field is cleared only when the caller sets
        it explicitly on the instance.

        Args:
            db_obj: Instance to update
            obj_in: Dictionary of field values to update
            commit: Commit the transaction, or only flush when False

        Returns:
            Updated model instance
        """
        try:
            for field, value in obj_in.items():
                if value is not None and hasattr(db_obj, field):
                    setattr(db_obj, field, value)

            await self._save(db_obj, commit)
            logger.debug(f"Updated {self.model.__name__} with id: {db_obj.id}")
            return db_obj
        except Exception as e:
            if commit:
                await self.db.rollback()
            logger.error(f"Failed to update {self.model.__name__} {db_obj.id}: {e}")
            raise

    async def soft_delete(self, db_obj: ModelType, commit: bool = True) -> ModelType:
        """Mark a record as deleted without removing the row."""
        db_obj.soft_delete()
        await self._save(db_obj, commit)
        logger.debug(f"Soft deleted {self.model.__name__} with id: {db_obj.id}")
        return db_obj

    async def count(self, filters: Optional[Dict[str, Any]] = None) -> int:
        """
        Count non-deleted records with optional filtering.

        Args:
            filters: Dictionary of field filters

        Returns:
            Number of matching records
        """
        query = select(func.count(self.model.id))
        if self.soft_deletable:
            query = query.where(self.model.deleted_at.is_(None))
        query = self._apply_filters(query, filters)

        result = await self.db.execute(query)
        return result.scalar() or 0

    async def exists(self, id: uuid.UUID) -> bool:
        """Check if a non-deleted record exists by its ID."""
        return await self.count({"id": id}) > 0

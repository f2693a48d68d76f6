"""
Property repository for managing listings with search, filtering and booking locks.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, and_, or_, func, desc, asc
from estate_api.repositories.base import BaseRepository
from estate_api.models.property import Property, PropertyType, PropertyStatus
from estate_api.models.reservation import Reservation, ReservationStatus
from estate_api.models.review import Review
from typing import Optional, List, Dict, Any, Tuple
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
import uuid
import logging

logger = logging.getLogger(__name__)

SORTABLE_FIELDS = ("created_at", "updated_at", "price", "rating", "bedrooms", "area", "title")


class PropertySearchFilters:
    """Data class for property search filters."""

    def __init__(
        self,
        search: Optional[str] = None,
        city: Optional[str] = None,
        state: Optional[str] = None,
        property_type: Optional[PropertyType] = None,
        status: Optional[PropertyStatus] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        bedrooms: Optional[int] = None,
        bathrooms: Optional[int] = None,
        min_area: Optional[Decimal] = None,
        max_area: Optional[Decimal] = None,
        min_rating: Optional[Decimal] = None,
        owner_id: Optional[uuid.UUID] = None,
        is_featured: Optional[bool] = None
    ):
        self.search = search
        self.city = city
        self.state = state
        self.property_type = property_type
        self.status = status
        self.min_price = min_price
        self.max_price = max_price
        self.bedrooms = bedrooms
        self.bathrooms = bathrooms
        self.min_area = min_area
        self.max_area = max_area
        self.min_rating = min_rating
        self.owner_id = owner_id
        self.is_featured = is_featured


class PropertyRepository(BaseRepository[Property]):
    """
    Repository for property management with search and filtering capabilities.
    Also owns the row lock that serializes bookings of the same property.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(Property, db)

    async def create_property(self, property_data: Dict[str, Any]) -> Property:
        """
        Create a new property with validation.

        Raises:
            ValueError: If validation fails
        """
        Property(**property_data).validate_all()

        created_property = await self.create(property_data)
        logger.info(f"Created property: {created_property.title} (ID: {created_property.id})")
        return created_property

    async def search_properties(
        self,
        filters: PropertySearchFilters,
        skip: int = 0,
        limit: int = 20,
        order_by: str = "created_at",
        order_direction: str = "desc"
    ) -> Tuple[List[Property], int]:
        """
        Search properties with filtering and pagination.

        Args:
            filters: PropertySearchFilters instance with search criteria
            skip: Number of records to skip for pagination
            limit: Maximum number of records to return
            order_by: Field to order by
            order_direction: 'asc' or 'desc'

        Returns:
            Tuple of (properties list, total count)
        """
        conditions = self._build_filter_conditions(filters)

        count_query = select(func.count(Property.id)).where(and_(*conditions))
        total_count = (await self.db.execute(count_query)).scalar() or 0

        query = select(Property).where(and_(*conditions))

        if order_by in SORTABLE_FIELDS:
            order_field = getattr(Property, order_by)
            query = query.order_by(desc(order_field) if order_direction.lower() == "desc" else asc(order_field))
        else:
            query = query.order_by(desc(Property.created_at))

        result = await self.db.execute(query.offset(skip).limit(limit))
        properties = list(result.scalars().all())

        logger.debug(f"Property search returned {len(properties)} of {total_count} total results")
        return properties, total_count

    def _build_filter_conditions(self, filters: PropertySearchFilters) -> List:
        """
        Build SQLAlchemy filter conditions from search filters.

        Soft-deleted properties are always excluded.
        """
        conditions = [Property.deleted_at.is_(None)]

        if filters.city:
            conditions.append(Property.city.ilike(f"%{filters.city}%"))
        if filters.state:
            conditions.append(Property.state.ilike(f"%{filters.state}%"))

        if filters.property_type:
            conditions.append(Property.property_type == filters.property_type)
        if filters.status:
            conditions.append(Property.status == filters.status)

        # Price range filters
        if filters.min_price is not None:
            conditions.append(Property.price >= filters.min_price)
        if filters.max_price is not None:
            conditions.append(Property.price <= filters.max_price)

        # Room filters are minimums
        if filters.bedrooms is not None:
            conditions.append(Property.bedrooms >= filters.bedrooms)
        if filters.bathrooms is not None:
            conditions.append(Property.bathrooms >= filters.bathrooms)

        if filters.min_area is not None:
            conditions.append(Property.area >= filters.min_area)
        if filters.max_area is not None:
            conditions.append(Property.area <= filters.max_area)

        if filters.min_rating is not None:
            conditions.append(Property.rating >= filters.min_rating)

        if filters.owner_id:
            conditions.append(Property.owner_id == filters.owner_id)
        if filters.is_featured is not None:
            conditions.append(Property.is_featured == filters.is_featured)

        # Text search across title, description and address
        if filters.search:
            search_term = f"%{filters.search}%"
            conditions.append(
                or_(
                    Property.title.ilike(search_term),
                    Property.description.ilike(search_term),
                    Property.address.ilike(search_term)
                )
            )

        return conditions

    async def get_featured_properties(self, limit: int = 10) -> List[Property]:
        """Get featured, available properties, best rated first."""
        query = (
            select(Property)
            .where(
                Property.deleted_at.is_(None),
                Property.is_featured.is_(True),
                Property.status == PropertyStatus.AVAILABLE
            )
            .order_by(desc(Property.rating), desc(Property.updated_at))
            .limit(limit)
        )

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def lock_for_booking(self, property_id: uuid.UUID, include_deleted: bool = False) -> Optional[Property]:
        """
        Take a write lock on the property row for the current transaction.

        The no-op UPDATE holds a row lock on PostgreSQL and the database write
        lock on SQLite until commit or rollback, so bookings of one property
        run their check-and-write one at a time.

        Args:
            property_id: Property to lock
            include_deleted: Also lock a soft-deleted property, for status
                changes of reservations that outlive their listing

        Returns:
            The freshly loaded property, or None if it does not exist
        """
        conditions = [Property.id == property_id]
        if not include_deleted:
            conditions.append(Property.deleted_at.is_(None))

        stmt = (
            update(Property)
            .where(*conditions)
            .values(updated_at=Property.updated_at)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)

        if result.rowcount == 0:
            return None

        query = (
            select(Property)
            .where(Property.id == property_id)
            .execution_options(populate_existing=True)
        )
        return (await self.db.execute(query)).scalar_one()

    async def has_active_reservations(self, property_id: uuid.UUID, today: date) -> bool:
        """Check for pending or confirmed reservations that have not checked out yet."""
        query = select(func.count(Reservation.id)).where(
            Reservation.property_id == property_id,
            Reservation.deleted_at.is_(None),
            Reservation.status.in_([ReservationStatus.PENDING, ReservationStatus.CONFIRMED]),
            Reservation.check_out_date >= today
        )
        return ((await self.db.execute(query)).scalar() or 0) > 0

    async def refresh_rating(self, property_id: uuid.UUID, commit: bool = True) -> Optional[Property]:
        """
        Recompute the average rating and review count from non-deleted reviews.
        """
        stats_query = select(func.avg(Review.rating), func.count(Review.id)).where(
            Review.property_id == property_id,
            Review.deleted_at.is_(None)
        )
        average, count = (await self.db.execute(stats_query)).one()

        property_obj = await self.get_by_id(property_id, include_deleted=True)
        if property_obj is None:
            return None

        property_obj.rating = (
            Decimal(str(average)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP) if count else Decimal("0")
        )
        property_obj.reviews_count = count
        await self._save(property_obj, commit)

        logger.debug(f"Property {property_id} rating is now {property_obj.rating} from {count} reviews")
        return property_obj

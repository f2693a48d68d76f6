"""
Property service for managing listings with business logic validation.
Handles CRUD operations, ownership validation, search and availability quotes.
"""

from typing import Optional, List, Dict, Any, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import date
from estate_api.repositories.property import PropertyRepository, PropertySearchFilters
from estate_api.models.property import Property
from estate_api.models.reservation import utc_today
from estate_api.models.user import User
from estate_api.schemas.property import PropertyCreate, PropertyUpdate, PropertySearchParams
from estate_api.services.availability import AvailabilityService
from estate_api.utils.exceptions import (
    ForbiddenError,
    ValidationError,
    BadRequestError,
    InsufficientPermissionsError,
    PropertyNotFoundError,
    BusinessRuleViolationError
)
import uuid
import logging

logger = logging.getLogger(__name__)


class PropertyService:
    """
    Property service for managing listings.
    Agents and admins create properties; owners and admins manage them.
    """

    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session
        self.property_repo = PropertyRepository(db_session)
        self.availability = AvailabilityService(db_session)

    def _can_create_property(self, user: User) -> bool:
        return user.can_list_properties

    def _can_manage_property(self, property_obj: Property, user: User) -> bool:
        return user.can_manage_property(property_obj.owner_id)

    async def create_property(self, property_data: PropertyCreate, current_user: User) -> Property:
        """
        Create a new property listing owned by the current user.

        Args:
            property_data: Property creation data
            current_user: User creating the property

        Returns:
            Created property instance

        Raises:
            InsufficientPermissionsError: If user is not an active agent or admin
            ValidationError: If property data is invalid
        """
        try:
            if not self._can_create_property(current_user):
                raise InsufficientPermissionsError("create properties")

            create_data = property_data.model_dump()
            create_data["owner_id"] = current_user.id

            property_obj = await self.property_repo.create_property(create_data)

            logger.info(f"Property created by user {current_user.email}: {property_obj.title} (ID: {property_obj.id})")
            return property_obj

        except ForbiddenError:
            raise
        except ValueError as e:
            raise ValidationError(str(e))
        except Exception as e:
            logger.error(f"Failed to create property for user {current_user.id}: {e}")
            raise BadRequestError(f"Failed to create property: {str(e)}")

    async def get_property(self, property_id: uuid.UUID) -> Property:
        """
        Get a non-deleted property by ID.

        Raises:
            PropertyNotFoundError: If property doesn't exist or was deleted
        """
        property_obj = await self.property_repo.get_by_id(property_id)

        if not property_obj:
            raise PropertyNotFoundError(str(property_id))

        return property_obj

    async def update_property(
        self,
        property_id: uuid.UUID,
        property_data: PropertyUpdate,
        current_user: User
    ) -> Property:
        """
        Update property with ownership validation.

        Raises:
            PropertyNotFoundError: If property doesn't exist
            InsufficientPermissionsError: If user is neither the owner nor an admin
            ValidationError: If no fields are provided
        """
        existing_property = await self.get_property(property_id)

        if not self._can_manage_property(existing_property, current_user):
            raise InsufficientPermissionsError("update this property")

        update_data = property_data.model_dump(exclude_unset=True, exclude_none=True)
        if not update_data:
            raise ValidationError("No valid fields provided for update")

        try:
            updated_property = await self.property_repo.update(existing_property, update_data)
        except Exception as e:
            logger.error(f"Failed to update property {property_id}: {e}")
            raise BadRequestError(f"Failed to update property: {str(e)}")

        logger.info(f"Property updated by user {current_user.email}: {property_id}")
        return updated_property

    async def delete_property(self, property_id: uuid.UUID, current_user: User) -> None:
        """
        Soft delete a property.

        Raises:
            PropertyNotFoundError: If property doesn't exist
            InsufficientPermissionsError: If user is neither the owner nor an admin
            BusinessRuleViolationError: If the property still has upcoming reservations
        """
        existing_property = await self.get_property(property_id)

        if not self._can_manage_property(existing_property, current_user):
            raise InsufficientPermissionsError("delete this property")

        if await self.property_repo.has_active_reservations(property_id, utc_today()):
            raise BusinessRuleViolationError(
                "no_active_reservations",
                "Cannot delete a property with pending or confirmed reservations"
            )

        await self.property_repo.soft_delete(existing_property)
        logger.info(f"Property deleted by user {current_user.email}: {property_id}")

    async def search_properties(self, search_params: PropertySearchParams) -> Tuple[List[Property], int]:
        """
        Search properties with filtering and pagination.

        Returns:
            Tuple of (properties list, total count)
        """
        filters = PropertySearchFilters(
            search=search_params.search,
            city=search_params.city,
            state=search_params.state,
            property_type=search_params.property_type,
            status=search_params.status,
            min_price=search_params.min_price,
            max_price=search_params.max_price,
            bedrooms=search_params.bedrooms,
            bathrooms=search_params.bathrooms,
            min_area=search_params.min_area,
            max_area=search_params.max_area,
            min_rating=search_params.min_rating
        )

        skip = (search_params.page - 1) * search_params.page_size

        return await self.property_repo.search_properties(
            filters=filters,
            skip=skip,
            limit=search_params.page_size,
            order_by=search_params.sort_by,
            order_direction=search_params.sort_order
        )

    async def get_featured_properties(self, limit: int = 10) -> List[Property]:
        """Get featured properties."""
        if limit <= 0 or limit > 100:
            raise ValidationError("Limit must be between 1 and 100")

        return await self.property_repo.get_featured_properties(limit)

    async def quote_stay(self, property_id: uuid.UUID, check_in: date, check_out: date) -> Dict[str, Any]:
        """Availability and total price for a prospective stay."""
        property_obj = await self.get_property(property_id)
        return await self.availability.quote(property_obj, check_in, check_out)

"""
User service for profile management and favorites.
"""

from typing import List, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from estate_api.repositories.user import UserRepository
from estate_api.repositories.property import PropertyRepository
from estate_api.repositories.favorite import FavoriteRepository
from estate_api.models.favorite import Favorite
from estate_api.models.property import Property
from estate_api.models.user import User
from estate_api.schemas.user import UserUpdate, PasswordChangeRequest
from estate_api.utils.exceptions import (
    DuplicateResourceError,
    InvalidCredentialsError,
    PropertyNotFoundError,
    ValidationError
)
import uuid
import logging

logger = logging.getLogger(__name__)


class UserService:
    """
    Profile and favorites operations for the current user.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.user_repo = UserRepository(db_session)
        self.property_repo = PropertyRepository(db_session)
        self.favorite_repo = FavoriteRepository(db_session)

    async def update_profile(self, update_data: UserUpdate, current_user: User) -> User:
        """
        Update the current user's profile.

        Raises:
            DuplicateResourceError: If the new email belongs to another account
            ValidationError: If no fields are provided
        """
        changes = update_data.model_dump(exclude_unset=True, exclude_none=True)
        if not changes:
            raise ValidationError("No valid fields provided for update")

        if "email" in changes:
            if not await self.user_repo.check_email_availability(changes["email"], exclude_user_id=current_user.id):
                raise DuplicateResourceError("User", changes["email"])

        user = await self.user_repo.update(current_user, changes)
        logger.info(f"Profile updated for user {user.id}")
        return user

    async def change_password(self, password_data: PasswordChangeRequest, current_user: User) -> None:
        """
        Raises:
            InvalidCredentialsError: If the current password is wrong
        """
        if not current_user.verify_password(password_data.current_password):
            logger.warning(f"Password change with wrong current password for user {current_user.id}")
            raise InvalidCredentialsError("Current password is incorrect")

        await self.user_repo.update_password(current_user, password_data.new_password)

    async def list_favorites(self, current_user: User, page: int = 1, page_size: int = 10) -> Tuple[List[Property], int]:
        skip = (page - 1) * page_size
        return await self.favorite_repo.get_favorite_properties(current_user.id, skip=skip, limit=page_size)

    async def add_favorite(self, property_id: uuid.UUID, current_user: User) -> Favorite:
        """
        Bookmark a property.

        Raises:
            PropertyNotFoundError: If the property doesn't exist
            ValidationError: If the property is already a favorite
        """
        if not await self.property_repo.exists(property_id):
            raise PropertyNotFoundError(str(property_id))

        if await self.favorite_repo.get_favorite(current_user.id, property_id):
            raise ValidationError(
                "Property is already in favorites",
                field_errors=[{"field": "property_id", "message": "Already in favorites"}]
            )

        favorite = await self.favorite_repo.create({"user_id": current_user.id, "property_id": property_id})
        logger.info(f"User {current_user.id} added property {property_id} to favorites")
        return favorite

    async def remove_favorite(self, property_id: uuid.UUID, current_user: User) -> None:
        """
        Raises:
            ValidationError: If the property is not a favorite
        """
        if not await self.favorite_repo.remove_favorite(current_user.id, property_id):
            raise ValidationError(
                "Property is not in favorites",
                field_errors=[{"field": "property_id", "message": "Not in favorites"}]
            )

        logger.info(f"User {current_user.id} removed property {property_id} from favorites")

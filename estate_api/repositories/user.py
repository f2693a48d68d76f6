"""
User repository for authentication and profile operations.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from estate_api.repositories.base import BaseRepository
from estate_api.models.user import User, UserRole
from typing import Optional, Dict, Any
import uuid
import logging

logger = logging.getLogger(__name__)


class UserRepository(BaseRepository[User]):
    """
    Repository for user management with authentication support.
    """

    def __init__(self, db: AsyncSession):
        super().__init__(User, db)

    async def create_user(self, user_data: Dict[str, Any]) -> User:
        """
        Create a new user with email validation and password hashing.

        Args:
            user_data: Dictionary containing user information
                      Must include: email, password, full_name
                      Optional: role (defaults to USER), contact fields

        Returns:
            Created user instance

        Raises:
            ValueError: If validation fails or the email is taken
        """
        email = User.validate_email_format(user_data["email"])

        if await self.get_by_email(email):
            raise ValueError(f"User with email {email} already exists")

        create_data = {key: value for key, value in user_data.items() if key != "password"}
        create_data.update(
            email=email,
            hashed_password=User.hash_password(user_data["password"]),
            role=user_data.get("role") or UserRole.USER,
            is_active=user_data.get("is_active", True),
        )

        created_user = await self.create(create_data)
        logger.info(f"Created user: {created_user.email} (ID: {created_user.id})")
        return created_user

    async def get_by_email(self, email: str) -> Optional[User]:
        """
        Get user by email address (case-insensitive).

        Args:
            email: Email address to search for

        Returns:
            User instance if found, None otherwise
        """
        normalized_email = email.lower().strip()
        result = await self.db.execute(select(User).where(User.email == normalized_email))
        return result.scalar_one_or_none()

    async def authenticate_user(self, email: str, password: str) -> Optional[User]:
        """
        Authenticate user with email and password.

        Returns:
            User instance if authentication successful, None otherwise
        """
        user = await self.get_by_email(email)

        if not user:
            logger.debug(f"Authentication failed: user {email} not found")
            return None

        if not user.verify_password(password):
            logger.debug(f"Authentication failed: invalid password for {email}")
            return None

        logger.info(f"User authenticated successfully: {email}")
        return user

    async def update_password(self, user: User, new_password: str) -> User:
        """Hash and store a new password for the user."""
        user.set_password(new_password)
        await self.db.commit()
        await self.db.refresh(user)
        logger.info(f"Password updated for user: {user.email}")
        return user

    async def check_email_availability(self, email: str, exclude_user_id: Optional[uuid.UUID] = None) -> bool:
        """
        Check whether an email address is free to use.

        Args:
            email: Email address to check
            exclude_user_id: User whose own address should not count as taken

        Returns:
            True if no other user has the address
        """
        query = select(func.count(User.id)).where(User.email == email.lower().strip())
        if exclude_user_id:
            query = query.where(User.id != exclude_user_id)

        result = await self.db.execute(query)
        return (result.scalar() or 0) == 0

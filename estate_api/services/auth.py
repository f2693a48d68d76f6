"""
Authentication service for registration, login and token management.
"""

from typing import Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from estate_api.repositories.user import UserRepository
from estate_api.models.user import User
from estate_api.schemas.user import UserCreate
from estate_api.utils.auth import (
    create_access_token,
    create_refresh_token,
    verify_token
)
from estate_api.utils.exceptions import (
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
    InactiveUserError,
    NotFoundError,
    ValidationError,
    DuplicateResourceError
)
from jose import JWTError
import uuid
import logging

logger = logging.getLogger(__name__)


class AuthService:
    """
    Authentication service for managing user authentication and tokens.
    """

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.user_repo = UserRepository(db_session)

    async def register(self, user_data: UserCreate) -> User:
        """
        Register a new account.

        Raises:
            DuplicateResourceError: If the email is already registered
            ValidationError: If the data fails model validation
        """
        if not await self.user_repo.check_email_availability(user_data.email):
            raise DuplicateResourceError("User", user_data.email)

        try:
            user = await self.user_repo.create_user(user_data.model_dump())
        except ValueError as e:
            raise ValidationError(str(e))

        logger.info(f"Registered user {user.email} with role {user.role.value}")
        return user

    async def authenticate_user(self, email: str, password: str) -> User:
        """
        Authenticate user with email and password.

        Raises:
            InvalidCredentialsError: If credentials are invalid
            InactiveUserError: If user account is inactive
        """
        user = await self.user_repo.authenticate_user(email, password)

        if not user:
            logger.warning(f"Failed authentication attempt for email: {email}")
            raise InvalidCredentialsError()

        if not user.is_active:
            logger.warning(f"Inactive user attempted to log in: {email}")
            raise InactiveUserError()

        return user

    def create_tokens(self, user: User) -> Tuple[str, str]:
        """
        Create access and refresh tokens for user.

        Returns:
            Tuple of (access_token, refresh_token)
        """
        access_token = create_access_token(user_id=user.id, email=user.email, role=user.role)
        refresh_token = create_refresh_token(user_id=user.id, email=user.email)
        return access_token, refresh_token

    async def login(self, email: str, password: str) -> Tuple[User, str, str]:
        """
        Authenticate user and create tokens.

        Returns:
            Tuple of (user, access_token, refresh_token)
        """
        user = await self.authenticate_user(email, password)
        access_token, refresh_token = self.create_tokens(user)

        return user, access_token, refresh_token

    async def refresh_access_token(self, refresh_token: str) -> str:
        """
        Create new access token from refresh token.

        Raises:
            InvalidTokenError: If refresh token is invalid
            TokenExpiredError: If refresh token is expired
            InactiveUserError: If user account is inactive
        """
        try:
            token_payload = verify_token(refresh_token, token_type="refresh")
        except JWTError as e:
            if "expired" in str(e).lower():
                raise TokenExpiredError()
            raise InvalidTokenError(str(e))

        user = await self.get_user_by_id(uuid.UUID(token_payload.user_id))
        if not user.is_active:
            raise InactiveUserError()

        return create_access_token(user_id=user.id, email=user.email, role=user.role)

    async def get_current_user(self, token: str) -> User:
        """
        Get current user from access token.

        Raises:
            InvalidTokenError: If token is invalid or the user no longer exists
            TokenExpiredError: If token is expired
            InactiveUserError: If user account is inactive
        """
        try:
            token_payload = verify_token(token, token_type="access")
        except JWTError as e:
            if "expired" in str(e).lower():
                raise TokenExpiredError()
            raise InvalidTokenError(str(e))

        try:
            user = await self.get_user_by_id(uuid.UUID(token_payload.user_id))
        except NotFoundError:
            raise InvalidTokenError("User no longer exists")

        if not user.is_active:
            raise InactiveUserError()

        return user

    async def get_user_by_id(self, user_id: uuid.UUID) -> User:
        """
        Raises:
            NotFoundError: If user doesn't exist
        """
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User", str(user_id))
        return user

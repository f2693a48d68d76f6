"""
Pydantic schemas for authentication requests and responses.
Handles login, token refresh, and user authentication data validation.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from estate_api.models.user import UserRole
from estate_api.schemas.user import UserResponse


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr = Field(..., description="User's email address", examples=["guest@example.com"])
    password: str = Field(
        ...,
        min_length=1,
        max_length=128,
        description="User's password"
    )

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v):
        """Normalize email to lowercase."""
        return v.lower().strip()


class RefreshTokenRequest(BaseModel):
    """Refresh token request schema."""

    refresh_token: str = Field(..., description="Valid refresh token")


class AccessTokenResponse(BaseModel):
    """Access token response schema."""

    access_token: str = Field(..., description="New JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Access token expiration time in seconds")


ROLE_PERMISSIONS = {
    UserRole.ADMIN: [
        "create_property",
        "update_any_property",
        "delete_any_property",
        "manage_reservations",
        "verify_reviews",
    ],
    UserRole.AGENT: [
        "create_property",
        "update_own_property",
        "delete_own_property",
        "manage_own_property_reservations",
    ],
    UserRole.USER: [
        "create_reservation",
        "create_review",
        "manage_favorites",
    ],
}


class CurrentUserResponse(UserResponse):
    """Current user response with the permissions granted by the role."""

    permissions: list[str] = Field(
        default_factory=list,
        validate_default=True,
        description="User's permissions based on role"
    )

    @field_validator('permissions', mode='before')
    @classmethod
    def set_permissions(cls, v, info):
        """Set permissions based on user role."""
        role = info.data.get('role')
        if role is None:
            return []
        permissions = list(ROLE_PERMISSIONS[UserRole.USER])
        if role != UserRole.USER:
            permissions = ROLE_PERMISSIONS[role] + permissions
        return permissions


class LoginResponse(BaseModel):
    """Complete login response schema."""

    user: CurrentUserResponse = Field(..., description="Authenticated user information")
    access_token: str = Field(..., description="JWT access token")
    refresh_token: str = Field(..., description="JWT refresh token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Access token expiration time in seconds")

"""
Pydantic schemas for request/response validation.
"""

# Authentication schemas
from .auth import (
    LoginRequest,
    RefreshTokenRequest,
    AccessTokenResponse,
    CurrentUserResponse,
    LoginResponse
)

# User schemas
from .user import (
    UserBase,
    UserCreate,
    UserUpdate,
    UserResponse,
    PasswordChangeRequest
)

# Property schemas
from .property import (
    PropertyBase,
    PropertyCreate,
    PropertyUpdate,
    PropertyResponse,
    PropertyListResponse,
    PropertySearchParams,
    AvailabilityQuoteResponse
)

# Reservation schemas
from .reservation import (
    ReservationCreate,
    ReservationUpdate,
    ReservationStatusUpdate,
    ReservationResponse,
    ReservationListResponse,
    ReservationSearchParams,
    CompleteFinishedResponse
)

# Review schemas
from .review import (
    ReviewCreate,
    ReviewUpdate,
    ReviewResponse,
    ReviewListResponse,
    ReviewSearchParams
)

__all__ = [
    # Authentication
    "LoginRequest",
    "RefreshTokenRequest",
    "AccessTokenResponse",
    "CurrentUserResponse",
    "LoginResponse",

    # User
    "UserBase",
    "UserCreate",
    "UserUpdate",
    "UserResponse",
    "PasswordChangeRequest",

    # Property
    "PropertyBase",
    "PropertyCreate",
    "PropertyUpdate",
    "PropertyResponse",
    "PropertyListResponse",
    "PropertySearchParams",
    "AvailabilityQuoteResponse",

    # Reservation
    "ReservationCreate",
    "ReservationUpdate",
    "ReservationStatusUpdate",
    "ReservationResponse",
    "ReservationListResponse",
    "ReservationSearchParams",
    "CompleteFinishedResponse",

    # Review
    "ReviewCreate",
    "ReviewUpdate",
    "ReviewResponse",
    "ReviewListResponse",
    "ReviewSearchParams"
]

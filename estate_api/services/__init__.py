"""
Service layer for business logic implementation.
"""

from .auth import AuthService
from .availability import AvailabilityService, dates_overlap, nights_between, calculate_total_price
from .property import PropertyService
from .reservation import ReservationService
from .review import ReviewService
from .user import UserService
from .error_handler import ErrorHandlerService

__all__ = [
    "AuthService",
    "AvailabilityService",
    "dates_overlap",
    "nights_between",
    "calculate_total_price",
    "PropertyService",
    "ReservationService",
    "ReviewService",
    "UserService",
    "ErrorHandlerService"
]

"""
Database models for the Real Estate Reservations API.
Includes User, Property, Reservation, Review and Favorite models.
"""

from estate_api.models.user import User, UserRole
from estate_api.models.property import Property, PropertyType, PropertyStatus
from estate_api.models.reservation import Reservation, ReservationStatus
from estate_api.models.review import Review
from estate_api.models.favorite import Favorite

# Export all models for easy importing
__all__ = [
    "User",
    "UserRole",
    "Property",
    "PropertyType",
    "PropertyStatus",
    "Reservation",
    "ReservationStatus",
    "Review",
    "Favorite",
]

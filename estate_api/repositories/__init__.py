"""
Repository layer for data access operations.
"""

from estate_api.repositories.base import BaseRepository
from estate_api.repositories.property import PropertyRepository, PropertySearchFilters
from estate_api.repositories.user import UserRepository
from estate_api.repositories.reservation import ReservationRepository, ReservationSearchFilters
from estate_api.repositories.review import ReviewRepository, ReviewSearchFilters
from estate_api.repositories.favorite import FavoriteRepository

__all__ = [
    "BaseRepository",
    "PropertyRepository",
    "PropertySearchFilters",
    "UserRepository",
    "ReservationRepository",
    "ReservationSearchFilters",
    "ReviewRepository",
    "ReviewSearchFilters",
    "FavoriteRepository",
]

"""
API route handlers for the Real Estate Reservations API.
"""

from .auth import router as auth_router
from .users import router as users_router
from .properties import router as properties_router
from .reservations import router as reservations_router
from .reviews import router as reviews_router
from .favorites import router as favorites_router

__all__ = [
    "auth_router",
    "users_router",
    "properties_router",
    "reservations_router",
    "reviews_router",
    "favorites_router"
]

"""
Middleware package for the Real Estate Reservations API.
"""

from .request_context import RequestContextMiddleware

__all__ = ["RequestContextMiddleware"]

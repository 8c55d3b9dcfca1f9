# cosynq/api/dependencies/__init__.py
"""
Dependency injection for FastAPI routes.

Re-exports the commonly used dependencies so routes can import them from
one place.
"""

from .database import get_db
from .organization import ORGANIZATION_HEADER, get_organization_id
from .services import get_availability_service, get_booking_service

__all__ = [
    "ORGANIZATION_HEADER",
    "get_availability_service",
    "get_booking_service",
    "get_db",
    "get_organization_id",
]

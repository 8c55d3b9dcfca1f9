# cosynq/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

This module provides factory functions that create service instances
with their required dependencies properly injected.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.availability_service import AvailabilityService
from ...services.booking_service import BookingService
from .database import get_db


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    """Get AvailabilityService instance."""
    return AvailabilityService(db)


def get_booking_service(
    db: Session = Depends(get_db),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> BookingService:
    """
    Get booking service instance with all dependencies.

    Args:
        db: Database session
        availability_service: Capacity engine sharing the same session

    Returns:
        BookingService instance
    """
    return BookingService(db, availability_service=availability_service)

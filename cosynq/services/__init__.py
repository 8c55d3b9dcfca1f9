"""
Service layer.

Services own transactions and business rules; repositories own queries.
"""

from .availability_service import AvailabilityService, CapacityCheckResult
from .base import BaseService
from .booking_service import BookingService

__all__ = [
    "AvailabilityService",
    "BaseService",
    "BookingService",
    "CapacityCheckResult",
]

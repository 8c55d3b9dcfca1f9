# cosynq/core/enums.py
"""Enumerations shared across models, services and schemas."""

from enum import Enum


class Weekday(str, Enum):
    """Days of the week as stored on operating-hours rows."""

    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"

    @classmethod
    def from_date(cls, value) -> "Weekday":
        """Weekday for a ``date``/``datetime`` (Python's Monday == 0)."""
        return _WEEKDAY_ORDER[value.weekday()]

    @property
    def is_weekend(self) -> bool:
        return self in (Weekday.SATURDAY, Weekday.SUNDAY)


_WEEKDAY_ORDER = (
    Weekday.MONDAY,
    Weekday.TUESDAY,
    Weekday.WEDNESDAY,
    Weekday.THURSDAY,
    Weekday.FRIDAY,
    Weekday.SATURDAY,
    Weekday.SUNDAY,
)

ALL_WEEKDAYS = frozenset(_WEEKDAY_ORDER)


class BookingStatus(str, Enum):
    """Booking lifecycle statuses."""

    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"
    COMPLETED = "Completed"
    NO_SHOW = "No Show"


# Statuses that hold capacity on a space
ACTIVE_BOOKING_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)


class PaymentStatus(str, Enum):
    PENDING = "Pending"
    PAID = "Paid"
    REFUNDED = "Refunded"
    FAILED = "Failed"


class ResourceUnitStatus(str, Enum):
    ACTIVE = "Active"
    DISABLED = "Disabled"


class SpaceStatus(str, Enum):
    AVAILABLE = "Available"
    OCCUPIED = "Occupied"
    MAINTENANCE = "Maintenance"
    RESERVED = "Reserved"

# cosynq/schemas/booking.py
"""
Booking request and response schemas.

Requests accept the legacy ``start``/``end`` keys (and camelCase variants)
as aliases of ``start_time``/``end_time``. Responses carry both spellings.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, EmailStr, Field, field_validator, model_validator

from ..core.ulid_helper import is_valid_ulid
from ._strict_base import StrictModel, StrictRequestModel

START_ALIASES = AliasChoices("start_time", "startTime", "start")
END_ALIASES = AliasChoices("end_time", "endTime", "end")


def _validate_ulid_field(value: Optional[str], field_name: str) -> Optional[str]:
    if value is None:
        return value
    if not is_valid_ulid(value):
        raise ValueError(f"{field_name} must be a valid ULID")
    return value


def _strip_optional(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


class BookingCreate(StrictRequestModel):
    """Create a booking for a space and time window."""

    space_id: str = Field(..., validation_alias=AliasChoices("space_id", "spaceId"))
    start_time: datetime = Field(..., validation_alias=START_ALIASES)
    end_time: datetime = Field(..., validation_alias=END_ALIASES)
    attendee_count: int = Field(
        1, ge=1, validation_alias=AliasChoices("attendee_count", "attendeeCount")
    )

    contact_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("contact_id", "contactId")
    )
    customer_name: Optional[str] = Field(
        None, max_length=200, validation_alias=AliasChoices("customer_name", "customerName")
    )
    customer_email: Optional[EmailStr] = Field(
        None, validation_alias=AliasChoices("customer_email", "customerEmail")
    )
    customer_phone: Optional[str] = Field(
        None, max_length=32, validation_alias=AliasChoices("customer_phone", "customerPhone")
    )

    purpose: Optional[str] = Field(None, max_length=1000)
    notes: Optional[str] = Field(None, max_length=2000)
    special_requests: Optional[str] = Field(
        None, max_length=1000, validation_alias=AliasChoices("special_requests", "specialRequests")
    )
    total_amount: Optional[Decimal] = Field(
        None, ge=0, validation_alias=AliasChoices("total_amount", "totalAmount")
    )
    currency: str = Field("INR", min_length=3, max_length=3)

    @field_validator("space_id")
    @classmethod
    def _validate_space_id(cls, value: str) -> str:
        return _validate_ulid_field(value, "space_id")

    @field_validator("contact_id")
    @classmethod
    def _validate_contact_id(cls, value: Optional[str]) -> Optional[str]:
        return _validate_ulid_field(value, "contact_id")

    @field_validator("customer_name", "customer_phone", "purpose", "notes", "special_requests")
    @classmethod
    def _strip_text(cls, value: Optional[str]) -> Optional[str]:
        return _strip_optional(value)

    @model_validator(mode="after")
    def _require_customer(self) -> "BookingCreate":
        if not self.contact_id and not (self.customer_name and self.customer_email):
            raise ValueError(
                "Either contact_id or customer details (name and email) are required"
            )
        return self


class BookingUpdate(StrictRequestModel):
    """Partial update; time changes are subject to the modification window."""

    start_time: Optional[datetime] = Field(None, validation_alias=START_ALIASES)
    end_time: Optional[datetime] = Field(None, validation_alias=END_ALIASES)
    attendee_count: Optional[int] = Field(
        None, ge=1, validation_alias=AliasChoices("attendee_count", "attendeeCount")
    )
    customer_name: Optional[str] = Field(
        None, max_length=200, validation_alias=AliasChoices("customer_name", "customerName")
    )
    customer_email: Optional[EmailStr] = Field(
        None, validation_alias=AliasChoices("customer_email", "customerEmail")
    )
    customer_phone: Optional[str] = Field(
        None, max_length=32, validation_alias=AliasChoices("customer_phone", "customerPhone")
    )
    purpose: Optional[str] = Field(None, max_length=1000)
    notes: Optional[str] = Field(None, max_length=2000)
    special_requests: Optional[str] = Field(
        None, max_length=1000, validation_alias=AliasChoices("special_requests", "specialRequests")
    )

    @property
    def changes_time(self) -> bool:
        return self.start_time is not None or self.end_time is not None


class BookingCancel(StrictRequestModel):
    reason: Optional[str] = Field(None, max_length=500)


class CapacityCheckRequest(StrictRequestModel):
    space_id: str = Field(..., validation_alias=AliasChoices("space_id", "spaceId"))
    start_time: datetime = Field(..., validation_alias=START_ALIASES)
    end_time: datetime = Field(..., validation_alias=END_ALIASES)
    exclude_booking_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("exclude_booking_id", "excludeBookingId")
    )

    @model_validator(mode="after")
    def _check_order(self) -> "CapacityCheckRequest":
        if self.end_time <= self.start_time:
            raise ValueError("Start time must be before end time")
        return self


class CapacityCheckResponse(StrictModel):
    available: bool
    reason: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)


class BookingResponse(StrictModel):
    """Booking as returned by the API (``start``/``end`` mirror the *_time fields)."""

    id: str
    organization_id: str
    space_id: str
    resource_unit_id: Optional[str] = None
    contact_id: Optional[str] = None
    booking_reference: str
    start_time: datetime
    end_time: datetime
    start: datetime
    end: datetime
    status: str
    attendee_count: int
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    purpose: Optional[str] = None
    notes: Optional[str] = None
    special_requests: Optional[str] = None
    total_amount: float
    currency: str
    payment_status: Optional[str] = None
    checked_in: bool
    cancel_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_booking(cls, booking: Any) -> "BookingResponse":
        return cls(**booking.to_dict())


class AvailabilitySlot(StrictModel):
    start_time: datetime
    end_time: datetime
    is_available: bool
    reasons: List[str] = Field(default_factory=list)


class ConflictingBooking(StrictModel):
    id: str
    start_time: datetime
    end_time: datetime
    reference: Optional[str] = None
    status: Optional[str] = None


class SpaceAvailabilityResponse(StrictModel):
    space: Dict[str, Any]
    location: Optional[Dict[str, Any]] = None
    date: date
    duration: int
    available_slots: List[AvailabilitySlot]
    unavailable_slots: List[AvailabilitySlot]
    conflicting_bookings: List[ConflictingBooking]
    time_validation: Dict[str, Any]
    summary: Dict[str, int]

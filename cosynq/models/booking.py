# cosynq/models/booking.py
"""
Booking model for the Cosynq booking backend.

A booking reserves a space (and, for pooled spaces, one resource unit) for
a half-open window ``[start_time, end_time)``. Only Pending and Confirmed
bookings hold capacity; cancelled bookings are kept for history and never
deleted.
"""

from datetime import datetime, timezone
import logging
import re
from typing import Any, Dict, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship
import ulid

from ..core.config import settings
from ..core.constants import BOOKING_REFERENCE_MAX_LENGTH, BOOKING_REFERENCE_SUFFIX_LENGTH
from ..core.enums import ACTIVE_BOOKING_STATUSES, BookingStatus, PaymentStatus
from ..core.exceptions import InvalidTransitionException
from ..database import Base
from .base_enum import create_safe_enum
from .types import TimestampMixin, UTCDateTime

logger = logging.getLogger(__name__)


def booking_reference_pattern(prefix: Optional[str] = None) -> "re.Pattern[str]":
    """Regex for references issued with ``prefix``, the configured one by default."""
    prefix = prefix if prefix is not None else settings.booking_reference_prefix
    return re.compile(rf"^{re.escape(prefix)}[A-Z0-9]{{{BOOKING_REFERENCE_SUFFIX_LENGTH}}}$")


BOOKING_REFERENCE_PATTERN = booking_reference_pattern()

# Allowed status changes; anything absent is rejected
BOOKING_TRANSITIONS: Dict[BookingStatus, frozenset] = {
    BookingStatus.PENDING: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset(
        {BookingStatus.COMPLETED, BookingStatus.CANCELLED, BookingStatus.NO_SHOW}
    ),
    BookingStatus.CANCELLED: frozenset(),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.NO_SHOW: frozenset(),
}


class Booking(Base, TimestampMixin):
    """Reservation of a space for a time window."""

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    organization_id = Column(String(26), nullable=False, index=True)
    space_id = Column(String(26), ForeignKey("spaces.id"), nullable=False, index=True)
    resource_unit_id = Column(
        String(26), ForeignKey("resource_units.id"), nullable=True, index=True
    )
    contact_id = Column(String(26), ForeignKey("contacts.id"), nullable=True)
    created_by = Column(String(26), nullable=True)

    start_time = Column(UTCDateTime(), nullable=False)
    end_time = Column(UTCDateTime(), nullable=False)

    status = Column(
        create_safe_enum(BookingStatus, "booking_status"),
        nullable=False,
        default=BookingStatus.PENDING,
        index=True,
    )
    attendee_count = Column(Integer, nullable=False, default=1)
    booking_reference = Column(String(BOOKING_REFERENCE_MAX_LENGTH), nullable=False, unique=True)

    # Customer details (when no CRM contact is linked)
    customer_name = Column(String(200), nullable=True)
    customer_email = Column(String(255), nullable=True)
    customer_phone = Column(String(32), nullable=True)

    purpose = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    special_requests = Column(Text, nullable=True)

    total_amount = Column(Numeric(10, 2), nullable=False, default=0)
    currency = Column(String(3), nullable=False, default="INR")
    payment_status = Column(
        create_safe_enum(PaymentStatus, "payment_status"),
        nullable=False,
        default=PaymentStatus.PENDING,
    )

    checked_in = Column(Boolean, nullable=False, default=False)
    check_in_time = Column(UTCDateTime(), nullable=True)
    check_out_time = Column(UTCDateTime(), nullable=True)

    confirmed_at = Column(UTCDateTime(), nullable=True)
    completed_at = Column(UTCDateTime(), nullable=True)
    cancelled_at = Column(UTCDateTime(), nullable=True)
    cancel_reason = Column(Text, nullable=True)

    space = relationship("Space", back_populates="bookings")
    resource_unit = relationship("ResourceUnit", back_populates="bookings")
    contact = relationship("Contact")

    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_bookings_time_order"),
        CheckConstraint("attendee_count >= 1", name="ck_bookings_attendees_positive"),
        CheckConstraint("total_amount >= 0", name="ck_bookings_amount_non_negative"),
        Index("ix_bookings_space_window", "space_id", "start_time", "end_time"),
        Index("ix_bookings_unit_window", "resource_unit_id", "start_time", "end_time"),
    )

    def __init__(self, **kwargs: Any) -> None:
        """Initialize as Pending unless a status is given."""
        super().__init__(**kwargs)
        if not self.status:
            self.status = BookingStatus.PENDING
        if not self.payment_status:
            self.payment_status = PaymentStatus.PENDING
        if self.checked_in is None:
            self.checked_in = False
        if not self.attendee_count:
            self.attendee_count = 1

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: space={self.space_id}, unit={self.resource_unit_id}, "
            f"{self.start_time}-{self.end_time}, status={self.status}>"
        )

    @property
    def holds_capacity(self) -> bool:
        return BookingStatus(self.status) in ACTIVE_BOOKING_STATUSES

    @property
    def is_cancellable(self) -> bool:
        return BookingStatus.CANCELLED in BOOKING_TRANSITIONS[BookingStatus(self.status)]

    @property
    def duration_minutes(self) -> int:
        return int((self.end_time - self.start_time).total_seconds() // 60)

    def can_transition_to(self, target: BookingStatus) -> bool:
        return BookingStatus(target) in BOOKING_TRANSITIONS[BookingStatus(self.status)]

    def transition_to(self, target: BookingStatus) -> None:
        """
        Move to ``target`` if the lifecycle allows it.

        Raises:
            InvalidTransitionException: For any change outside the lifecycle
        """
        current = BookingStatus(self.status)
        target = BookingStatus(target)
        if target not in BOOKING_TRANSITIONS[current]:
            raise InvalidTransitionException(current.value, target.value)
        self.status = target
        logger.info(f"Booking {self.id} moved from {current.value} to {target.value}")

    def confirm(self) -> None:
        self.transition_to(BookingStatus.CONFIRMED)
        self.confirmed_at = datetime.now(timezone.utc)

    def cancel(self, reason: Optional[str] = None) -> None:
        """Cancel this booking, keeping the record."""
        self.transition_to(BookingStatus.CANCELLED)
        self.cancelled_at = datetime.now(timezone.utc)
        self.cancel_reason = reason

    def complete(self) -> None:
        self.transition_to(BookingStatus.COMPLETED)
        self.completed_at = datetime.now(timezone.utc)

    def mark_no_show(self) -> None:
        self.transition_to(BookingStatus.NO_SHOW)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses (legacy start/end included)."""
        start = self.start_time.isoformat() if self.start_time else None
        end = self.end_time.isoformat() if self.end_time else None
        status = BookingStatus(self.status).value if self.status else None
        payment_status = PaymentStatus(self.payment_status).value if self.payment_status else None
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "space_id": self.space_id,
            "resource_unit_id": self.resource_unit_id,
            "contact_id": self.contact_id,
            "booking_reference": self.booking_reference,
            "start_time": start,
            "end_time": end,
            "start": start,
            "end": end,
            "status": status,
            "attendee_count": self.attendee_count,
            "customer_name": self.customer_name,
            "customer_email": self.customer_email,
            "customer_phone": self.customer_phone,
            "purpose": self.purpose,
            "notes": self.notes,
            "special_requests": self.special_requests,
            "total_amount": float(self.total_amount or 0),
            "currency": self.currency,
            "payment_status": payment_status,
            "checked_in": bool(self.checked_in),
            "cancel_reason": self.cancel_reason,
            "cancelled_at": self.cancelled_at.isoformat() if self.cancelled_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

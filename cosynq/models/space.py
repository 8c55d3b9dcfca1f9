# cosynq/models/space.py
"""
Space model.

A space is a bookable desk, cabin, meeting room or virtual product.
``capacity`` drives the capacity policy: NULL is unlimited, one is an
exclusive room, more than one is either a counted pool or (with
``has_pooled_units``) a set of individually assigned resource units.
"""

from typing import Any, Dict

from sqlalchemy import (
    JSON,
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
from ..core.enums import SpaceStatus
from ..database import Base
from ..domain.capacity_policy import CapacityPolicy, resolve_capacity_policy
from .base_enum import create_safe_enum
from .types import TimestampMixin

VIRTUAL_SPACE_TYPES = ("Virtual Address", "Virtual Office")


class Space(Base, TimestampMixin):
    """Bookable space inside a location."""

    __tablename__ = "spaces"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    organization_id = Column(String(26), nullable=False, index=True)
    location_id = Column(String(26), ForeignKey("locations.id"), nullable=True, index=True)

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(50), nullable=False, default="Hot Desk")
    status = Column(
        create_safe_enum(SpaceStatus, "space_status"),
        nullable=False,
        default=SpaceStatus.AVAILABLE,
    )

    # Capacity; NULL means unlimited
    capacity = Column(Integer, nullable=True)
    # NULL only on legacy rows that predate capacity configuration
    has_pooled_units = Column(Boolean, nullable=True, default=False)

    # Booking rules
    minimum_booking_duration = Column(
        Integer, nullable=False, default=lambda: settings.default_minimum_booking_minutes
    )
    maximum_booking_duration = Column(
        Integer, nullable=False, default=lambda: settings.default_maximum_booking_minutes
    )
    advance_booking_limit = Column(
        Integer, nullable=True, default=lambda: settings.default_advance_booking_limit_days
    )
    allow_same_day_booking = Column(Boolean, nullable=False, default=True)
    working_hours = Column(JSON, nullable=True)

    hourly_rate = Column(Numeric(10, 2), nullable=True)
    currency = Column(String(3), nullable=False, default="INR")
    is_active = Column(Boolean, nullable=False, default=True)

    location = relationship("Location", back_populates="spaces", lazy="joined")
    resource_units = relationship(
        "ResourceUnit", back_populates="space", cascade="all, delete-orphan"
    )
    bookings = relationship("Booking", back_populates="space")

    __table_args__ = (
        CheckConstraint("capacity IS NULL OR capacity >= 1", name="ck_spaces_capacity_positive"),
        CheckConstraint("minimum_booking_duration > 0", name="ck_spaces_min_duration_positive"),
        CheckConstraint(
            "maximum_booking_duration >= minimum_booking_duration",
            name="ck_spaces_duration_bounds",
        ),
        Index("ix_spaces_org_location", "organization_id", "location_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Space {self.id}: {self.name} capacity={self.capacity} "
            f"pooled={self.has_pooled_units}>"
        )

    def capacity_policy(self) -> CapacityPolicy:
        """Capacity policy that governs concurrent bookings of this space."""
        return resolve_capacity_policy(self)

    @property
    def is_virtual(self) -> bool:
        return self.type in VIRTUAL_SPACE_TYPES

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "location_id": self.location_id,
            "name": self.name,
            "type": self.type,
            "status": self.status.value if isinstance(self.status, SpaceStatus) else self.status,
            "capacity": self.capacity,
            "has_pooled_units": self.has_pooled_units,
            "minimum_booking_duration": self.minimum_booking_duration,
            "maximum_booking_duration": self.maximum_booking_duration,
            "advance_booking_limit": self.advance_booking_limit,
            "allow_same_day_booking": self.allow_same_day_booking,
            "working_hours": self.working_hours,
        }

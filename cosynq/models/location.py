# cosynq/models/location.py
"""
Location and weekly operating-hours models.

A location is a physical coworking site. Its timezone decides what "today"
and "open" mean for every space it contains. Operating hours are stored as
one row per weekday; a schedule is only accepted when it covers all seven
days.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import (
    Boolean,
    Column,
    ForeignKey,
    Index,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
import ulid

from ..core.config import settings
from ..core.enums import ALL_WEEKDAYS, Weekday
from ..core.timezone_utils import minutes_of_day
from ..database import Base
from .base_enum import create_safe_enum
from .types import TimestampMixin

logger = logging.getLogger(__name__)


class LocationOperatingHours(Base):
    """Opening window of a location for one weekday."""

    __tablename__ = "location_operating_hours"

    id = Column(String(26), primary_key=True, default=lambda: str(ulid.ULID()))
    location_id = Column(
        String(26), ForeignKey("locations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    day = Column(create_safe_enum(Weekday, "weekday"), nullable=False)
    is_open = Column(Boolean, nullable=False, default=True)
    open_time = Column(String(5), nullable=True)
    close_time = Column(String(5), nullable=True)
    is_holiday = Column(Boolean, nullable=False, default=False)
    notes = Column(Text, nullable=True)

    location = relationship("Location", back_populates="operating_hours")

    __table_args__ = (UniqueConstraint("location_id", "day", name="uq_location_hours_day"),)

    @property
    def is_overnight(self) -> bool:
        """Close time at or before open time means the window runs past midnight."""
        if not (self.open_time and self.close_time):
            return False
        return minutes_of_day(self.close_time) <= minutes_of_day(self.open_time)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "day": self.day.value if isinstance(self.day, Weekday) else self.day,
            "is_open": self.is_open,
            "open_time": self.open_time,
            "close_time": self.close_time,
            "is_holiday": self.is_holiday,
            "notes": self.notes,
        }


def validate_weekly_hours(entries: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Check that weekly hours name every weekday exactly once.

    Open days must carry ``HH:MM`` open and close times.

    Raises:
        ValueError: If a day is missing, duplicated, or lacks times
    """
    normalized: List[Dict[str, Any]] = []
    seen: set = set()
    for entry in entries:
        day = Weekday(entry["day"])
        if day in seen:
            raise ValueError(f"Operating hours specify {day.value} more than once")
        seen.add(day)
        is_open = bool(entry.get("is_open", True))
        open_time = entry.get("open_time")
        close_time = entry.get("close_time")
        if is_open:
            if not (open_time and close_time):
                raise ValueError(f"Open day {day.value} requires open_time and close_time")
            # Raises ValueError on malformed values
            minutes_of_day(open_time)
            minutes_of_day(close_time)
        normalized.append({**entry, "day": day, "is_open": is_open})

    missing = ALL_WEEKDAYS - seen
    if missing:
        names = ", ".join(sorted(day.value for day in missing))
        raise ValueError(f"Operating hours missing for: {names}")
    return normalized


class Location(Base, TimestampMixin):
    """Coworking site owned by an organization."""

    __tablename__ = "locations"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    organization_id = Column(String(26), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    code = Column(String(20), nullable=True)
    timezone = Column(String(64), nullable=False, default=lambda: settings.default_timezone)
    allow_same_day_booking = Column(Boolean, nullable=False, default=True)
    is_active = Column(Boolean, nullable=False, default=True)

    operating_hours = relationship(
        "LocationOperatingHours",
        back_populates="location",
        cascade="all, delete-orphan",
        lazy="selectin",
    )
    spaces = relationship("Space", back_populates="location")

    __table_args__ = (
        UniqueConstraint("organization_id", "code", name="uq_location_org_code"),
        Index("ix_locations_org_active", "organization_id", "is_active"),
    )

    def __repr__(self) -> str:
        return f"<Location {self.id}: {self.name} ({self.timezone})>"

    def get_operating_hours_for_day(self, day: Weekday) -> Optional[LocationOperatingHours]:
        """Operating-hours row for ``day``, or None when not configured."""
        day = Weekday(day)
        for entry in self.operating_hours:
            if Weekday(entry.day) == day:
                return entry
        return None

    def set_operating_hours(self, entries: Iterable[Dict[str, Any]]) -> None:
        """Replace the weekly schedule after validating it covers all seven days."""
        normalized = validate_weekly_hours(entries)
        self.operating_hours = [
            LocationOperatingHours(
                day=entry["day"],
                is_open=entry["is_open"],
                open_time=entry.get("open_time"),
                close_time=entry.get("close_time"),
                is_holiday=bool(entry.get("is_holiday", False)),
                notes=entry.get("notes"),
            )
            for entry in normalized
        ]
        logger.info(f"Operating hours updated for location {self.name}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "name": self.name,
            "code": self.code,
            "timezone": self.timezone,
            "allow_same_day_booking": self.allow_same_day_booking,
            "operating_hours": [entry.to_dict() for entry in self.operating_hours],
        }

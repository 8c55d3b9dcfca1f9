# tests/helpers.py
"""Shared constants and builders for the test suite."""

from datetime import date, datetime, timezone
from typing import List

import ulid

from cosynq.core import timezone_utils

ORG_ID = str(ulid.ULID())
OTHER_ORG_ID = str(ulid.ULID())
TZ_NAME = "Asia/Kolkata"

# Monday 10:00 IST
FROZEN_NOW = datetime(2030, 1, 7, 4, 30, tzinfo=timezone.utc)
TODAY = date(2030, 1, 7)
TOMORROW = date(2030, 1, 8)
SATURDAY = date(2030, 1, 12)
SUNDAY = date(2030, 1, 13)

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday")


def default_week_hours() -> List[dict]:
    hours = [
        {"day": day, "is_open": True, "open_time": "09:00", "close_time": "18:00"}
        for day in WEEKDAYS
    ]
    hours.append({"day": "saturday", "is_open": True, "open_time": "10:00", "close_time": "14:00"})
    hours.append({"day": "sunday", "is_open": False, "notes": "Closed on Sundays"})
    return hours


def local_time(day: date, hhmm: str, tz_name: str = TZ_NAME) -> datetime:
    """UTC instant for a wall-clock time at the test location."""
    return timezone_utils.localize_wall_time(day, hhmm, tz_name)


def org_headers(organization_id: str = ORG_ID) -> dict:
    return {"X-Organization-ID": organization_id}


class FrozenDatetime(datetime):
    """``datetime`` whose ``now`` always returns ``frozen_at``."""

    frozen_at: datetime = FROZEN_NOW

    @classmethod
    def now(cls, tz=None):
        if tz is None:
            return cls.frozen_at.astimezone(timezone.utc).replace(tzinfo=None)
        return cls.frozen_at.astimezone(tz)

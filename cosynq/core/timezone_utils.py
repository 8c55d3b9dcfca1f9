"""
Timezone utilities for the Cosynq booking backend.

Every location carries an IANA timezone. Instants are stored as UTC; wall
clock questions (what day is it, is the space open) are answered in the
location's zone. All "now" lookups go through this module.
"""

from datetime import date, datetime, time, timedelta
import logging
from typing import Optional

import pytz

from .config import settings
from .enums import Weekday

logger = logging.getLogger(__name__)


def get_timezone(tz_name: Optional[str]):
    """
    Resolve an IANA timezone name to a pytz timezone.

    Unknown names fall back to UTC with a warning.
    """
    name = tz_name or settings.default_timezone
    try:
        return pytz.timezone(name)
    except pytz.UnknownTimeZoneError:
        logger.warning(f"Invalid timezone: {name}, falling back to UTC")
        return pytz.UTC


def ensure_utc(dt: datetime) -> datetime:
    """Return ``dt`` as an aware UTC datetime (naive values are taken as UTC)."""
    if dt.tzinfo is None:
        return pytz.UTC.localize(dt)
    return dt.astimezone(pytz.UTC)


def utc_now() -> datetime:
    """Current instant as an aware UTC datetime."""
    return datetime.now(pytz.UTC)


def current_time_in_timezone(tz_name: Optional[str] = None) -> datetime:
    """
    Get the current datetime in the given timezone.

    Args:
        tz_name: IANA timezone name, defaults to the configured location timezone

    Returns:
        Aware datetime for "now" in that zone
    """
    return datetime.now(get_timezone(tz_name))


def convert_to_timezone(dt: datetime, tz_name: Optional[str] = None) -> datetime:
    """
    Convert an instant to the given timezone.

    Args:
        dt: Datetime to convert (naive is treated as UTC)
        tz_name: Target IANA timezone

    Returns:
        Aware datetime in the target zone
    """
    return ensure_utc(dt).astimezone(get_timezone(tz_name))


def local_date(dt: datetime, tz_name: Optional[str] = None) -> date:
    """Calendar date of ``dt`` as observed in ``tz_name``."""
    return convert_to_timezone(dt, tz_name).date()


def today_in_timezone(tz_name: Optional[str] = None) -> date:
    return current_time_in_timezone(tz_name).date()


def day_of_week_in_timezone(dt: datetime, tz_name: Optional[str] = None) -> Weekday:
    """Weekday of ``dt`` as observed in ``tz_name``."""
    return Weekday.from_date(convert_to_timezone(dt, tz_name))


def parse_hhmm(value: str) -> time:
    """Parse an ``HH:MM`` string into a ``time``."""
    hours, _, minutes = value.strip().partition(":")
    return time(int(hours), int(minutes))


def minutes_of_day(value: str) -> int:
    """Minutes since midnight for an ``HH:MM`` string."""
    parsed = parse_hhmm(value)
    return parsed.hour * 60 + parsed.minute


def localize_wall_time(day: date, wall_time: str, tz_name: Optional[str] = None) -> datetime:
    """
    Build the UTC instant for a wall-clock time on a local calendar day.

    Args:
        day: Local calendar date
        wall_time: ``HH:MM`` in the location's zone
        tz_name: IANA timezone of the location

    Returns:
        Aware UTC datetime
    """
    tz = get_timezone(tz_name)
    local = tz.localize(datetime.combine(day, parse_hhmm(wall_time)))
    return local.astimezone(pytz.UTC)


def is_same_local_day(first: datetime, second: datetime, tz_name: Optional[str] = None) -> bool:
    """Whether two instants fall on the same calendar day in ``tz_name``."""
    return local_date(first, tz_name) == local_date(second, tz_name)


def get_timezone_info(tz_name: Optional[str] = None) -> dict:
    """
    Describe a timezone's current offset and abbreviation.

    Returns:
        Dictionary like ``{"offset": "+5.5h", "name": "IST"}``
    """
    now = current_time_in_timezone(tz_name)
    offset = now.utcoffset() or timedelta(0)
    offset_hours = offset.total_seconds() / 3600
    sign = "+" if offset_hours >= 0 else "-"
    return {
        "offset": f"{sign}{abs(offset_hours):.1f}h",
        "name": now.tzname() or (tz_name or settings.default_timezone),
    }


def format_datetime_for_location(dt: datetime, tz_name: Optional[str] = None) -> dict:
    """
    Format an instant with both UTC and location-local representations.

    Args:
        dt: Datetime to format
        tz_name: Location timezone

    Returns:
        Dictionary with various datetime formats
    """
    local_dt = convert_to_timezone(dt, tz_name)
    return {
        "iso": ensure_utc(dt).isoformat(),
        "local": local_dt.isoformat(),
        "timezone": str(get_timezone(tz_name)),
        "date": local_dt.date().isoformat(),
        "time": local_dt.time().isoformat(),
    }

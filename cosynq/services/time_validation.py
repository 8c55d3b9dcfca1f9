# cosynq/services/time_validation.py
"""
Booking time validation for the Cosynq booking backend.

Pure rules, no database access: advance-notice limits, same-day policy,
location operating hours, slot generation and the modify/cancel cutoff
windows. Wall-clock questions are answered in the location's timezone;
comparisons between instants are done in UTC.

Each check returns a result object; the booking service decides whether a
failed result becomes an exception.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
import logging
import math
from typing import Any, Dict, Iterable, List, Optional

from ..core import timezone_utils
from ..core.config import settings
from ..core.enums import Weekday

logger = logging.getLogger(__name__)

SHORT_NOTICE_WARNING = (
    "This is a short-notice booking. Please ensure all arrangements are in place."
)
FAR_ADVANCE_WARNING = (
    "This booking is far in advance. Please confirm availability closer to the date."
)
WEEKEND_WARNING = "This is a weekend booking. Please verify weekend rates and availability."


@dataclass(frozen=True)
class TimeValidationConfig:
    minimum_advance_minutes: int = field(default_factory=lambda: settings.minimum_advance_minutes)
    maximum_advance_days: int = field(default_factory=lambda: settings.maximum_advance_days)
    allow_past_bookings: bool = False
    respect_operating_hours: bool = True


@dataclass(frozen=True)
class TimeUntilBooking:
    minutes: int
    hours: int
    days: int

    def to_dict(self) -> Dict[str, int]:
        return {"minutes": self.minutes, "hours": self.hours, "days": self.days}


@dataclass
class TimeValidationResult:
    is_valid: bool
    errors: List[str]
    warnings: List[str]
    time_until_booking: TimeUntilBooking

    def to_dict(self) -> Dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "time_until_booking": self.time_until_booking.to_dict(),
        }


@dataclass(frozen=True)
class BusinessHoursInfo:
    is_within_hours: bool
    location_open: bool
    day_hours: Dict[str, Any]


@dataclass(frozen=True)
class TimeSlot:
    start_time: datetime
    end_time: datetime
    is_available: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat(),
            "is_available": self.is_available,
        }


@dataclass(frozen=True)
class PolicyWindowResult:
    allowed: bool
    hours_remaining: float
    reason: Optional[str] = None

    @property
    def can_modify(self) -> bool:
        return self.allowed

    @property
    def can_cancel(self) -> bool:
        return self.allowed


def _location_timezone(location: Any) -> str:
    return getattr(location, "timezone", None) or settings.default_timezone


def _now(now: Optional[datetime], tz_name: Optional[str] = None) -> datetime:
    if now is None:
        now = timezone_utils.current_time_in_timezone(tz_name)
    return timezone_utils.ensure_utc(now)


def compute_time_until_booking(start: datetime, now: datetime) -> TimeUntilBooking:
    """Minutes, hours and days until ``start``, each floored independently."""
    seconds = (timezone_utils.ensure_utc(start) - timezone_utils.ensure_utc(now)).total_seconds()
    return TimeUntilBooking(
        minutes=math.floor(seconds / 60),
        hours=math.floor(seconds / 3600),
        days=math.floor(seconds / 86400),
    )


def check_business_hours(
    start: datetime, end: datetime, location: Any = None
) -> BusinessHoursInfo:
    """
    Check ``[start, end)`` against the location's hours for the start's weekday.

    Minutes of day are compared in the location's timezone. A window whose
    close time is not after its open time runs overnight, so the booking may
    end after midnight. Without a location every time is within hours.
    """
    if location is None:
        return BusinessHoursInfo(
            is_within_hours=True, location_open=True, day_hours={"is_open": True}
        )

    tz_name = _location_timezone(location)
    day = timezone_utils.day_of_week_in_timezone(start, tz_name)
    hours = location.get_operating_hours_for_day(day)

    if hours is None or not hours.is_open:
        return BusinessHoursInfo(
            is_within_hours=False,
            location_open=False,
            day_hours={
                "is_open": False,
                "notes": (hours.notes if hours is not None else None)
                or "Location is closed on this day",
            },
        )

    start_local = timezone_utils.convert_to_timezone(start, tz_name)
    end_local = timezone_utils.convert_to_timezone(end, tz_name)
    open_minutes = timezone_utils.minutes_of_day(hours.open_time)
    close_minutes = timezone_utils.minutes_of_day(hours.close_time)
    if close_minutes <= open_minutes:
        close_minutes += 24 * 60

    start_minutes = start_local.hour * 60 + start_local.minute
    day_offset = (end_local.date() - start_local.date()).days
    end_minutes = day_offset * 24 * 60 + end_local.hour * 60 + end_local.minute

    return BusinessHoursInfo(
        is_within_hours=start_minutes >= open_minutes and end_minutes <= close_minutes,
        location_open=True,
        day_hours={
            "is_open": True,
            "open_time": hours.open_time,
            "close_time": hours.close_time,
            "notes": hours.notes,
        },
    )


def validate_booking_time(
    start: datetime,
    end: datetime,
    location: Any = None,
    config: Optional[TimeValidationConfig] = None,
    *,
    now: Optional[datetime] = None,
) -> TimeValidationResult:
    """
    Validate a requested booking window against the time rules.

    All failing rules are reported together; warnings never block.

    Args:
        start: Requested start (naive values are UTC)
        end: Requested end
        location: Location providing timezone, same-day policy and hours
        config: Overrides for the default limits
        now: Reference instant; defaults to the current time

    Returns:
        TimeValidationResult with errors, warnings and time-until-booking
    """
    config = config or TimeValidationConfig()
    tz_name = _location_timezone(location)
    start = timezone_utils.ensure_utc(start)
    end = timezone_utils.ensure_utc(end)
    now = _now(now, tz_name)
    errors: List[str] = []
    warnings: List[str] = []

    if start >= end:
        errors.append("Start time must be before end time")

    until = compute_time_until_booking(start, now)
    days_until = (start - now).total_seconds() / 86400

    if not config.allow_past_bookings and start <= now:
        errors.append("Bookings cannot be made for past dates and times")

    if start > now and until.minutes < config.minimum_advance_minutes:
        errors.append(
            f"Bookings must be made at least {config.minimum_advance_minutes} minutes in advance"
        )

    if days_until > config.maximum_advance_days:
        errors.append(
            f"Bookings can only be made up to {config.maximum_advance_days} days in advance"
        )

    if (
        location is not None
        and not location.allow_same_day_booking
        and timezone_utils.is_same_local_day(start, now, tz_name)
    ):
        errors.append("Same-day bookings are not allowed for this location")

    if config.respect_operating_hours and location is not None:
        business_hours = check_business_hours(start, end, location)
        if not business_hours.location_open:
            day = timezone_utils.day_of_week_in_timezone(start, tz_name)
            errors.append(f"Location is closed on {day.value}s")
        elif not business_hours.is_within_hours:
            day_hours = business_hours.day_hours
            errors.append(
                "Booking time must be within operating hours: "
                f"{day_hours['open_time']} - {day_hours['close_time']}"
            )

    if config.minimum_advance_minutes <= until.minutes < settings.short_notice_warning_minutes:
        warnings.append(SHORT_NOTICE_WARNING)

    if days_until > settings.far_advance_warning_days:
        warnings.append(FAR_ADVANCE_WARNING)

    if timezone_utils.day_of_week_in_timezone(start, tz_name).is_weekend:
        warnings.append(WEEKEND_WARNING)

    return TimeValidationResult(
        is_valid=not errors,
        errors=errors,
        warnings=warnings,
        time_until_booking=until,
    )


def _first_slot_today(now: datetime, tz_name: str, stride_minutes: int) -> datetime:
    """Next stride boundary at or after ``now`` on the local clock."""
    now_local = timezone_utils.convert_to_timezone(now, tz_name)
    hour_start = now_local.replace(minute=0, second=0, microsecond=0)
    elapsed = (now_local - hour_start).total_seconds()
    steps = math.ceil(elapsed / (stride_minutes * 60))
    return timezone_utils.ensure_utc(hour_start) + timedelta(minutes=steps * stride_minutes)


def generate_available_time_slots(
    target_date: date,
    duration_minutes: int,
    location: Any = None,
    existing_bookings: Iterable[Any] = (),
    *,
    now: Optional[datetime] = None,
    stride_minutes: Optional[int] = None,
) -> List[TimeSlot]:
    """
    Candidate slots of ``duration_minutes`` on a local calendar day.

    Slots start on a fixed stride across the location's window for that
    day (09:00-18:00 without a location). For today, slots start at the next
    stride boundary after now. A slot is unavailable when it overlaps any
    existing booking. Closed days and overnight windows yield no slots.

    Args:
        target_date: Calendar day in the location's timezone
        duration_minutes: Length of each slot
        location: Location providing hours and timezone
        existing_bookings: Objects with ``start_time``/``end_time``
        now: Reference instant; defaults to the current time
        stride_minutes: Distance between slot starts

    Returns:
        Slots in start order with UTC datetimes
    """
    stride = stride_minutes or settings.slot_stride_minutes
    tz_name = _location_timezone(location)
    now = _now(now, tz_name)

    if location is not None:
        hours = location.get_operating_hours_for_day(Weekday.from_date(target_date))
        if hours is None or not hours.is_open:
            return []
        if hours.is_overnight:
            logger.debug(f"Skipping slot generation for overnight window on {target_date}")
            return []
        open_time, close_time = hours.open_time, hours.close_time
    else:
        open_time, close_time = settings.default_open_time, settings.default_close_time

    window_start = timezone_utils.localize_wall_time(target_date, open_time, tz_name)
    window_end = timezone_utils.localize_wall_time(target_date, close_time, tz_name)

    is_today = timezone_utils.local_date(now, tz_name) == target_date
    if is_today and window_start < now:
        window_start = _first_slot_today(now, tz_name, stride)

    busy = [
        (timezone_utils.ensure_utc(b.start_time), timezone_utils.ensure_utc(b.end_time))
        for b in existing_bookings
    ]
    duration = timedelta(minutes=duration_minutes)
    slots: List[TimeSlot] = []
    current = window_start
    while current + duration <= window_end:
        slot_end = current + duration
        has_conflict = any(
            current < busy_end and slot_end > busy_start for busy_start, busy_end in busy
        )
        slots.append(TimeSlot(start_time=current, end_time=slot_end, is_available=not has_conflict))
        current += timedelta(minutes=stride)

    return slots


def format_time_validation_errors(result: TimeValidationResult) -> Dict[str, Any]:
    """API-facing summary: first error as the message plus the full lists."""
    if result.is_valid:
        message = "Time validation passed"
        details: List[str] = []
    else:
        message = result.errors[0] if result.errors else "Invalid booking time"
        details = list(result.errors)
    return {
        "message": message,
        "details": details,
        "warnings": list(result.warnings) or None,
    }


def _policy_window(
    start: datetime,
    minimum_hours: float,
    tz_name: Optional[str],
    now: Optional[datetime],
    action: str,
) -> PolicyWindowResult:
    hours_until = (timezone_utils.ensure_utc(start) - _now(now, tz_name)).total_seconds() / 3600
    if hours_until < minimum_hours:
        return PolicyWindowResult(
            allowed=False,
            hours_remaining=max(0.0, hours_until),
            reason=(
                f"Bookings cannot be {action} less than {minimum_hours:g} hours before start time"
            ),
        )
    return PolicyWindowResult(allowed=True, hours_remaining=hours_until)


def can_modify_booking(
    start: datetime,
    tz_name: Optional[str] = None,
    minimum_hours: Optional[float] = None,
    *,
    now: Optional[datetime] = None,
) -> PolicyWindowResult:
    """Whether a booking starting at ``start`` may still be modified (default 4h cutoff)."""
    if minimum_hours is None:
        minimum_hours = settings.modification_cutoff_hours
    return _policy_window(start, minimum_hours, tz_name, now, "modified")


def can_cancel_booking(
    start: datetime,
    tz_name: Optional[str] = None,
    minimum_hours: Optional[float] = None,
    *,
    now: Optional[datetime] = None,
) -> PolicyWindowResult:
    """Whether a booking starting at ``start`` may still be cancelled (default 2h cutoff)."""
    if minimum_hours is None:
        minimum_hours = settings.cancellation_cutoff_hours
    return _policy_window(start, minimum_hours, tz_name, now, "cancelled")

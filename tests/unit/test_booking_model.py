"""Tests for the booking lifecycle on the model."""

from datetime import datetime, timedelta, timezone

from pydantic import ValidationError
import pytest

from cosynq.core.config import Settings, settings
from cosynq.core.enums import BookingStatus, PaymentStatus
from cosynq.core.exceptions import InvalidTransitionException
from cosynq.models.booking import BOOKING_REFERENCE_PATTERN, Booking, booking_reference_pattern
from cosynq.services.booking_service import generate_booking_reference

pytestmark = pytest.mark.unit

START = datetime(2030, 1, 8, 4, 30, tzinfo=timezone.utc)


def make_booking(status=None) -> Booking:
    kwargs = {"start_time": START, "end_time": START + timedelta(minutes=90)}
    if status is not None:
        kwargs["status"] = status
    return Booking(**kwargs)


def test_defaults():
    booking = make_booking()

    assert booking.status == BookingStatus.PENDING
    assert booking.payment_status == PaymentStatus.PENDING
    assert booking.checked_in is False
    assert booking.attendee_count == 1
    assert booking.duration_minutes == 90


@pytest.mark.parametrize(
    "status, holds",
    [
        (BookingStatus.PENDING, True),
        (BookingStatus.CONFIRMED, True),
        (BookingStatus.CANCELLED, False),
        (BookingStatus.COMPLETED, False),
        (BookingStatus.NO_SHOW, False),
    ],
)
def test_only_active_bookings_hold_capacity(status, holds):
    assert make_booking(status).holds_capacity is holds


def test_pending_to_confirmed_to_completed():
    booking = make_booking()

    booking.confirm()
    assert booking.status == BookingStatus.CONFIRMED
    assert booking.confirmed_at is not None

    booking.complete()
    assert booking.status == BookingStatus.COMPLETED
    assert booking.completed_at is not None


def test_cancel_keeps_reason_and_timestamp():
    booking = make_booking(BookingStatus.CONFIRMED)

    booking.cancel("Team offsite moved")

    assert booking.status == BookingStatus.CANCELLED
    assert booking.cancel_reason == "Team offsite moved"
    assert booking.cancelled_at is not None


def test_confirmed_booking_can_be_marked_no_show():
    booking = make_booking(BookingStatus.CONFIRMED)

    booking.mark_no_show()

    assert booking.status == BookingStatus.NO_SHOW


@pytest.mark.parametrize(
    "status, action",
    [
        (BookingStatus.PENDING, "complete"),
        (BookingStatus.PENDING, "mark_no_show"),
        (BookingStatus.CONFIRMED, "confirm"),
        (BookingStatus.CANCELLED, "confirm"),
        (BookingStatus.CANCELLED, "cancel"),
        (BookingStatus.COMPLETED, "cancel"),
        (BookingStatus.NO_SHOW, "complete"),
    ],
)
def test_invalid_transitions_raise(status, action):
    booking = make_booking(status)

    with pytest.raises(InvalidTransitionException) as exc_info:
        getattr(booking, action)()

    assert exc_info.value.code == "INVALID_STATUS_TRANSITION"
    assert booking.status == status


def test_invalid_transition_message():
    booking = make_booking(BookingStatus.COMPLETED)

    with pytest.raises(InvalidTransitionException) as exc_info:
        booking.cancel()

    assert exc_info.value.message == "Cannot change booking status from Completed to Cancelled"
    assert exc_info.value.details == {
        "current_status": "Completed",
        "requested_status": "Cancelled",
    }


def test_is_cancellable():
    assert make_booking(BookingStatus.PENDING).is_cancellable
    assert make_booking(BookingStatus.CONFIRMED).is_cancellable
    assert not make_booking(BookingStatus.COMPLETED).is_cancellable


def test_to_dict_carries_legacy_keys():
    booking = make_booking()
    booking.booking_reference = "BKABCDEFGH"

    data = booking.to_dict()

    assert data["start"] == data["start_time"] == "2030-01-08T04:30:00+00:00"
    assert data["end"] == data["end_time"]
    assert data["status"] == "Pending"
    assert data["total_amount"] == 0.0


def test_generated_reference_format():
    references = {generate_booking_reference() for _ in range(50)}

    assert all(BOOKING_REFERENCE_PATTERN.match(ref) for ref in references)
    assert len(references) > 1


def test_reference_column_fits_longest_configured_prefix(monkeypatch):
    monkeypatch.setattr(settings, "booking_reference_prefix", "COWORK01")

    reference = generate_booking_reference()

    assert reference.startswith("COWORK01")
    assert booking_reference_pattern().match(reference)
    assert not booking_reference_pattern("BK").match(reference)
    assert len(reference) <= Booking.__table__.c.booking_reference.type.length


@pytest.mark.parametrize("prefix", ["", "bk", "BK-", "TOOLONGPREFIX"])
def test_reference_prefix_setting_is_validated(prefix):
    with pytest.raises(ValidationError):
        Settings(_env_file=None, booking_reference_prefix=prefix)

"""Tests for the location's weekly operating hours."""

import logging

import pytest
from tests.helpers import default_week_hours

from cosynq.core.enums import Weekday
from cosynq.models.location import Location

pytestmark = pytest.mark.unit


def new_location() -> Location:
    return Location(
        organization_id="01HF4G12ABCDEF3456789XYZAB",
        name="Indiranagar",
        timezone="Asia/Kolkata",
    )


def test_set_operating_hours_logs_location_name(caplog):
    location = new_location()

    with caplog.at_level(logging.INFO, logger="cosynq.models.location"):
        location.set_operating_hours(default_week_hours())

    assert "Operating hours updated for location Indiranagar" in caplog.text
    assert "location None" not in caplog.text


def test_set_operating_hours_replaces_schedule():
    location = new_location()
    location.set_operating_hours(default_week_hours())

    sunday = location.get_operating_hours_for_day(Weekday.SUNDAY)
    assert len(location.operating_hours) == 7
    assert sunday.is_open is False
    assert sunday.notes == "Closed on Sundays"


def test_incomplete_week_is_rejected():
    hours = [entry for entry in default_week_hours() if entry["day"] != "sunday"]

    with pytest.raises(ValueError, match="missing for: sunday"):
        new_location().set_operating_hours(hours)


def test_duplicate_day_is_rejected():
    hours = default_week_hours() + [{"day": "monday", "is_open": False}]

    with pytest.raises(ValueError, match="monday more than once"):
        new_location().set_operating_hours(hours)

# tests/conftest.py
"""
Pytest configuration for the Cosynq booking backend.

Every test gets its own in-memory SQLite database and a clock frozen at
Monday 2030-01-07 10:00 in Asia/Kolkata (04:30 UTC). The default test
location is open 09:00-18:00 on weekdays, 10:00-14:00 on Saturday and
closed on Sunday.
"""

import os

# Set testing mode BEFORE any cosynq imports
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, List, Optional

from fastapi.testclient import TestClient
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool
from tests.helpers import (
    FROZEN_NOW,
    ORG_ID,
    TZ_NAME,
    FrozenDatetime,
    default_week_hours,
)

from cosynq.api.dependencies import get_db
from cosynq.core import timezone_utils
from cosynq.core.enums import BookingStatus, ResourceUnitStatus
from cosynq.database import Base
from cosynq.main import app
import cosynq.models  # noqa: F401
from cosynq.models.booking import Booking
from cosynq.models.contact import Contact
from cosynq.models.location import Location
from cosynq.models.resource_unit import ResourceUnit
from cosynq.models.space import Space
from cosynq.services.base import BaseService
from cosynq.services.booking_service import generate_booking_reference


@pytest.fixture(autouse=True)
def frozen_clock(monkeypatch: pytest.MonkeyPatch) -> Callable[[datetime], datetime]:
    """
    Freeze the clock used by the time rules.

    Returns a callable that moves the frozen instant, e.g.
    ``frozen_clock(FROZEN_NOW + timedelta(hours=3))``.
    """

    def _freeze(at: datetime) -> datetime:
        frozen = type("FrozenDatetime", (FrozenDatetime,), {"frozen_at": at})
        monkeypatch.setattr(timezone_utils, "datetime", frozen)
        return at

    _freeze(FROZEN_NOW)
    return _freeze


@pytest.fixture(autouse=True)
def _reset_service_metrics():
    BaseService._class_metrics.clear()
    yield


@pytest.fixture(scope="function")
def db():
    """
    Create a fresh database for each test.

    The in-memory engine uses a single shared connection so the session
    also works from the TestClient's worker threads.
    """
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=engine, expire_on_commit=False
    )
    session = TestSessionLocal()

    yield session

    session.rollback()
    session.close()
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def client(db: Session):
    """Create a test client with the test database."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    test_client = TestClient(app)

    yield test_client

    app.dependency_overrides.clear()
    test_client.close()


# ============================================================================
# FACTORIES
# ============================================================================


@pytest.fixture
def make_location(db: Session):
    def _make(
        organization_id: str = ORG_ID,
        timezone_name: str = TZ_NAME,
        hours: Optional[List[dict]] = None,
        allow_same_day_booking: bool = True,
        name: str = "Indiranagar Hub",
    ) -> Location:
        location = Location(
            organization_id=organization_id,
            name=name,
            timezone=timezone_name,
            allow_same_day_booking=allow_same_day_booking,
        )
        location.set_operating_hours(hours if hours is not None else default_week_hours())
        db.add(location)
        db.commit()
        return location

    return _make


@pytest.fixture
def make_space(db: Session):
    def _make(
        location: Optional[Location] = None,
        capacity: Optional[int] = 1,
        has_pooled_units: bool = False,
        organization_id: Optional[str] = None,
        **overrides,
    ) -> Space:
        space = Space(
            organization_id=organization_id
            or (location.organization_id if location is not None else ORG_ID),
            location_id=location.id if location is not None else None,
            name=overrides.pop("name", "Board Room"),
            type=overrides.pop("type", "Meeting Room"),
            capacity=capacity,
            has_pooled_units=has_pooled_units,
            **overrides,
        )
        db.add(space)
        db.commit()
        return space

    return _make


@pytest.fixture
def make_units(db: Session):
    def _make(space: Space, count: int, prefix: str = "Desk") -> List[ResourceUnit]:
        base = datetime(2029, 12, 1, tzinfo=timezone.utc)
        units = [
            ResourceUnit(
                organization_id=space.organization_id,
                space_id=space.id,
                label=f"{prefix} #{number}",
                status=ResourceUnitStatus.ACTIVE,
                created_at=base + timedelta(seconds=number),
            )
            for number in range(1, count + 1)
        ]
        db.add_all(units)
        db.commit()
        return units

    return _make


@pytest.fixture
def make_booking(db: Session):
    def _make(
        space: Space,
        start: datetime,
        end: datetime,
        status: BookingStatus = BookingStatus.PENDING,
        resource_unit_id: Optional[str] = None,
    ) -> Booking:
        booking = Booking(
            organization_id=space.organization_id,
            space_id=space.id,
            resource_unit_id=resource_unit_id,
            start_time=start,
            end_time=end,
            status=status,
            booking_reference=generate_booking_reference(),
            customer_name="Asha Rao",
            customer_email="asha@example.com",
            total_amount=Decimal("0"),
        )
        db.add(booking)
        db.commit()
        return booking

    return _make


@pytest.fixture
def make_contact(db: Session):
    def _make(organization_id: str = ORG_ID) -> Contact:
        contact = Contact(
            organization_id=organization_id,
            first_name="Vikram",
            last_name="Iyer",
            email="vikram@example.com",
        )
        db.add(contact)
        db.commit()
        return contact

    return _make


@pytest.fixture
def location(make_location) -> Location:
    return make_location()

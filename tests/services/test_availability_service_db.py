# tests/services/test_availability_service_db.py
"""AvailabilityService against real bookings and resource units."""

import pytest
import ulid
from tests.helpers import ORG_ID, OTHER_ORG_ID, TOMORROW, local_time

from cosynq.core.enums import BookingStatus, ResourceUnitStatus
from cosynq.core.exceptions import NotFoundException, ValidationException
from cosynq.models.resource_unit import ResourceUnit
from cosynq.services.availability_service import AvailabilityService


@pytest.fixture
def service(db):
    return AvailabilityService(db)


@pytest.fixture
def window():
    return local_time(TOMORROW, "10:00"), local_time(TOMORROW, "11:00")


class TestCheckCapacity:
    def test_counted_space_with_room(self, service, location, make_space, make_booking, window):
        space = make_space(location, capacity=3)
        for _ in range(2):
            make_booking(space, *window, status=BookingStatus.CONFIRMED)

        result = service.check_capacity(space.id, *window, ORG_ID)

        assert result.available is True
        assert result.reason is None
        assert result.details == {"capacity": 3, "overlapping": 2}

    def test_counted_space_at_capacity(self, service, location, make_space, make_booking, window):
        space = make_space(location, capacity=3)
        for _ in range(3):
            make_booking(space, *window, status=BookingStatus.CONFIRMED)

        result = service.check_capacity(space.id, *window, ORG_ID)

        assert result.available is False
        assert result.reason == "OVER_CAPACITY"
        assert result.details["overlapping"] == 3

    def test_partial_overlap_counts(self, service, location, make_space, make_booking, window):
        space = make_space(location, capacity=2)
        make_booking(space, local_time(TOMORROW, "09:00"), local_time(TOMORROW, "10:30"))
        make_booking(space, local_time(TOMORROW, "10:45"), local_time(TOMORROW, "12:00"))

        result = service.check_capacity(space.id, *window, ORG_ID)
        assert result.available is False

    def test_exclude_booking_frees_its_place(
        self, service, location, make_space, make_booking, window
    ):
        space = make_space(location)
        booking = make_booking(space, *window)

        assert service.check_capacity(space.id, *window, ORG_ID).available is False
        result = service.check_capacity(space.id, *window, ORG_ID, booking.id)
        assert result.available is True
        assert result.details["overlapping"] == 0

    def test_unlimited_space_is_always_available(
        self, service, location, make_space, make_booking, window
    ):
        space = make_space(location, capacity=None, type="Virtual Address")
        for _ in range(10):
            make_booking(space, *window, status=BookingStatus.CONFIRMED)

        result = service.check_capacity(space.id, *window, ORG_ID)
        assert result.available is True
        assert result.details == {"capacity": None, "overlapping": 0}

    def test_missing_space_is_reported_not_raised(self, service, window):
        result = service.check_capacity(str(ulid.ULID()), *window, ORG_ID)
        assert result.available is False
        assert result.reason == "Space not found"
        assert result.is_not_found

    def test_space_of_other_organization(self, service, location, make_space, window):
        space = make_space(location)
        result = service.check_capacity(space.id, *window, OTHER_ORG_ID)
        assert result.reason == "Space not found"


class TestPooledUnits:
    def test_assigns_first_free_unit(
        self, service, location, make_space, make_units, make_booking, window
    ):
        space = make_space(location, capacity=3, has_pooled_units=True, type="Hot Desk")
        u1, u2, u3 = make_units(space, 3)
        make_booking(space, *window, status=BookingStatus.CONFIRMED, resource_unit_id=u1.id)
        make_booking(space, *window, status=BookingStatus.PENDING, resource_unit_id=u2.id)

        result = service.check_capacity(space.id, *window, ORG_ID)

        assert result.available is True
        assert result.details["available_unit_id"] == u3.id
        assert result.details["active_units"] == 3
        assert result.details["overlapping"] == 2

    def test_overlapping_counts_bookings_without_unit(
        self, service, location, make_space, make_units, make_booking, window
    ):
        space = make_space(location, capacity=3, has_pooled_units=True, type="Hot Desk")
        u1, u2, _ = make_units(space, 3)
        make_booking(space, *window, status=BookingStatus.CONFIRMED, resource_unit_id=u1.id)
        # Booked before the space was pooled, so it holds no unit
        make_booking(space, *window, status=BookingStatus.CONFIRMED)

        result = service.check_capacity(space.id, *window, ORG_ID)

        assert result.available is True
        assert result.details["available_unit_id"] == u2.id
        assert result.details["overlapping"] == 2

    def test_all_units_busy(self, service, location, make_space, make_units, make_booking, window):
        space = make_space(location, capacity=2, has_pooled_units=True, type="Hot Desk")
        for unit in make_units(space, 2):
            make_booking(space, *window, resource_unit_id=unit.id)

        result = service.check_capacity(space.id, *window, ORG_ID)

        assert result.available is False
        assert result.reason == "OVER_CAPACITY"
        assert result.details["available_unit_id"] is None

    def test_disabled_units_are_never_assigned(
        self, service, location, make_space, make_units, window
    ):
        space = make_space(location, capacity=2, has_pooled_units=True, type="Hot Desk")
        first, second = make_units(space, 2)

        service.disable_resource_unit(first.id, space.id, ORG_ID)

        assert service.assign_resource_unit(space.id, *window, ORG_ID) == second.id

        service.disable_resource_unit(second.id, space.id, ORG_ID)
        assert service.check_capacity(space.id, *window, ORG_ID).available is False

        enabled = service.enable_resource_unit(first.id, space.id, ORG_ID)
        assert enabled.status == ResourceUnitStatus.ACTIVE
        assert service.assign_resource_unit(space.id, *window, ORG_ID) == first.id

    def test_preferred_unit_is_kept_when_free(
        self, service, location, make_space, make_units, make_booking, window
    ):
        space = make_space(location, capacity=3, has_pooled_units=True, type="Hot Desk")
        units = make_units(space, 3)
        booking = make_booking(space, *window, resource_unit_id=units[2].id)

        result = service.check_capacity(
            space.id,
            *window,
            ORG_ID,
            booking.id,
            preferred_unit_id=units[2].id,
        )
        assert result.assigned_unit_id == units[2].id

    def test_assign_on_non_pooled_space(self, service, location, make_space, window):
        space = make_space(location, capacity=4)
        assert service.assign_resource_unit(space.id, *window, ORG_ID) is None

    def test_unknown_unit(self, service, location, make_space):
        space = make_space(location, capacity=2, has_pooled_units=True)
        with pytest.raises(NotFoundException):
            service.disable_resource_unit(str(ulid.ULID()), space.id, ORG_ID)


class TestGenerateResourceUnits:
    def _labels(self, db, space):
        rows = db.query(ResourceUnit.label).filter(ResourceUnit.space_id == space.id).all()
        return sorted(row[0] for row in rows)

    def test_creates_only_the_shortfall(self, service, db, location, make_space, make_units):
        space = make_space(location, capacity=5, has_pooled_units=True, type="Private Cabin")
        make_units(space, 2, prefix="Cabin")

        created = service.generate_resource_units(space.id, ORG_ID, 5, "Cabin")

        assert [unit.label for unit in created] == ["Cabin #3", "Cabin #4", "Cabin #5"]
        assert all(unit.organization_id == ORG_ID for unit in created)
        assert self._labels(db, space) == [f"Cabin #{n}" for n in range(1, 6)]

    def test_is_idempotent(self, service, db, location, make_space):
        space = make_space(location, capacity=4, has_pooled_units=True)

        assert len(service.generate_resource_units(space.id, ORG_ID, 4, "Desk")) == 4
        assert service.generate_resource_units(space.id, ORG_ID, 4, "Desk") == []
        assert service.generate_resource_units(space.id, ORG_ID, 2, "Desk") == []
        assert len(self._labels(db, space)) == 4

    def test_skips_labels_already_taken(self, service, db, location, make_space):
        space = make_space(location, capacity=3, has_pooled_units=True)
        db.add(
            ResourceUnit(organization_id=ORG_ID, space_id=space.id, label="Desk #2")
        )
        db.commit()

        created = service.generate_resource_units(space.id, ORG_ID, 3, "Desk")

        assert [unit.label for unit in created] == ["Desk #3", "Desk #4"]
        assert len(self._labels(db, space)) == 3

    def test_counts_disabled_units(self, service, db, location, make_space, make_units):
        space = make_space(location, capacity=3, has_pooled_units=True)
        units = make_units(space, 3)
        service.disable_resource_unit(units[0].id, space.id, ORG_ID)

        assert service.generate_resource_units(space.id, ORG_ID, 3, "Desk") == []

    def test_unknown_space(self, service):
        with pytest.raises(NotFoundException):
            service.generate_resource_units(str(ulid.ULID()), ORG_ID, 3, "Desk")

    def test_space_of_other_organization(self, service, location, make_space):
        space = make_space(location, capacity=3, has_pooled_units=True)
        with pytest.raises(NotFoundException):
            service.generate_resource_units(space.id, OTHER_ORG_ID, 3, "Desk")

    @pytest.mark.parametrize("count,prefix", [(-1, "Desk"), (3, "   ")])
    def test_rejects_bad_input(self, service, location, make_space, count, prefix):
        space = make_space(location, capacity=3, has_pooled_units=True)
        with pytest.raises(ValidationException):
            service.generate_resource_units(space.id, ORG_ID, count, prefix)

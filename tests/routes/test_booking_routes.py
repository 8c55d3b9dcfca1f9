# tests/routes/test_booking_routes.py
"""
Tests for the v1 booking routes.

The routes only translate HTTP to service calls; these tests check the
status codes, the error envelope and the response shape.
"""

from fastapi.testclient import TestClient
import pytest
import ulid
from tests.helpers import OTHER_ORG_ID, SUNDAY, TODAY, TOMORROW, local_time, org_headers

from cosynq.core.enums import BookingStatus

BASE = "/api/v1/bookings"


def _iso(day, hhmm):
    return local_time(day, hhmm).isoformat()


@pytest.fixture
def space(location, make_space):
    return make_space(location)


def _create_payload(space, start="10:00", end="11:00", **extra):
    payload = {
        "spaceId": space.id,
        "start": _iso(TOMORROW, start),
        "end": _iso(TOMORROW, end),
        "customerName": "Kabir Shah",
        "customerEmail": "kabir@example.com",
    }
    payload.update(extra)
    return payload


class TestCreateBookingRoute:
    def test_create_returns_201_with_both_time_spellings(self, client: TestClient, space):
        response = client.post(BASE, json=_create_payload(space), headers=org_headers())

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "Pending"
        assert body["payment_status"] == "Pending"
        assert body["checked_in"] is False
        assert body["space_id"] == space.id
        assert body["booking_reference"].startswith("BK")
        assert body["start"] == body["start_time"]
        assert body["end"] == body["end_time"]

    def test_conflict_returns_409(self, client: TestClient, space, make_booking):
        existing = make_booking(
            space,
            local_time(TOMORROW, "10:00"),
            local_time(TOMORROW, "11:00"),
            status=BookingStatus.CONFIRMED,
        )

        response = client.post(
            BASE, json=_create_payload(space, "10:30", "11:30"), headers=org_headers()
        )

        assert response.status_code == 409
        detail = response.json()["detail"]
        assert detail["code"] == "OVER_CAPACITY"
        assert detail["details"]["overlapping"] == 1
        assert detail["details"]["conflicting_bookings"][0]["id"] == existing.id

    def test_time_validation_failure_returns_400(self, client: TestClient, space):
        payload = _create_payload(space)
        payload["start"] = _iso(SUNDAY, "10:00")
        payload["end"] = _iso(SUNDAY, "11:00")

        response = client.post(BASE, json=payload, headers=org_headers())

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["code"] == "TIME_VALIDATION_FAILED"
        assert detail["message"] == "Location is closed on sundays"
        assert detail["details"]["business_rules"]["minimum_advance_minutes"] == 30

    def test_unknown_space_returns_404(self, client: TestClient, space):
        payload = _create_payload(space, spaceId=str(ulid.ULID()))
        response = client.post(BASE, json=payload, headers=org_headers())
        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "SPACE_NOT_FOUND"

    def test_missing_fields_return_400_envelope(self, client: TestClient, space):
        response = client.post(BASE, json={"spaceId": space.id}, headers=org_headers())

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert detail["code"] == "VALIDATION_ERROR"
        assert detail["details"]["errors"]

    def test_missing_organization_header(self, client: TestClient, space):
        response = client.post(BASE, json=_create_payload(space))
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "ORGANIZATION_REQUIRED"

    def test_malformed_organization_header(self, client: TestClient, space):
        response = client.post(BASE, json=_create_payload(space), headers=org_headers("acme"))
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "INVALID_ORGANIZATION_ID"


class TestCheckCapacityRoute:
    def test_reports_capacity(self, client: TestClient, location, make_space, make_booking):
        space = make_space(location, capacity=3)
        for _ in range(2):
            make_booking(
                space,
                local_time(TOMORROW, "10:00"),
                local_time(TOMORROW, "11:00"),
                status=BookingStatus.CONFIRMED,
            )

        response = client.post(
            f"{BASE}/check-capacity",
            json={
                "spaceId": space.id,
                "startTime": _iso(TOMORROW, "10:00"),
                "endTime": _iso(TOMORROW, "11:00"),
            },
            headers=org_headers(),
        )

        assert response.status_code == 200
        assert response.json() == {
            "available": True,
            "reason": None,
            "details": {"capacity": 3, "overlapping": 2},
        }

    def test_missing_space_is_unavailable_not_404(self, client: TestClient):
        response = client.post(
            f"{BASE}/check-capacity",
            json={
                "space_id": str(ulid.ULID()),
                "start_time": _iso(TOMORROW, "10:00"),
                "end_time": _iso(TOMORROW, "11:00"),
            },
            headers=org_headers(),
        )

        assert response.status_code == 200
        assert response.json()["available"] is False
        assert response.json()["reason"] == "Space not found"

    def test_inverted_window_is_rejected(self, client: TestClient, space):
        response = client.post(
            f"{BASE}/check-capacity",
            json={
                "space_id": space.id,
                "start_time": _iso(TOMORROW, "11:00"),
                "end_time": _iso(TOMORROW, "10:00"),
            },
            headers=org_headers(),
        )
        assert response.status_code == 400


class TestAvailabilityRoute:
    def test_lists_slots(self, client: TestClient, space):
        response = client.get(
            f"{BASE}/{space.id}/availability",
            params={"date": TOMORROW.isoformat(), "duration": 60},
            headers=org_headers(),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["date"] == TOMORROW.isoformat()
        assert body["duration"] == 60
        assert body["summary"]["total_slots"] == 17
        assert body["space"]["id"] == space.id
        assert body["location"]["timezone"] == "Asia/Kolkata"

    def test_past_date(self, client: TestClient, space):
        response = client.get(
            f"{BASE}/{space.id}/availability",
            params={"date": "2030-01-01"},
            headers=org_headers(),
        )
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "PAST_DATE"

    def test_today_defaults_to_one_hour(self, client: TestClient, space):
        response = client.get(
            f"{BASE}/{space.id}/availability",
            params={"date": TODAY.isoformat()},
            headers=org_headers(),
        )
        assert response.status_code == 200
        assert response.json()["duration"] == 60

    def test_invalid_space_id(self, client: TestClient):
        response = client.get(
            f"{BASE}/not-a-ulid/availability",
            params={"date": TOMORROW.isoformat()},
            headers=org_headers(),
        )
        assert response.status_code == 400
        assert response.json()["detail"]["code"] == "VALIDATION_ERROR"


class TestBookingLifecycleRoutes:
    def test_update_moves_booking(self, client: TestClient, space, make_booking):
        booking = make_booking(space, local_time(TOMORROW, "10:00"), local_time(TOMORROW, "11:00"))

        response = client.put(
            f"{BASE}/{booking.id}",
            json={"start": _iso(TOMORROW, "15:00"), "end": _iso(TOMORROW, "16:00")},
            headers=org_headers(),
        )

        assert response.status_code == 200
        assert response.json()["id"] == booking.id

    def test_update_inside_window_returns_422(
        self, client: TestClient, space, make_booking, frozen_clock
    ):
        booking = make_booking(space, local_time(TOMORROW, "10:00"), local_time(TOMORROW, "11:00"))
        frozen_clock(local_time(TOMORROW, "08:00"))

        response = client.put(
            f"{BASE}/{booking.id}",
            json={"start": _iso(TOMORROW, "15:00"), "end": _iso(TOMORROW, "16:00")},
            headers=org_headers(),
        )

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["code"] == "POLICY_WINDOW"
        assert detail["details"]["hours_remaining"] == 2.0

    def test_update_other_organization_returns_404(
        self, client: TestClient, space, make_booking
    ):
        booking = make_booking(space, local_time(TOMORROW, "10:00"), local_time(TOMORROW, "11:00"))

        response = client.put(
            f"{BASE}/{booking.id}", json={"notes": "hi"}, headers=org_headers(OTHER_ORG_ID)
        )
        assert response.status_code == 404

    def test_update_with_bad_booking_id(self, client: TestClient):
        response = client.put(f"{BASE}/12345", json={"notes": "hi"}, headers=org_headers())
        assert response.status_code == 400

    def test_delete_cancels_with_reason(self, client: TestClient, space, make_booking, db):
        booking = make_booking(space, local_time(TOMORROW, "10:00"), local_time(TOMORROW, "11:00"))

        response = client.request(
            "DELETE",
            f"{BASE}/{booking.id}",
            json={"reason": "Client rescheduled"},
            headers=org_headers(),
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "Cancelled"
        assert body["cancel_reason"] == "Client rescheduled"

        db.refresh(booking)
        assert booking.status == BookingStatus.CANCELLED

    def test_delete_without_body_uses_default_reason(
        self, client: TestClient, space, make_booking
    ):
        booking = make_booking(space, local_time(TOMORROW, "10:00"), local_time(TOMORROW, "11:00"))

        response = client.delete(f"{BASE}/{booking.id}", headers=org_headers())

        assert response.status_code == 200
        assert response.json()["cancel_reason"] == "Cancelled by user"

    def test_delete_inside_window_returns_422(self, client: TestClient, space, make_booking):
        booking = make_booking(space, local_time(TODAY, "11:00"), local_time(TODAY, "12:00"))

        response = client.delete(f"{BASE}/{booking.id}", headers=org_headers())

        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "POLICY_WINDOW"

    def test_confirm_complete_flow(self, client: TestClient, space, make_booking):
        booking = make_booking(space, local_time(TOMORROW, "10:00"), local_time(TOMORROW, "11:00"))

        confirm = client.post(f"{BASE}/{booking.id}/confirm", headers=org_headers())
        assert confirm.status_code == 200
        assert confirm.json()["status"] == "Confirmed"

        complete = client.post(f"{BASE}/{booking.id}/complete", headers=org_headers())
        assert complete.status_code == 200
        assert complete.json()["status"] == "Completed"

        again = client.post(f"{BASE}/{booking.id}/confirm", headers=org_headers())
        assert again.status_code == 422
        assert again.json()["detail"]["code"] == "INVALID_STATUS_TRANSITION"

    def test_no_show(self, client: TestClient, space, make_booking):
        booking = make_booking(
            space,
            local_time(TOMORROW, "10:00"),
            local_time(TOMORROW, "11:00"),
            status=BookingStatus.CONFIRMED,
        )

        response = client.post(f"{BASE}/{booking.id}/no-show", headers=org_headers())
        assert response.status_code == 200
        assert response.json()["status"] == "No Show"

"""
HTTP tests for the ride API, backed by in-memory stores.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from ride_scheduler.api.v1.deps import get_ride_service
from ride_scheduler.core.config import settings
from ride_scheduler.main import app
from ride_scheduler.services.ride_service import build_ride_service
from ride_scheduler.stores.memory import InMemoryAdminActionStore, InMemoryRideStore

EMPLOYEE = {"x-user-id": "emp-001", "x-role": "user"}
COLLEAGUE = {"x-user-id": "emp-002", "x-role": "user"}
ADMIN = {"x-user-id": "admin-001", "x-role": "admin"}


def ride_payload(hours_ahead=24, **overrides):
    payload = {
        "pickupLocation": {
            "address": "123 Main St, Mumbai",
            "coordinates": {"latitude": 19.0760, "longitude": 72.8777},
            "instructions": "Near the main gate"
        },
        "dropLocation": {
            "address": "456 Oak Ave, Mumbai",
            "coordinates": {"latitude": 19.2183, "longitude": 72.9781}
        },
        "rideDate": (datetime.now(timezone.utc) + timedelta(hours=hours_ahead)).isoformat(),
        "pickupTime": "09:00",
        "dropTime": "17:00",
        "rideType": "one-time",
        "purpose": "office",
        "priority": "medium"
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def client():
    service = build_ride_service(settings, InMemoryRideStore(), InMemoryAdminActionStore())
    app.dependency_overrides[get_ride_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def create(client, hours_ahead=24, headers=EMPLOYEE, **overrides):
    response = client.post("/api/v1/rides", json=ride_payload(hours_ahead, **overrides), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestHealth:

    def test_root_and_health(self, client):
        assert client.get("/").json()["message"] == "Corporate Ride Scheduler API"
        assert client.get("/health").json() == {"status": "healthy", "service": "ride-scheduler"}


class TestIdentity:

    def test_missing_headers(self, client):
        response = client.get("/api/v1/rides/user")
        assert response.status_code == 401
        assert response.json()["detail"] == "User ID is required"

    def test_missing_role(self, client):
        response = client.get("/api/v1/rides/user", headers={"x-user-id": "emp-001"})
        assert response.status_code == 401

    def test_unknown_role(self, client):
        response = client.get("/api/v1/rides/user", headers={"x-user-id": "emp-001", "x-role": "root"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid role"


class TestRides:

    def test_create_ride(self, client):
        ride = create(client)

        assert ride["status"] == "pending"
        assert ride["requesterId"] == "emp-001"
        assert ride["estimatedDistance"] > 0
        assert ride["estimatedFare"] > 50
        assert ride["pickupLocation"]["coordinates"]["latitude"] == 19.0760
        assert ride["recurringDays"] == []

    def test_past_ride_is_rejected(self, client):
        response = client.post("/api/v1/rides", json=ride_payload(hours_ahead=-24), headers=EMPLOYEE)

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "policy_violation"
        assert "past" in body["message"]

    def test_malformed_time_is_rejected(self, client):
        response = client.post("/api/v1/rides", json=ride_payload(pickupTime="9am"), headers=EMPLOYEE)
        assert response.status_code == 422

    def test_recurring_without_days(self, client):
        response = client.post(
            "/api/v1/rides",
            json=ride_payload(rideType="recurring", recurringDays=[]),
            headers=EMPLOYEE
        )
        assert response.status_code == 422
        assert response.json()["error"] == "validation_failure"

    def test_user_rides_page(self, client):
        for _ in range(3):
            create(client)
        create(client, headers=COLLEAGUE)

        body = client.get("/api/v1/rides/user?limit=2", headers=EMPLOYEE).json()

        assert body["total"] == 3
        assert body["pages"] == 2
        assert len(body["items"]) == 2

    def test_view_permissions(self, client):
        ride = create(client)

        assert client.get(f"/api/v1/rides/{ride['id']}", headers=EMPLOYEE).status_code == 200
        assert client.get(f"/api/v1/rides/{ride['id']}", headers=ADMIN).status_code == 200

        forbidden = client.get(f"/api/v1/rides/{ride['id']}", headers=COLLEAGUE)
        assert forbidden.status_code == 403
        assert forbidden.json()["error"] == "forbidden"

    def test_unknown_ride(self, client):
        response = client.get("/api/v1/rides/9999", headers=ADMIN)
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_cancel_inside_cutoff(self, client):
        ride = create(client, hours_ahead=1)

        response = client.request(
            "DELETE", f"/api/v1/rides/{ride['id']}",
            json={"reason": "Meeting moved"}, headers=EMPLOYEE
        )

        assert response.status_code == 400
        assert response.json()["error"] == "policy_violation"

    def test_cancel_outside_cutoff(self, client):
        ride = create(client, hours_ahead=3)

        response = client.request(
            "DELETE", f"/api/v1/rides/{ride['id']}",
            json={"reason": "Meeting moved"}, headers=EMPLOYEE
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "cancelled"
        assert body["cancellationReason"] == "Meeting moved"
        assert body["cancelledBy"] == "emp-001"

    def test_estimate(self, client):
        response = client.post(
            "/api/v1/rides/estimate",
            json={
                "pickup": {"latitude": 19.0760, "longitude": 72.8777},
                "drop": {"latitude": 19.2183, "longitude": 72.9781}
            },
            headers=EMPLOYEE
        )

        assert response.status_code == 200
        body = response.json()
        assert 18 < body["distanceKm"] < 20
        assert body["durationMin"] > 0
        assert body["fare"] > 50


class TestAdmin:

    def test_approve_and_audit(self, client):
        ride = create(client)

        response = client.patch(
            f"/api/v1/rides/{ride['id']}/status",
            json={"status": "approved", "reason": "Within policy"},
            headers=ADMIN
        )
        assert response.status_code == 200
        assert response.json()["status"] == "approved"

        actions = client.get(f"/api/v1/rides/{ride['id']}/actions", headers=ADMIN).json()
        assert len(actions) == 1
        assert actions[0]["action"] == "approve"
        assert actions[0]["previousStatus"] == "pending"
        assert actions[0]["newStatus"] == "approved"
        assert actions[0]["adminId"] == "admin-001"
        assert actions[0]["ipAddress"] == "testclient"

        mine = client.get("/api/v1/admin/actions", headers=ADMIN).json()
        assert [a["rideId"] for a in mine] == [ride["id"]]

    def test_admin_actions_limit_above_page_size(self, client):
        response = client.get(
            f"/api/v1/admin/actions?limit={settings.MAX_PAGE_SIZE + 1}", headers=ADMIN
        )
        assert response.status_code == 422
        assert response.json()["error"] == "validation_failure"

    def test_user_cannot_approve(self, client):
        ride = create(client)
        response = client.patch(
            f"/api/v1/rides/{ride['id']}/status", json={"status": "approved"}, headers=EMPLOYEE
        )
        assert response.status_code == 403

    def test_invalid_transition(self, client):
        ride = create(client)
        client.patch(f"/api/v1/rides/{ride['id']}/status", json={"status": "rejected"}, headers=ADMIN)

        response = client.patch(
            f"/api/v1/rides/{ride['id']}/status", json={"status": "approved"}, headers=ADMIN
        )

        assert response.status_code == 409
        assert response.json()["error"] == "invalid_transition"

    def test_driver_and_completion(self, client):
        ride = create(client)
        client.patch(f"/api/v1/rides/{ride['id']}/status", json={"status": "approved"}, headers=ADMIN)

        assigned = client.put(
            f"/api/v1/rides/{ride['id']}/driver",
            json={"driverId": "DRV-7", "driverName": "Ravi Kumar", "vehicleNumber": "MH-01-AB-1234"},
            headers=ADMIN
        )
        completed = client.patch(f"/api/v1/rides/{ride['id']}/complete", headers=ADMIN)

        assert assigned.status_code == 200
        assert assigned.json()["driver"]["vehicleNumber"] == "MH-01-AB-1234"
        assert completed.status_code == 200
        assert completed.json()["status"] == "completed"
        assert completed.json()["completedAt"] is not None

    def test_list_all_requires_admin(self, client):
        assert client.get("/api/v1/rides", headers=EMPLOYEE).status_code == 403

    def test_list_all_with_filters(self, client):
        create(client)
        create(client, headers=COLLEAGUE, purpose="airport")

        everything = client.get("/api/v1/rides", headers=ADMIN).json()
        airport = client.get("/api/v1/rides?purpose=airport", headers=ADMIN).json()
        colleague = client.get("/api/v1/rides?userId=emp-002", headers=ADMIN).json()

        assert everything["total"] == 2
        assert airport["total"] == 1
        assert colleague["items"][0]["requesterId"] == "emp-002"

    def test_analytics_by_status(self, client):
        first = create(client)
        create(client)
        client.patch(f"/api/v1/rides/{first['id']}/status", json={"status": "approved"}, headers=ADMIN)

        response = client.get("/api/v1/rides/admin/analytics?groupBy=status", headers=ADMIN)

        assert response.status_code == 200
        body = response.json()
        assert body["groupBy"] == "status"
        # Rides are due tomorrow, past the default window's end
        assert body["buckets"] == []

    def test_analytics_with_explicit_range(self, client):
        create(client, hours_ahead=48)
        start = datetime.now(timezone.utc).date()
        end = start + timedelta(days=5)

        response = client.get(
            f"/api/v1/rides/admin/analytics?groupBy=purpose&startDate={start}&endDate={end}",
            headers=ADMIN
        )

        body = response.json()
        assert body["startDate"] == start.isoformat()
        assert body["endDate"] == end.isoformat()

        buckets = body["buckets"]
        assert buckets == [{
            "key": "office",
            "count": 1,
            "totalEstimatedFare": buckets[0]["totalEstimatedFare"],
            "totalActualFare": 0.0
        }]

    def test_analytics_requires_admin(self, client):
        response = client.get("/api/v1/rides/admin/analytics", headers=EMPLOYEE)
        assert response.status_code == 403

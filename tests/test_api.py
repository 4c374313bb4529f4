"""
HTTP and WebSocket API tests
"""

from datetime import timedelta

from fastapi.testclient import TestClient

from conftest import NOW, PARTNER_ID
from carenow.core.container import Container
from carenow.main import create_app

JOBS = f"/api/v1/partners/{PARTNER_ID}/jobs"


class TestHealth:
    async def test_health(self, client):
        response = await client.get("/api/v1/health")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "ok"
        assert body["availability_sweeper_running"] is False


class TestJobs:
    async def test_assign_and_walk_through_lifecycle(self, client, make_booking):
        await make_booking("booking-1", total_price=400.0)

        response = await client.post("/api/v1/bookings/booking-1/assign", json={})
        assert response.status_code == 201
        job = response.json()
        assert job["id"] == "booking-1"
        assert job["partnerId"] == PARTNER_ID
        assert job["status"] == "pending"
        assert job["partnerEarnings"] == 340.0

        response = await client.get(f"{JOBS}/pending")
        assert [item["id"] for item in response.json()] == ["booking-1"]

        for action, status in (("accept", "accepted"), ("start", "inProgress"), ("complete", "completed")):
            response = await client.post(f"{JOBS}/booking-1/{action}")
            assert response.status_code == 200, response.text
            assert response.json()["status"] == status

        response = await client.get(f"/api/v1/partners/{PARTNER_ID}/earnings")
        assert response.json()["totalEarnings"] == 340.0
        assert response.json()["totalJobs"] == 1

    async def test_assign_missing_booking(self, client):
        response = await client.post("/api/v1/bookings/nope/assign", json={"partnerId": PARTNER_ID})
        assert response.status_code == 404

    async def test_illegal_transition_is_a_conflict(self, client, make_job):
        await make_job("booking-1")
        assert (await client.post(f"{JOBS}/booking-1/accept")).status_code == 200

        response = await client.post(f"{JOBS}/booking-1/accept")
        assert response.status_code == 409
        assert "Cannot accept job booking-1" in response.json()["detail"]

    async def test_reject_requires_reason(self, client, make_job):
        await make_job("booking-1")
        response = await client.post(f"{JOBS}/booking-1/reject", json={"reason": " "})
        assert response.status_code == 400

        response = await client.post(f"{JOBS}/booking-1/reject", json={"reason": "Too far"})
        assert response.status_code == 200
        assert response.json()["rejectionReason"] == "Too far"

    async def test_other_partners_job_is_not_found(self, client, make_job):
        await make_job("booking-1", partner_id="partner-2")
        response = await client.get(f"{JOBS}/booking-1")
        assert response.status_code == 404

    async def test_history_and_statistics(self, client, make_job):
        await make_job("booking-1")
        await make_job("booking-2", scheduled_date=NOW + timedelta(days=1))

        response = await client.get(JOBS, params={"limit": 1})
        assert [item["id"] for item in response.json()] == ["booking-2"]

        response = await client.get(JOBS, params={"status": "archived"})
        assert response.status_code == 400

        response = await client.get(f"{JOBS}/statistics")
        assert response.json()["totalJobs"] == 2
        assert response.json()["pendingJobs"] == 2

    async def test_notifications(self, client, make_job):
        await make_job("booking-1")
        response = await client.get(f"{JOBS}/notifications/unread-count")
        assert response.json() == {"partnerId": PARTNER_ID, "unreadCount": 1}

        response = await client.post(f"{JOBS}/notifications/booking-1/read")
        assert response.status_code == 204
        response = await client.get(f"{JOBS}/notifications/unread-count")
        assert response.json()["unreadCount"] == 0


class TestEarningsWindows:
    async def test_week_and_month_are_not_implemented(self, client):
        for window in ("week", "month"):
            response = await client.get(f"/api/v1/partners/{PARTNER_ID}/earnings/windows/{window}")
            assert response.status_code == 501

    async def test_today_window(self, client):
        response = await client.get(f"/api/v1/partners/{PARTNER_ID}/earnings/windows/today")
        assert response.status_code == 200
        assert response.json() == {"window": "today", "earnings": 0.0, "jobs": 0}

    async def test_unknown_window(self, client):
        response = await client.get(f"/api/v1/partners/{PARTNER_ID}/earnings/windows/decade")
        assert response.status_code == 400


class TestAvailability:
    async def test_availability_endpoints(self, client):
        base = f"/api/v1/partners/{PARTNER_ID}/availability"

        response = await client.get(base)
        assert response.status_code == 200
        assert response.json()["isAvailable"] is True

        response = await client.put(f"{base}/online", json={"isOnline": True})
        assert response.json()["isOnline"] is True

        response = await client.post(f"{base}/blocked-dates", json={"dates": ["2026-03-20", "2026-03-21"]})
        assert response.json()["blockedDates"] == ["2026-03-20", "2026-03-21"]
        response = await client.request("DELETE", f"{base}/blocked-dates", json={"dates": ["2026-03-20"]})
        assert response.json()["blockedDates"] == ["2026-03-21"]

        until = (NOW + timedelta(hours=2)).isoformat()
        response = await client.put(
            f"{base}/temporary-unavailability",
            json={"unavailableUntil": until, "reason": "Appointment"}
        )
        assert response.json()["isAvailable"] is False
        assert response.json()["unavailabilityReason"] == "Appointment"

        response = await client.delete(f"{base}/temporary-unavailability")
        assert response.json()["isAvailable"] is True
        assert response.json()["unavailabilityReason"] is None

    async def test_invalid_working_hours(self, client):
        response = await client.put(
            f"/api/v1/partners/{PARTNER_ID}/availability/working-hours",
            json={"workingHours": {"monday": ["08:00-08:15"]}}
        )
        assert response.status_code == 400


class TestPartners:
    async def test_profile_endpoints(self, client):
        profile = {
            "uid": "partner-7",
            "name": "Le Thi C",
            "email": "c@carenow.vn",
            "phone": "0901234567",
            "pricePerHour": 120000,
            "services": ["elder_care"],
            "workingHours": {"monday": ["08:00-12:00"]},
        }
        response = await client.post("/api/v1/partners", json=profile)
        assert response.status_code == 201

        response = await client.post("/api/v1/partners", json=profile)
        assert response.status_code == 400

        response = await client.put("/api/v1/partners/partner-7/services", json={"services": ["cleaning"]})
        assert response.json()["services"] == ["cleaning"]

        response = await client.get("/api/v1/partners/partner-7")
        assert response.json()["email"] == "c@carenow.vn"

        response = await client.get("/api/v1/partners/nobody")
        assert response.status_code == 404


class TestDashboard:
    async def test_dashboard_snapshot(self, client, make_job):
        await make_job("booking-1")
        response = await client.get(f"/api/v1/partners/{PARTNER_ID}/dashboard")
        assert response.status_code == 200
        body = response.json()
        assert body["kind"] == "loaded"
        assert [job["id"] for job in body["pendingJobs"]] == ["booking-1"]
        assert body["unreadNotificationsCount"] == 1
        assert body["summary"] == "1 pending, 0 active jobs; 1 unread notifications"


def receive_until(websocket, kind, limit=30):
    for _ in range(limit):
        message = websocket.receive_json()
        if message["kind"] == kind:
            return message
    raise AssertionError(f"No {kind} message received")


def test_dashboard_websocket(settings, clock):
    app = create_app(Container(settings, clock))

    with TestClient(app) as client:
        with client.websocket_connect(f"/api/v1/partners/{PARTNER_ID}/dashboard/ws") as websocket:
            assert websocket.receive_json()["kind"] == "loading"
            loaded = receive_until(websocket, "loaded")
            assert loaded["pendingJobs"] == []

            websocket.send_json({"kind": "no_such_event"})
            error = receive_until(websocket, "error")
            assert error["errorCode"] == "invalid_event"

            websocket.send_text("{not json")
            error = receive_until(websocket, "error")
            assert error["errorCode"] == "invalid_event"
            assert "not JSON" in error["message"]

            websocket.send_json({"kind": "toggle_availability", "partnerId": PARTNER_ID, "isAvailable": False})
            success = receive_until(websocket, "availability_update_success")
            assert success["message"] == "You are now unavailable"
            assert success["updatedAvailability"]["isAvailable"] is False

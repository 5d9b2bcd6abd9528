import pytest
from fastapi.testclient import TestClient
from app.main import app
from app.services.db_service import BookingFetchError
from app.services.sync_controller import BookingSyncController
from conftest import FakeBackend, make_booking

client = TestClient(app)

@pytest.fixture
def controller():
    upcoming = make_booking(booking_date="2999-01-01", booking_time="10:00:00")
    past = make_booking(booking_date="2000-01-01", booking_time="10:00:00")
    ctrl = BookingSyncController(FakeBackend(BookingFetchError("down")))
    ctrl.bookings = [upcoming, past]
    ctrl.loading = False
    app.state.controller = ctrl
    yield ctrl
    app.state.controller = None

def test_health():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"

def test_get_bookings_full(controller):
    response = client.get("/api/bookings")
    assert response.status_code == 200
    data = response.json()

    assert data["variant"] == "full"
    assert data["total"] == 2
    assert data["upcoming_count"] == 1
    assert data["past_count"] == 1
    row = data["upcoming"][0]
    assert row["billing"] == {"total": "£100.00", "deposit": "£20.00", "remaining": "£80.00"}
    assert row["payment_status"] == "Confirmed"
    assert row["time"] == "10:00"
    assert data["past"][0]["status"] == "past"

def test_get_bookings_compact_variant(controller):
    response = client.get("/api/bookings", params={"variant": "compact"})
    assert response.status_code == 200
    row = response.json()["upcoming"][0]
    assert row["billing"]["total"] == "$100.00"
    assert row["billing"]["deposit"] is None
    assert row["service"]["addons"] == "+2 addons"

def test_unknown_variant(controller):
    response = client.get("/api/bookings", params={"variant": "neon"})
    assert response.status_code == 400

def test_refresh_failure_keeps_list(controller):
    response = client.post("/api/bookings/refresh")
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 2
    assert data["notices"] == [
        {"title": "Error", "description": "Failed to fetch bookings data", "variant": "destructive"}
    ]

def test_not_synced_yet():
    app.state.controller = None
    response = client.get("/api/bookings")
    assert response.status_code == 503

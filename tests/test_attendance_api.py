from __future__ import annotations

import pytest

from src.geo_attendance.geo_attendance.main import create_app

from tests.fakes import FAR_LAT, OFFICE_IP, OFFICE_LAT, OFFICE_LON, build_world

AT_OFFICE = {"latitude": OFFICE_LAT, "longitude": OFFICE_LON, "ipAddress": OFFICE_IP}


@pytest.fixture
def world():
    return build_world(1)


@pytest.fixture
def client(monkeypatch, world):
    monkeypatch.setenv("APP_ENV", "testing")
    app = create_app(container=world.container())
    with app.test_client() as c:
        yield c


@pytest.fixture
def logged_in(client):
    with client.session_transaction() as sess:
        sess["user_id"] = 1
        sess["role"] = "EMPLOYEE"
    return client


def test_health_is_public(client):
    res = client.get("/health")

    assert res.status_code == 200
    assert res.get_json()["success"] is True


def test_requires_session(client):
    res = client.post("/api/attendance/punch-in", json=AT_OFFICE)

    assert res.status_code == 401
    assert res.get_json()["success"] is False


def test_punch_in_and_out(logged_in):
    res = logged_in.post("/api/attendance/punch-in", json=AT_OFFICE)
    body = res.get_json()
    assert res.status_code == 200
    assert body["attendance"]["status"] == "PRESENT"
    assert body["attendance"]["punchIn"].endswith("Z")

    again = logged_in.post("/api/attendance/punch-in", json=AT_OFFICE)
    assert again.status_code == 409
    assert again.get_json()["code"] == "ALREADY_PUNCHED_IN"

    out = logged_in.post("/api/attendance/punch-out", json=AT_OFFICE)
    assert out.status_code == 200
    assert out.get_json()["attendance"]["totalOutMinutes"] == 0

    today = logged_in.get("/api/attendance/today").get_json()
    assert today["punchedIn"] is True
    assert today["punchOutTime"] is not None


def test_missing_fields_are_bad_request(logged_in):
    res = logged_in.post("/api/attendance/punch-in", json={"latitude": OFFICE_LAT})

    assert res.status_code == 400
    assert res.get_json()["error"] == "Latitude, longitude, and IP address are required"


def test_malformed_coordinates_are_bad_request(logged_in):
    res = logged_in.post(
        "/api/attendance/punch-in", json={"latitude": 123.4, "longitude": OFFICE_LON, "ipAddress": OFFICE_IP}
    )

    assert res.status_code == 400
    assert res.get_json()["code"] == "VALIDATION_ERROR"


def test_outside_geofence_is_forbidden(logged_in, world):
    res = logged_in.post(
        "/api/attendance/punch-in", json={"latitude": FAR_LAT, "longitude": OFFICE_LON, "ipAddress": OFFICE_IP}
    )
    body = res.get_json()

    assert res.status_code == 403
    assert body["locationValid"] is False
    assert body["wifiValid"] is True
    assert body["distance"] > 50
    assert world.attendance.records == {}


def test_punch_out_before_punch_in_conflicts(logged_in):
    res = logged_in.post("/api/attendance/punch-out", json=AT_OFFICE)

    assert res.status_code == 409
    assert res.get_json()["code"] == "NOT_PUNCHED_IN"


def test_validate_location_reports_both_checks(logged_in):
    res = logged_in.post(
        "/api/attendance/validate-location", json={**AT_OFFICE, "ipAddress": "10.1.1.1"}
    )
    body = res.get_json()

    assert res.status_code == 200
    assert body["valid"] is False
    assert body["locationValid"] is True
    assert body["wifiValid"] is False
    assert body["officeLocation"]["radius"] == 50


def test_heartbeat_and_presence(logged_in):
    no_session = logged_in.post("/api/attendance/heartbeat", json=AT_OFFICE)
    assert no_session.status_code == 409
    assert no_session.get_json()["code"] == "NO_ACTIVE_SESSION"

    logged_in.post("/api/attendance/punch-in", json=AT_OFFICE)
    hb = logged_in.post("/api/attendance/heartbeat", json={**AT_OFFICE, "latitude": FAR_LAT}).get_json()
    assert hb["punchedIn"] is True
    assert hb["insideOffice"] is False
    assert hb["outPeriodOpened"] == "GEO_FENCE_EXIT"
    assert hb["outCount"] == 1

    presence = logged_in.get("/api/attendance/presence").get_json()
    assert presence["punchedIn"] is True
    assert presence["insideOffice"] is False
    assert presence["outSince"] is not None


def test_history_and_calendar(logged_in):
    logged_in.post("/api/attendance/punch-in", json=AT_OFFICE)

    history = logged_in.get("/api/attendance/my").get_json()
    assert history["success"] is True
    assert len(history["data"]) == 1

    missing = logged_in.get("/api/attendance/my-calendar")
    assert missing.status_code == 400

    bad_month = logged_in.get("/api/attendance/my-calendar?month=13&year=2026")
    assert bad_month.status_code == 400

    cal = logged_in.get("/api/attendance/my-calendar?month=2&year=2026").get_json()
    assert cal["daysInMonth"] == 28
    assert cal["summary"]["totalDays"] == 28

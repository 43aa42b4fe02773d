from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta

import pytest

from src.geo_attendance.geo_attendance.attendance.model import AttendanceRecord, OutPeriod
from src.geo_attendance.geo_attendance.core.enums import AttendanceStatus, AutoPunchOutReason, OutReason
from src.geo_attendance.geo_attendance.core.exceptions import (
    AlreadyPunchedIn,
    AlreadyPunchedOut,
    LocationRejected,
    NotFound,
    NotPunchedIn,
    OnApprovedLeave,
    ValidationError,
)
from src.geo_attendance.geo_attendance.leave.model import ApprovedLeave

from tests.fakes import FAR_LAT, OFFICE_IP, OFFICE_LAT, OFFICE_LON, build_world

MONDAY = date(2026, 2, 2)
NINE = datetime(2026, 2, 2, 9, 0)


def _service(world):
    return world.container().attendance_service


def test_punch_in_creates_present_record():
    world = build_world(1)

    record = _service(world).punch_in(1, OFFICE_LAT, OFFICE_LON, OFFICE_IP, now=NINE)

    assert record.attendance_id is not None
    assert record.work_date == MONDAY
    assert record.punch_in == NINE
    assert record.last_heartbeat == NINE
    assert record.status == AttendanceStatus.PRESENT
    assert record.out_count == 0 and record.total_out_minutes == 0
    assert record.ip_address == OFFICE_IP
    assert world.attendance.get_for_employee_and_date(1, MONDAY) == record


def test_punch_in_then_out_is_present_with_no_out_time():
    world = build_world(1)
    svc = _service(world)

    svc.punch_in(1, OFFICE_LAT, OFFICE_LON, OFFICE_IP, now=NINE)
    record = svc.punch_out(1, OFFICE_LAT, OFFICE_LON, OFFICE_IP, now=NINE + timedelta(hours=8))

    assert record.punch_out == NINE + timedelta(hours=8)
    assert record.total_out_minutes == 0
    assert record.status == AttendanceStatus.PRESENT
    assert not record.auto_punched_out


def test_second_punch_in_same_day_is_rejected():
    world = build_world(1)
    svc = _service(world)
    svc.punch_in(1, OFFICE_LAT, OFFICE_LON, OFFICE_IP, now=NINE)

    with pytest.raises(AlreadyPunchedIn):
        svc.punch_in(1, OFFICE_LAT, OFFICE_LON, OFFICE_IP, now=NINE + timedelta(minutes=5))


def test_punch_in_after_punch_out_is_still_rejected():
    world = build_world(1)
    svc = _service(world)
    svc.punch_in(1, OFFICE_LAT, OFFICE_LON, OFFICE_IP, now=NINE)
    svc.punch_out(1, OFFICE_LAT, OFFICE_LON, OFFICE_IP, now=NINE + timedelta(hours=1))

    with pytest.raises(AlreadyPunchedIn):
        svc.punch_in(1, OFFICE_LAT, OFFICE_LON, OFFICE_IP, now=NINE + timedelta(hours=2))


def test_punch_in_outside_geofence_is_rejected_without_a_record():
    world = build_world(1)

    with pytest.raises(LocationRejected) as exc:
        _service(world).punch_in(1, FAR_LAT, OFFICE_LON, OFFICE_IP, now=NINE)

    assert exc.value.location_compliant is False
    assert exc.value.network_compliant is True
    assert exc.value.distance_meters > 50
    assert world.attendance.records == {}


def test_punch_in_on_wrong_network_is_rejected():
    world = build_world(1)

    with pytest.raises(LocationRejected) as exc:
        _service(world).punch_in(1, OFFICE_LAT, OFFICE_LON, "192.168.1.10", now=NINE)

    assert exc.value.network_compliant is False
    assert "Not connected to office Wi-Fi" in str(exc.value)


def test_malformed_input_rejected_before_state_checks():
    world = build_world(1)

    with pytest.raises(ValidationError):
        _service(world).punch_in(1, "north", OFFICE_LON, OFFICE_IP, now=NINE)
    with pytest.raises(ValidationError):
        _service(world).punch_out(1, OFFICE_LAT, OFFICE_LON, "1.2.3", now=NINE)

    assert world.attendance.records == {}


def test_unknown_or_inactive_employee_is_not_found():
    world = build_world(1)
    world.employees.employees[1] = replace(world.employees.employees[1], is_active=False)

    with pytest.raises(NotFound):
        _service(world).punch_in(1, OFFICE_LAT, OFFICE_LON, OFFICE_IP, now=NINE)
    with pytest.raises(NotFound):
        _service(world).punch_in(99, OFFICE_LAT, OFFICE_LON, OFFICE_IP, now=NINE)


def test_approved_leave_blocks_punches_regardless_of_location():
    world = build_world(1)
    world.leaves.leaves.append(
        ApprovedLeave(employee_id=1, leave_type="CASUAL", from_date=MONDAY, to_date=MONDAY + timedelta(days=1))
    )
    svc = _service(world)

    with pytest.raises(OnApprovedLeave):
        svc.punch_in(1, FAR_LAT, OFFICE_LON, "10.0.0.1", now=NINE)
    with pytest.raises(OnApprovedLeave):
        svc.punch_out(1, FAR_LAT, OFFICE_LON, "10.0.0.1", now=NINE)


def test_punch_out_without_punch_in():
    world = build_world(1)

    with pytest.raises(NotPunchedIn):
        _service(world).punch_out(1, OFFICE_LAT, OFFICE_LON, OFFICE_IP, now=NINE)


def test_double_punch_out_is_rejected():
    world = build_world(1)
    svc = _service(world)
    svc.punch_in(1, OFFICE_LAT, OFFICE_LON, OFFICE_IP, now=NINE)
    svc.punch_out(1, OFFICE_LAT, OFFICE_LON, OFFICE_IP, now=NINE + timedelta(hours=8))

    with pytest.raises(AlreadyPunchedOut):
        svc.punch_out(1, OFFICE_LAT, OFFICE_LON, OFFICE_IP, now=NINE + timedelta(hours=9))


def test_punch_out_outside_geofence_keeps_session_open():
    world = build_world(1)
    svc = _service(world)
    svc.punch_in(1, OFFICE_LAT, OFFICE_LON, OFFICE_IP, now=NINE)

    with pytest.raises(LocationRejected):
        svc.punch_out(1, FAR_LAT, OFFICE_LON, OFFICE_IP, now=NINE + timedelta(hours=8))

    assert world.attendance.get_for_employee_and_date(1, MONDAY).is_open


def test_punch_in_reuses_row_without_punches():
    world = build_world(1)
    seeded = world.attendance.add_record(
        AttendanceRecord(attendance_id=None, employee_id=1, work_date=MONDAY, status=AttendanceStatus.ABSENT)
    )

    record = _service(world).punch_in(1, OFFICE_LAT, OFFICE_LON, OFFICE_IP, now=NINE)

    assert record.attendance_id == seeded.attendance_id
    assert record.status == AttendanceStatus.PRESENT
    assert len(world.attendance.records) == 1


def test_punch_out_closes_open_out_period_as_manual():
    world = build_world(1)
    svc = _service(world)
    record = svc.punch_in(1, OFFICE_LAT, OFFICE_LON, OFFICE_IP, now=NINE)
    world.container().heartbeat_monitor.heartbeat(
        1, FAR_LAT, OFFICE_LON, OFFICE_IP, now=NINE + timedelta(hours=1)
    )

    out = svc.punch_out(1, OFFICE_LAT, OFFICE_LON, OFFICE_IP, now=NINE + timedelta(hours=1, minutes=45, seconds=30))

    (period,) = world.attendance.list_out_periods(record.attendance_id)
    assert period.reason == OutReason.MANUAL
    assert period.duration_minutes == 45
    assert out.total_out_minutes == 45
    assert out.status == AttendanceStatus.PRESENT
    assert out.punch_out is not None


def test_punch_out_past_absent_threshold_auto_punches_out():
    world = build_world(1)
    svc = _service(world)
    record = svc.punch_in(1, OFFICE_LAT, OFFICE_LON, OFFICE_IP, now=NINE)
    world.attendance.periods[500] = OutPeriod(
        out_period_id=500,
        attendance_id=record.attendance_id,
        out_time=NINE + timedelta(minutes=10),
        reason=OutReason.GEO_FENCE_EXIT,
    )

    out = svc.punch_out(1, OFFICE_LAT, OFFICE_LON, OFFICE_IP, now=NINE + timedelta(minutes=260))

    assert out.total_out_minutes == 250
    assert out.status == AttendanceStatus.ABSENT
    assert out.auto_punched_out
    assert out.auto_punch_out_reason == AutoPunchOutReason.MAX_OUT_TIME


def test_presence_and_history():
    world = build_world(1)
    svc = _service(world)
    assert svc.get_presence(1, now=NINE).punched_in is False

    svc.punch_in(1, OFFICE_LAT, OFFICE_LON, OFFICE_IP, now=NINE)
    world.container().heartbeat_monitor.heartbeat(1, FAR_LAT, OFFICE_LON, OFFICE_IP, now=NINE + timedelta(minutes=3))

    presence = svc.get_presence(1, now=NINE + timedelta(minutes=4))
    assert presence.punched_in is True
    assert presence.inside_office is False
    assert presence.out_since == NINE + timedelta(minutes=3)
    assert presence.out_count == 1

    assert [r.work_date for r in svc.get_history(1, month=2, year=2026)] == [MONDAY]
    assert svc.get_history(1, month=3, year=2026) == []
    assert len(svc.get_history(1)) == 1
    with pytest.raises(ValidationError):
        svc.get_history(1, month=13, year=2026)

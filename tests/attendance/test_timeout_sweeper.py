from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime, timedelta

from apscheduler.schedulers.background import BackgroundScheduler

from src.geo_attendance.geo_attendance.attendance.model import AttendanceRecord
from src.geo_attendance.geo_attendance.attendance.sweeper import SWEEP_JOB_ID, TimeoutSweeper, start_sweeper
from src.geo_attendance.geo_attendance.core.enums import AttendanceStatus, AutoPunchOutReason, OutReason

from tests.fakes import FAR_LAT, OFFICE_IP, OFFICE_LAT, OFFICE_LON, InMemoryAttendance, build_world

MONDAY = date(2026, 2, 2)
NINE = datetime(2026, 2, 2, 9, 0)


def _open_record(store, employee_id, *, last_heartbeat, work_date=MONDAY):
    return store.add_record(
        AttendanceRecord(
            attendance_id=None,
            employee_id=employee_id,
            work_date=work_date,
            punch_in=NINE,
            last_heartbeat=last_heartbeat,
            ip_address=OFFICE_IP,
        )
    )


def test_silent_session_is_closed_as_incomplete():
    store = InMemoryAttendance()
    _open_record(store, 1, last_heartbeat=NINE)
    now = NINE + timedelta(minutes=11)

    assert TimeoutSweeper(store).sweep(now=now) == 1

    record = store.get_for_employee_and_date(1, MONDAY)
    assert record.punch_out == now
    assert record.status == AttendanceStatus.INCOMPLETE
    assert record.auto_punched_out
    assert record.auto_punch_out_reason == AutoPunchOutReason.HEARTBEAT_TIMEOUT


def test_recent_heartbeat_is_left_alone():
    store = InMemoryAttendance()
    _open_record(store, 1, last_heartbeat=NINE)

    assert TimeoutSweeper(store).sweep(now=NINE + timedelta(minutes=9)) == 0
    assert TimeoutSweeper(store).sweep(now=NINE + timedelta(minutes=10)) == 0
    assert store.get_for_employee_and_date(1, MONDAY).is_open


def test_missing_heartbeat_counts_as_silent():
    store = InMemoryAttendance()
    _open_record(store, 1, last_heartbeat=None)

    assert TimeoutSweeper(store).sweep(now=NINE + timedelta(minutes=1)) == 1


def test_only_todays_sessions_are_swept():
    store = InMemoryAttendance()
    _open_record(store, 1, last_heartbeat=NINE - timedelta(days=1), work_date=MONDAY - timedelta(days=1))

    assert TimeoutSweeper(store).sweep(now=NINE + timedelta(minutes=30)) == 0


def test_open_out_period_is_closed_with_timeout_reason():
    world = build_world(1)
    container = world.container()
    container.attendance_service.punch_in(1, OFFICE_LAT, OFFICE_LON, OFFICE_IP, now=NINE)
    container.heartbeat_monitor.heartbeat(1, FAR_LAT, OFFICE_LON, OFFICE_IP, now=NINE + timedelta(minutes=5))

    now = NINE + timedelta(minutes=300)
    assert container.timeout_sweeper.sweep(now=now) == 1

    record = world.attendance.get_for_employee_and_date(1, MONDAY)
    (period,) = world.attendance.list_out_periods(record.attendance_id)
    assert period.reason == OutReason.HEARTBEAT_TIMEOUT
    assert period.duration_minutes == 295
    assert record.total_out_minutes == 295
    # Timeout closure wins over the OUT-minute thresholds.
    assert record.status == AttendanceStatus.INCOMPLETE


def test_session_refreshed_after_listing_is_not_closed():
    class RacingStore(InMemoryAttendance):
        def list_open_for_date(self, work_date):
            snapshot = list(super().list_open_for_date(work_date))
            for r in snapshot:
                self.records[(r.employee_id, r.work_date)] = replace(r, last_heartbeat=NINE + timedelta(minutes=29))
            return snapshot

    store = RacingStore()
    _open_record(store, 1, last_heartbeat=NINE)

    assert TimeoutSweeper(store).sweep(now=NINE + timedelta(minutes=30)) == 0
    assert store.get_for_employee_and_date(1, MONDAY).is_open


def test_failure_on_one_session_does_not_stop_the_sweep(caplog):
    class FlakyStore(InMemoryAttendance):
        @contextmanager
        def lock_day(self, employee_id, work_date):
            if employee_id == 1:
                raise RuntimeError("lock wait timeout")
            with super().lock_day(employee_id, work_date) as uow:
                yield uow

    store = FlakyStore()
    _open_record(store, 1, last_heartbeat=NINE)
    _open_record(store, 2, last_heartbeat=NINE)

    assert TimeoutSweeper(store).sweep(now=NINE + timedelta(minutes=20)) == 1

    assert store.get_for_employee_and_date(1, MONDAY).is_open
    assert not store.get_for_employee_and_date(2, MONDAY).is_open
    assert "Heartbeat timeout close failed for employee 1" in caplog.text


def test_start_sweeper_registers_single_interval_job():
    sweeper = TimeoutSweeper(InMemoryAttendance())
    scheduler = BackgroundScheduler(timezone="UTC")
    try:
        start_sweeper(sweeper, interval_minutes=5, scheduler=scheduler)
        start_sweeper(sweeper, interval_minutes=5, scheduler=scheduler)

        jobs = scheduler.get_jobs()
        assert [j.id for j in jobs] == [SWEEP_JOB_ID]
        assert jobs[0].max_instances == 1
        assert jobs[0].trigger.interval == timedelta(minutes=5)
    finally:
        scheduler.shutdown(wait=False)

from __future__ import annotations

from datetime import date, datetime

import pytest

from src.geo_attendance.geo_attendance.attendance.model import AttendanceRecord
from src.geo_attendance.geo_attendance.core.enums import AttendanceStatus, DayType
from src.geo_attendance.geo_attendance.core.exceptions import NotFound, ValidationError
from src.geo_attendance.geo_attendance.holidays.model import Holiday
from src.geo_attendance.geo_attendance.leave.model import ApprovedLeave

from tests.fakes import build_world


def _worked(world, day: date, status: AttendanceStatus, punched: bool = True):
    world.attendance.add_record(
        AttendanceRecord(
            attendance_id=None,
            employee_id=1,
            work_date=day,
            punch_in=datetime(day.year, day.month, day.day, 9, 0) if punched else None,
            status=status,
        )
    )


@pytest.fixture
def february():
    # February 2026 starts on a Sunday.
    world = build_world(1)
    _worked(world, date(2026, 2, 2), AttendanceStatus.PRESENT)
    _worked(world, date(2026, 2, 5), AttendanceStatus.HALF_DAY)
    _worked(world, date(2026, 2, 9), AttendanceStatus.INCOMPLETE)
    _worked(world, date(2026, 2, 10), AttendanceStatus.ABSENT)
    _worked(world, date(2026, 2, 11), AttendanceStatus.PRESENT, punched=False)
    _worked(world, date(2026, 2, 16), AttendanceStatus.PRESENT)
    world.holidays.holidays.append(Holiday(day=date(2026, 2, 16), name="Founders Day"))
    world.leaves.leaves.append(
        ApprovedLeave(employee_id=1, leave_type="SICK", from_date=date(2026, 2, 3), to_date=date(2026, 2, 4))
    )
    world.leaves.leaves.append(
        ApprovedLeave(employee_id=1, leave_type="CASUAL", from_date=date(2026, 2, 6), to_date=date(2026, 2, 7))
    )
    return world


def _calendar(world):
    return world.container().calendar_service.monthly_calendar(1, year=2026, month=2)


def test_day_precedence(february):
    days = {d.day.day: d for d in _calendar(february).days}

    assert days[16].day_type == DayType.HOLIDAY and days[16].holiday_name == "Founders Day"
    assert days[7].day_type == DayType.WEEKEND and days[7].status == "HOLIDAY"
    assert days[3].day_type == DayType.LEAVE and days[3].leave_type == "SICK"
    assert days[6].leave_type == "CASUAL"
    assert days[2].status == "PRESENT" and days[2].punch_in is not None
    assert days[5].status == "HALF_DAY"
    assert days[9].status == "INCOMPLETE"
    assert days[11].status == "ABSENT"
    assert days[12].status == "ABSENT" and days[12].day_type == DayType.WORKDAY


def test_summary_counts(february):
    cal = _calendar(february)
    s = cal.summary

    assert len(cal.days) == s.total_days == 28
    assert s.holiday_days == 9
    assert s.leave_days == 3
    assert s.present_days == 1
    assert s.half_days == 1
    assert s.incomplete_days == 1
    assert s.absent_days == 13


def test_invalid_month_and_unknown_employee():
    world = build_world(1)
    service = world.container().calendar_service

    with pytest.raises(ValidationError):
        service.monthly_calendar(1, year=2026, month=0)
    with pytest.raises(NotFound):
        service.monthly_calendar(42, year=2026, month=2)

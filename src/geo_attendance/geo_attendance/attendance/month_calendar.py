from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from typing import List, Optional

from ..common.datetime_utils import is_weekend, month_bounds
from ..core.enums import AttendanceStatus, DayType
from ..core.exceptions import NotFound, ValidationError
from ..employees.model import Employee
from ..employees.repository import EmployeeRepository
from ..holidays.repository import HolidayRepository
from ..leave.repository import LeaveRepository
from .repository import AttendanceRepository


@dataclass(frozen=True)
class CalendarDay:
    day: date
    day_type: DayType
    status: str
    leave_type: Optional[str] = None
    holiday_name: Optional[str] = None
    punch_in: Optional[datetime] = None
    punch_out: Optional[datetime] = None


@dataclass
class CalendarSummary:
    total_days: int = 0
    present_days: int = 0
    half_days: int = 0
    absent_days: int = 0
    incomplete_days: int = 0
    leave_days: int = 0
    holiday_days: int = 0


@dataclass(frozen=True)
class MonthlyCalendar:
    employee: Employee
    year: int
    month: int
    days: List[CalendarDay] = field(default_factory=list)
    summary: CalendarSummary = field(default_factory=CalendarSummary)


class CalendarService:
    """Per-day view of one employee's month.

    Precedence per day: holiday, weekend, approved leave, attendance row,
    otherwise ABSENT. Holidays and weekends both count as holiday days.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        leaves: LeaveRepository,
        holidays: HolidayRepository,
    ):
        self._attendance = attendance
        self._employees = employees
        self._leaves = leaves
        self._holidays = holidays

    def monthly_calendar(self, employee_id: int, *, year: int, month: int) -> MonthlyCalendar:
        if not 1 <= int(month) <= 12:
            raise ValidationError("Month must be between 1 and 12")

        employee = self._employees.get_by_id(employee_id)
        if not employee:
            raise NotFound("Employee not found")

        start, end = month_bounds(int(year), int(month))
        records = {r.work_date: r for r in self._attendance.list_for_employee_between(employee_id, start, end)}
        holidays = {h.day: h for h in self._holidays.list_between(start, end)}

        leave_by_day: dict[date, str] = {}
        for leave in self._leaves.list_approved_between(employee_id, start, end):
            current = max(leave.from_date, start)
            while current <= min(leave.to_date, end):
                leave_by_day.setdefault(current, leave.leave_type)
                current += timedelta(days=1)

        summary = CalendarSummary(total_days=(end - start).days + 1)
        days: List[CalendarDay] = []
        current = start
        while current <= end:
            record = records.get(current)
            punches = dict(
                punch_in=record.punch_in if record else None,
                punch_out=record.punch_out if record else None,
            )

            if current in holidays:
                summary.holiday_days += 1
                days.append(
                    CalendarDay(
                        day=current,
                        day_type=DayType.HOLIDAY,
                        status=DayType.HOLIDAY.value,
                        holiday_name=holidays[current].name,
                        **punches,
                    )
                )
            elif is_weekend(current):
                summary.holiday_days += 1
                days.append(CalendarDay(day=current, day_type=DayType.WEEKEND, status=DayType.HOLIDAY.value, **punches))
            elif current in leave_by_day:
                summary.leave_days += 1
                days.append(
                    CalendarDay(
                        day=current,
                        day_type=DayType.LEAVE,
                        status=DayType.LEAVE.value,
                        leave_type=leave_by_day[current],
                        **punches,
                    )
                )
            else:
                status = record.status if record and record.punch_in else AttendanceStatus.ABSENT
                if status == AttendanceStatus.PRESENT:
                    summary.present_days += 1
                elif status == AttendanceStatus.HALF_DAY:
                    summary.half_days += 1
                elif status == AttendanceStatus.INCOMPLETE:
                    summary.incomplete_days += 1
                else:
                    summary.absent_days += 1
                days.append(CalendarDay(day=current, day_type=DayType.WORKDAY, status=status.value, **punches))

            current += timedelta(days=1)

        return MonthlyCalendar(employee=employee, year=int(year), month=int(month), days=days, summary=summary)

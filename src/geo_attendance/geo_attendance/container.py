from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from .attendance.heartbeat import HeartbeatMonitor
from .attendance.month_calendar import CalendarService
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .attendance.status_policy import StatusPolicy
from .attendance.sweeper import TimeoutSweeper
from .core import constants
from .database.connection import DBConfig, DatabaseConnection
from .employees.mysql_employee_repository import MySQLEmployeeRepository
from .employees.repository import EmployeeRepository
from .holidays.mysql_holiday_repository import MySQLHolidayRepository
from .holidays.repository import HolidayRepository
from .leave.mysql_leave_repository import MySQLLeaveRepository
from .leave.repository import LeaveRepository
from .office.model import OfficePolicy
from .office.mysql_office_repository import MySQLOfficePolicyRepository
from .office.repository import OfficePolicyRepository


@dataclass(frozen=True)
class Container:
    attendance_repo: AttendanceRepository
    employees_repo: EmployeeRepository
    leave_repo: LeaveRepository
    office_repo: OfficePolicyRepository
    holidays_repo: HolidayRepository

    attendance_service: AttendanceService
    heartbeat_monitor: HeartbeatMonitor
    timeout_sweeper: TimeoutSweeper
    calendar_service: CalendarService


def wire(
    *,
    attendance_repo: AttendanceRepository,
    employees_repo: EmployeeRepository,
    leave_repo: LeaveRepository,
    office_repo: OfficePolicyRepository,
    holidays_repo: HolidayRepository,
    tracking: Mapping[str, Any] | None = None,
) -> Container:
    """Build services over any set of repositories (MySQL in the app, in-memory in tests)."""

    tracking = tracking or {}
    status_policy = StatusPolicy(
        half_day_after_minutes=int(tracking.get("HALF_DAY_OUT_MINUTES", constants.HALF_DAY_OUT_MINUTES)),
        absent_after_minutes=int(tracking.get("ABSENT_OUT_MINUTES", constants.ABSENT_OUT_MINUTES)),
    )

    return Container(
        attendance_repo=attendance_repo,
        employees_repo=employees_repo,
        leave_repo=leave_repo,
        office_repo=office_repo,
        holidays_repo=holidays_repo,
        attendance_service=AttendanceService(
            attendance_repo,
            employees_repo,
            leave_repo,
            office_repo,
            status_policy=status_policy,
        ),
        heartbeat_monitor=HeartbeatMonitor(
            attendance_repo,
            office_repo,
            status_policy=status_policy,
            max_out_count=int(tracking.get("MAX_OUT_COUNT", constants.MAX_OUT_COUNT)),
        ),
        timeout_sweeper=TimeoutSweeper(
            attendance_repo,
            timeout_minutes=int(tracking.get("HEARTBEAT_TIMEOUT_MINUTES", constants.HEARTBEAT_TIMEOUT_MINUTES)),
        ),
        calendar_service=CalendarService(attendance_repo, employees_repo, leave_repo, holidays_repo),
    )


def build_container(*, db_config: dict, office_defaults: dict, tracking: Mapping[str, Any] | None = None) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    defaults = OfficePolicy(
        latitude=float(office_defaults["latitude"]),
        longitude=float(office_defaults["longitude"]),
        radius_meters=int(office_defaults["radius_meters"]),
        authorized_ip=str(office_defaults["public_ip"]),
    )

    return wire(
        attendance_repo=MySQLAttendanceRepository(conn),
        employees_repo=MySQLEmployeeRepository(conn),
        leave_repo=MySQLLeaveRepository(conn),
        office_repo=MySQLOfficePolicyRepository(conn, defaults=defaults),
        holidays_repo=MySQLHolidayRepository(conn),
        tracking=tracking,
    )

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any, Optional, Sequence

from ..common.datetime_utils import day_key, month_bounds, utc_now
from ..core.constants import DEFAULT_HISTORY_LIMIT
from ..core.enums import AttendanceStatus, OutReason
from ..core.exceptions import (
    AlreadyPunchedIn,
    AlreadyPunchedOut,
    LocationRejected,
    NotFound,
    NotPunchedIn,
    OnApprovedLeave,
    ValidationError,
)
from ..employees.repository import EmployeeRepository
from ..geo.validator import LocationCheck, validate_location
from ..leave.repository import LeaveRepository
from ..office.model import OfficePolicy
from ..office.repository import OfficePolicyRepository
from .lifecycle import add_out_minutes, apply_status_policy
from .model import AttendanceRecord, PresenceStatus
from .out_periods import OutPeriodTracker
from .repository import AttendanceRepository
from .status_policy import StatusPolicy

logger = logging.getLogger(__name__)


class AttendanceService:
    """Punch-in / punch-out lifecycle of the daily attendance row."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        employees: EmployeeRepository,
        leaves: LeaveRepository,
        office: OfficePolicyRepository,
        *,
        status_policy: StatusPolicy | None = None,
    ):
        self._attendance = attendance
        self._employees = employees
        self._leaves = leaves
        self._office = office
        self._policy = status_policy or StatusPolicy()

    def _require_employee(self, employee_id: int) -> None:
        employee = self._employees.get_by_id(employee_id)
        if not employee or not employee.is_active:
            raise NotFound("Employee not found")

    def _require_no_leave(self, employee_id: int, today: date) -> None:
        if self._leaves.has_approved_leave(employee_id, today):
            raise OnApprovedLeave("Cannot mark attendance on approved leave dates")

    @staticmethod
    def _require_compliant(check: LocationCheck) -> None:
        if not check.valid:
            logger.debug("Location rejected: %s", check.error)
            raise LocationRejected(
                check.error or "Location rejected",
                location_compliant=check.location_compliant,
                network_compliant=check.network_compliant,
                distance_meters=check.distance_meters,
            )

    def validate_location(self, latitude: Any, longitude: Any, ip_address: Any) -> tuple[LocationCheck, OfficePolicy]:
        """Pre-check used by clients before punching in. No state change."""

        policy = self._office.current_policy()
        return validate_location(latitude, longitude, ip_address, policy), policy

    def punch_in(
        self,
        employee_id: int,
        latitude: Any,
        longitude: Any,
        ip_address: Any,
        *,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        now = now or utc_now()
        today = day_key(now)

        # Malformed input is rejected before any state is looked at.
        check = validate_location(latitude, longitude, ip_address, self._office.current_policy())

        self._require_employee(employee_id)
        self._require_no_leave(employee_id, today)

        with self._attendance.lock_day(employee_id, today) as uow:
            existing = uow.record
            if existing and existing.punch_in is not None:
                raise AlreadyPunchedIn("Already punched in for today")

            self._require_compliant(check)

            fields = dict(
                punch_in=now,
                punch_out=None,
                last_heartbeat=now,
                total_out_minutes=0,
                out_count=0,
                status=AttendanceStatus.PRESENT,
                auto_punched_out=False,
                auto_punch_out_reason=None,
                latitude=check.latitude,
                longitude=check.longitude,
                distance_meters=check.distance_meters,
                ip_address=check.ip_address,
            )
            if existing:
                # Row pre-created by a leave/regularization write with no punches.
                record = replace(existing, **fields)
                uow.save_record(record)
            else:
                record = uow.insert_record(
                    AttendanceRecord(attendance_id=None, employee_id=employee_id, work_date=today, **fields)
                )

        logger.info("Employee %s punched in at %s (%.2fm from office)", employee_id, now, check.distance_meters)
        return record

    def punch_out(
        self,
        employee_id: int,
        latitude: Any,
        longitude: Any,
        ip_address: Any,
        *,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        now = now or utc_now()
        today = day_key(now)

        check = validate_location(latitude, longitude, ip_address, self._office.current_policy())
        self._require_no_leave(employee_id, today)

        with self._attendance.lock_day(employee_id, today) as uow:
            record = uow.record
            if not record or record.punch_in is None:
                raise NotPunchedIn("Must punch in before punching out")
            if record.punch_out is not None:
                raise AlreadyPunchedOut("Already punched out for today")

            self._require_compliant(check)

            tracker = OutPeriodTracker(uow)
            open_period = tracker.find_open_period(record)
            if open_period is not None:
                minutes = tracker.close_period(open_period, now, OutReason.MANUAL)
                record = add_out_minutes(record, minutes)

            record, auto_reason = apply_status_policy(record, self._policy, now)
            if auto_reason is None:
                record = replace(record, punch_out=now)
            uow.save_record(record)

        logger.info(
            "Employee %s punched out at %s (status=%s, out=%d min)",
            employee_id,
            now,
            record.status.value,
            record.total_out_minutes,
        )
        return record

    def get_today_record(self, employee_id: int, *, now: datetime | None = None) -> Optional[AttendanceRecord]:
        return self._attendance.get_for_employee_and_date(employee_id, day_key(now or utc_now()))

    def get_presence(self, employee_id: int, *, now: datetime | None = None) -> PresenceStatus:
        record = self.get_today_record(employee_id, now=now)
        if not record:
            return PresenceStatus(
                punched_in=False,
                inside_office=False,
                status=None,
                last_heartbeat=None,
                out_count=0,
                total_out_minutes=0,
            )

        open_period = None
        if record.attendance_id is not None:
            open_period = next((p for p in self._attendance.list_out_periods(record.attendance_id) if p.is_open), None)

        return PresenceStatus(
            punched_in=record.is_open,
            inside_office=record.is_open and open_period is None,
            status=record.status,
            last_heartbeat=record.last_heartbeat,
            out_count=record.out_count,
            total_out_minutes=record.total_out_minutes,
            out_since=open_period.out_time if open_period else None,
            auto_punched_out=record.auto_punched_out,
            auto_punch_out_reason=record.auto_punch_out_reason,
        )

    def get_history(
        self,
        employee_id: int,
        *,
        month: int | None = None,
        year: int | None = None,
        limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> Sequence[AttendanceRecord]:
        if month is None or year is None:
            return self._attendance.get_recent_for_employee(employee_id, limit)
        if not 1 <= int(month) <= 12:
            raise ValidationError("Month must be between 1 and 12")
        start, end = month_bounds(int(year), int(month))
        return self._attendance.list_for_employee_between(employee_id, start, end)

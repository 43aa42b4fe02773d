from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceStatus, AutoPunchOutReason, OutReason


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one attendance row per (employee, day)."""

    attendance_id: Optional[int]
    employee_id: int
    work_date: date
    punch_in: Optional[datetime] = None
    punch_out: Optional[datetime] = None
    last_heartbeat: Optional[datetime] = None
    total_out_minutes: int = 0
    out_count: int = 0
    status: AttendanceStatus = AttendanceStatus.PRESENT
    auto_punched_out: bool = False
    auto_punch_out_reason: Optional[AutoPunchOutReason] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    distance_meters: Optional[float] = None
    ip_address: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.punch_in is not None and self.punch_out is None


@dataclass(frozen=True)
class OutPeriod:
    """An interval the employee spent outside the geofence/network while punched in."""

    out_period_id: Optional[int]
    attendance_id: int
    out_time: datetime
    reason: OutReason
    in_time: Optional[datetime] = None
    duration_minutes: Optional[int] = None

    @property
    def is_open(self) -> bool:
        return self.in_time is None


@dataclass(frozen=True)
class HeartbeatOutcome:
    """What a heartbeat did to the session; serialized as the presence descriptor."""

    punched_in: bool
    inside_office: bool
    location_compliant: bool
    network_compliant: bool
    already_punched_out: bool = False
    auto_punched_out: bool = False
    auto_punch_out_reason: Optional[AutoPunchOutReason] = None
    out_period_opened: Optional[OutReason] = None
    out_minutes_added: int = 0
    record: Optional[AttendanceRecord] = None


@dataclass(frozen=True)
class PresenceStatus:
    punched_in: bool
    inside_office: bool
    status: Optional[AttendanceStatus]
    last_heartbeat: Optional[datetime]
    out_count: int
    total_out_minutes: int
    out_since: Optional[datetime] = None
    auto_punched_out: bool = False
    auto_punch_out_reason: Optional[AutoPunchOutReason] = None

from __future__ import annotations

from datetime import date
from typing import ContextManager, Optional, Protocol, Sequence

from .model import AttendanceRecord, OutPeriod


class AttendanceUnitOfWork(Protocol):
    """Writes against one (employee, day) while its lock is held.

    ``record`` is the locked row as read when the lock was taken (``None`` when
    the day has no row yet) and is refreshed by ``insert_record``/``save_record``.
    """

    employee_id: int
    work_date: date
    record: Optional[AttendanceRecord]

    def insert_record(self, record: AttendanceRecord) -> AttendanceRecord:
        """Persist a new row; returns it with ``attendance_id`` assigned."""

        raise NotImplementedError

    def save_record(self, record: AttendanceRecord) -> None:
        raise NotImplementedError

    def get_open_out_period(self, attendance_id: int) -> Optional[OutPeriod]:
        raise NotImplementedError

    def insert_out_period(self, period: OutPeriod) -> OutPeriod:
        raise NotImplementedError

    def save_out_period(self, period: OutPeriod) -> None:
        raise NotImplementedError


class AttendanceRepository(Protocol):
    def lock_day(self, employee_id: int, work_date: date) -> ContextManager[AttendanceUnitOfWork]:
        """Serialize every read-modify-write on one attendance row.

        Changes made through the yielded unit of work are committed when the
        block exits normally and discarded when it raises.
        """

        raise NotImplementedError

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_recent_for_employee(self, employee_id: int, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_for_employee_between(self, employee_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def list_open_for_date(self, work_date: date) -> Sequence[AttendanceRecord]:
        """Rows of that day with punch-in set and punch-out unset."""

        raise NotImplementedError

    def list_out_periods(self, attendance_id: int) -> Sequence[OutPeriod]:
        raise NotImplementedError

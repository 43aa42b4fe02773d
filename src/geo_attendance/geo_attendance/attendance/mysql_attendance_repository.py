from __future__ import annotations

from contextlib import contextmanager
from dataclasses import replace
from datetime import date
from typing import Any, Dict, Iterator, Optional, Sequence

from mysql.connector import errorcode
from mysql.connector.errors import IntegrityError

from ..core.enums import AttendanceStatus, AutoPunchOutReason, OutReason
from ..core.exceptions import AlreadyPunchedIn
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, db_cursor, fetchall, fetchone
from .model import AttendanceRecord, OutPeriod
from .repository import AttendanceRepository, AttendanceUnitOfWork

_RECORD_COLUMNS = """
    id, employee_id, date, punch_in, punch_out, last_heartbeat,
    total_out_minutes, out_count, status, auto_punched_out, auto_punch_out_reason,
    latitude, longitude, distance_meters, ip_address
"""

_PERIOD_COLUMNS = "id, attendance_id, out_time, in_time, duration_minutes, reason"


def _opt_float(value: Any) -> Optional[float]:
    return float(value) if value is not None else None


def _to_record(r: Dict[str, Any]) -> AttendanceRecord:
    reason = r.get("auto_punch_out_reason")
    return AttendanceRecord(
        attendance_id=int(r["id"]),
        employee_id=int(r["employee_id"]),
        work_date=r["date"],
        punch_in=r.get("punch_in"),
        punch_out=r.get("punch_out"),
        last_heartbeat=r.get("last_heartbeat"),
        total_out_minutes=int(r.get("total_out_minutes") or 0),
        out_count=int(r.get("out_count") or 0),
        status=AttendanceStatus(r["status"]),
        auto_punched_out=as_bool(r.get("auto_punched_out")),
        auto_punch_out_reason=AutoPunchOutReason(reason) if reason else None,
        latitude=_opt_float(r.get("latitude")),
        longitude=_opt_float(r.get("longitude")),
        distance_meters=_opt_float(r.get("distance_meters")),
        ip_address=r.get("ip_address"),
    )


def _to_period(r: Dict[str, Any]) -> OutPeriod:
    duration = r.get("duration_minutes")
    return OutPeriod(
        out_period_id=int(r["id"]),
        attendance_id=int(r["attendance_id"]),
        out_time=r["out_time"],
        in_time=r.get("in_time"),
        duration_minutes=int(duration) if duration is not None else None,
        reason=OutReason(r["reason"]),
    )


def _record_params(record: AttendanceRecord) -> tuple:
    return (
        record.punch_in,
        record.punch_out,
        record.last_heartbeat,
        int(record.total_out_minutes),
        int(record.out_count),
        record.status.value,
        bool(record.auto_punched_out),
        record.auto_punch_out_reason.value if record.auto_punch_out_reason else None,
        record.latitude,
        record.longitude,
        record.distance_meters,
        record.ip_address,
    )


class _MySQLAttendanceUnitOfWork(AttendanceUnitOfWork):
    """Bound to the cursor of the transaction holding the row lock."""

    def __init__(self, cur, *, employee_id: int, work_date: date, record: Optional[AttendanceRecord]):
        self._cur = cur
        self.employee_id = employee_id
        self.work_date = work_date
        self.record = record

    def insert_record(self, record: AttendanceRecord) -> AttendanceRecord:
        try:
            self._cur.execute(
                """
                INSERT INTO attendance(
                    employee_id, date, punch_in, punch_out, last_heartbeat,
                    total_out_minutes, out_count, status, auto_punched_out, auto_punch_out_reason,
                    latitude, longitude, distance_meters, ip_address
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (record.employee_id, record.work_date, *_record_params(record)),
            )
        except IntegrityError as e:
            # Lost the race against a concurrent first punch-in of the same day.
            if e.errno == errorcode.ER_DUP_ENTRY:
                raise AlreadyPunchedIn("Already punched in for today") from e
            raise
        saved = replace(record, attendance_id=int(self._cur.lastrowid))
        self.record = saved
        return saved

    def save_record(self, record: AttendanceRecord) -> None:
        self._cur.execute(
            """
            UPDATE attendance
            SET punch_in=%s, punch_out=%s, last_heartbeat=%s,
                total_out_minutes=%s, out_count=%s, status=%s,
                auto_punched_out=%s, auto_punch_out_reason=%s,
                latitude=%s, longitude=%s, distance_meters=%s, ip_address=%s
            WHERE id=%s
            """,
            (*_record_params(record), int(record.attendance_id)),
        )
        self.record = record

    def get_open_out_period(self, attendance_id: int) -> Optional[OutPeriod]:
        self._cur.execute(
            f"""
            SELECT {_PERIOD_COLUMNS}
            FROM out_periods
            WHERE attendance_id=%s AND in_time IS NULL
            ORDER BY out_time DESC
            LIMIT 1
            """,
            (int(attendance_id),),
        )
        r = fetchone(self._cur)
        return _to_period(r) if r else None

    def insert_out_period(self, period: OutPeriod) -> OutPeriod:
        self._cur.execute(
            "INSERT INTO out_periods(attendance_id, out_time, reason) VALUES(%s,%s,%s)",
            (int(period.attendance_id), period.out_time, period.reason.value),
        )
        return replace(period, out_period_id=int(self._cur.lastrowid))

    def save_out_period(self, period: OutPeriod) -> None:
        self._cur.execute(
            "UPDATE out_periods SET in_time=%s, duration_minutes=%s, reason=%s WHERE id=%s",
            (period.in_time, period.duration_minutes, period.reason.value, int(period.out_period_id)),
        )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    @contextmanager
    def lock_day(self, employee_id: int, work_date: date) -> Iterator[AttendanceUnitOfWork]:
        with db_cursor(self._conn_factory, isolation_level="READ COMMITTED") as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance WHERE employee_id=%s AND date=%s FOR UPDATE",
                (int(employee_id), work_date),
            )
            r = fetchone(cur)
            yield _MySQLAttendanceUnitOfWork(
                cur,
                employee_id=int(employee_id),
                work_date=work_date,
                record=_to_record(r) if r else None,
            )

    def get_for_employee_and_date(self, employee_id: int, work_date: date) -> Optional[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance WHERE employee_id=%s AND date=%s",
                (int(employee_id), work_date),
            )
            r = fetchone(cur)
            return _to_record(r) if r else None

    def get_recent_for_employee(self, employee_id: int, limit: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance WHERE employee_id=%s ORDER BY date DESC LIMIT %s",
                (int(employee_id), int(limit)),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_for_employee_between(self, employee_id: int, start: date, end: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM attendance
                WHERE employee_id=%s AND date BETWEEN %s AND %s
                ORDER BY date DESC
                """,
                (int(employee_id), start, end),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_open_for_date(self, work_date: date) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_RECORD_COLUMNS}
                FROM attendance
                WHERE date=%s AND punch_in IS NOT NULL AND punch_out IS NULL
                ORDER BY employee_id
                """,
                (work_date,),
            )
            return [_to_record(r) for r in fetchall(cur)]

    def list_out_periods(self, attendance_id: int) -> Sequence[OutPeriod]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_PERIOD_COLUMNS} FROM out_periods WHERE attendance_id=%s ORDER BY out_time",
                (int(attendance_id),),
            )
            return [_to_period(r) for r in fetchall(cur)]

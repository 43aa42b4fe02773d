from __future__ import annotations

from datetime import date
from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import ApprovedLeave
from .repository import APPROVED_LEAVE_STATUSES, LeaveRepository

_STATUS_PLACEHOLDERS = ", ".join(["%s"] * len(APPROVED_LEAVE_STATUSES))


class MySQLLeaveRepository(LeaveRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def has_approved_leave(self, employee_id: int, day: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT id FROM leave_requests
                WHERE employee_id=%s
                  AND status IN ({_STATUS_PLACEHOLDERS})
                  AND from_date <= %s AND to_date >= %s
                LIMIT 1
                """,
                (int(employee_id), *APPROVED_LEAVE_STATUSES, day, day),
            )
            return fetchone(cur) is not None

    def list_approved_between(self, employee_id: int, start: date, end: date) -> Sequence[ApprovedLeave]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT employee_id, leave_type, from_date, to_date
                FROM leave_requests
                WHERE employee_id=%s
                  AND status IN ({_STATUS_PLACEHOLDERS})
                  AND from_date <= %s AND to_date >= %s
                ORDER BY from_date
                """,
                (int(employee_id), *APPROVED_LEAVE_STATUSES, end, start),
            )
            return [
                ApprovedLeave(
                    employee_id=int(r["employee_id"]),
                    leave_type=r["leave_type"],
                    from_date=r["from_date"],
                    to_date=r["to_date"],
                )
                for r in fetchall(cur)
            ]

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import elapsed_minutes
from ..core.enums import OutReason
from ..core.exceptions import StateConflict
from .model import AttendanceRecord, OutPeriod
from .repository import AttendanceUnitOfWork


class OutPeriodTracker:
    """OUT-period ledger of one locked attendance row.

    Only used inside ``AttendanceRepository.lock_day``, so the check for an
    open period and the insert that follows cannot interleave with another
    writer of the same row.
    """

    def __init__(self, uow: AttendanceUnitOfWork):
        self._uow = uow

    def find_open_period(self, record: AttendanceRecord) -> Optional[OutPeriod]:
        return self._uow.get_open_out_period(int(record.attendance_id))

    def open_period(self, record: AttendanceRecord, now: datetime, reason: OutReason) -> OutPeriod:
        if self.find_open_period(record) is not None:
            raise StateConflict("An OUT period is already open for this attendance")
        return self._uow.insert_out_period(
            OutPeriod(out_period_id=None, attendance_id=int(record.attendance_id), out_time=now, reason=reason)
        )

    def close_period(self, period: OutPeriod, now: datetime, reason: Optional[OutReason] = None) -> int:
        """Close ``period`` at ``now`` and return its length in whole minutes.

        ``reason`` replaces the opening reason when the closure itself has a
        cause worth keeping (manual punch-out, heartbeat timeout).
        """

        duration = elapsed_minutes(period.out_time, now)
        self._uow.save_out_period(
            replace(period, in_time=now, duration_minutes=duration, reason=reason or period.reason)
        )
        return duration

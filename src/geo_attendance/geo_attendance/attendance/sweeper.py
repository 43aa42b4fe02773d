from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from ..common.datetime_utils import day_key, utc_now
from ..core.constants import HEARTBEAT_TIMEOUT_MINUTES, SWEEP_INTERVAL_MINUTES
from ..core.enums import AttendanceStatus, AutoPunchOutReason, OutReason
from .lifecycle import add_out_minutes, auto_punch_out
from .model import AttendanceRecord
from .out_periods import OutPeriodTracker
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

SWEEP_JOB_ID = "heartbeat_timeout_sweep"


def _is_stale(record: AttendanceRecord, cutoff: datetime) -> bool:
    return record.last_heartbeat is None or record.last_heartbeat < cutoff


class TimeoutSweeper:
    """Closes today's sessions whose heartbeat went silent.

    A closed-by-timeout day is INCOMPLETE whatever its OUT total; the status
    policy is not consulted.
    """

    def __init__(self, attendance: AttendanceRepository, *, timeout_minutes: int = HEARTBEAT_TIMEOUT_MINUTES):
        self._attendance = attendance
        self._timeout = timedelta(minutes=int(timeout_minutes))

    def sweep(self, *, now: datetime | None = None) -> int:
        """Returns how many sessions were closed."""

        now = now or utc_now()
        today = day_key(now)
        cutoff = now - self._timeout

        closed = 0
        for candidate in self._attendance.list_open_for_date(today):
            if not _is_stale(candidate, cutoff):
                continue
            try:
                if self._close_if_stale(candidate.employee_id, today, now, cutoff):
                    closed += 1
            except Exception:
                logger.exception(
                    "Heartbeat timeout close failed for employee %s on %s", candidate.employee_id, today
                )
        return closed

    def _close_if_stale(self, employee_id: int, today: date, now: datetime, cutoff: datetime) -> bool:
        with self._attendance.lock_day(employee_id, today) as uow:
            # Re-read under the lock: a punch-out or a late heartbeat may have won.
            record = uow.record
            if not record or not record.is_open or not _is_stale(record, cutoff):
                return False

            tracker = OutPeriodTracker(uow)
            open_period = tracker.find_open_period(record)
            if open_period is not None:
                minutes = tracker.close_period(open_period, now, OutReason.HEARTBEAT_TIMEOUT)
                record = add_out_minutes(record, minutes)

            record = auto_punch_out(
                record,
                now,
                status=AttendanceStatus.INCOMPLETE,
                reason=AutoPunchOutReason.HEARTBEAT_TIMEOUT,
            )
            uow.save_record(record)

        logger.info("Employee %s auto punched out: no heartbeat since %s", employee_id, record.last_heartbeat)
        return True

    def run_scheduled(self) -> None:
        """Scheduler entry point; a failed sweep must not kill the job."""

        try:
            count = self.sweep()
            if count:
                logger.info("Heartbeat check auto punched out %d employee(s)", count)
        except Exception:
            logger.exception("Heartbeat timeout sweep failed")


def start_sweeper(
    sweeper: TimeoutSweeper,
    *,
    interval_minutes: int = SWEEP_INTERVAL_MINUTES,
    scheduler: Optional[BackgroundScheduler] = None,
) -> BackgroundScheduler:
    scheduler = scheduler or BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        func=sweeper.run_scheduled,
        trigger=IntervalTrigger(minutes=int(interval_minutes)),
        id=SWEEP_JOB_ID,
        name="Heartbeat timeout sweep",
        replace_existing=True,
        max_instances=1,
        coalesce=True,
    )
    if not scheduler.running:
        scheduler.start()
    logger.info("Heartbeat timeout sweeper started (every %d minutes)", int(interval_minutes))
    return scheduler

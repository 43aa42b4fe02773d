from __future__ import annotations

import calendar
from datetime import date, datetime, timezone


def utc_now() -> datetime:
    """Current time as a naive UTC datetime (the form stored in MySQL DATETIME).

    Note: Wrapped so tests can patch/mock easier.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def day_key(moment: datetime) -> date:
    """Calendar day an instant belongs to.

    Days are cut at UTC midnight. Every "today" used for attendance rows,
    leave checks, holidays and weekends goes through here.
    """
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    return moment.date()


def elapsed_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between two instants, floored, never negative."""
    seconds = (end - start).total_seconds()
    if seconds <= 0:
        return 0
    return int(seconds // 60)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5

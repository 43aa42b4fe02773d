"""State transitions shared by punch-out, heartbeat and the timeout sweep."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Optional, Tuple

from ..core.enums import AttendanceStatus, AutoPunchOutReason
from .model import AttendanceRecord
from .status_policy import StatusPolicy


def add_out_minutes(record: AttendanceRecord, minutes: int) -> AttendanceRecord:
    return replace(record, total_out_minutes=record.total_out_minutes + max(0, int(minutes)))


def auto_punch_out(
    record: AttendanceRecord,
    now: datetime,
    *,
    status: AttendanceStatus,
    reason: AutoPunchOutReason,
) -> AttendanceRecord:
    return replace(
        record,
        punch_out=now,
        status=status,
        auto_punched_out=True,
        auto_punch_out_reason=reason,
    )


def apply_status_policy(
    record: AttendanceRecord,
    policy: StatusPolicy,
    now: datetime,
) -> Tuple[AttendanceRecord, Optional[AutoPunchOutReason]]:
    """Recompute status after the OUT total changed.

    Returns the new record and, when the policy ended the session, the
    auto punch-out reason.
    """

    decision = policy.decide(record.total_out_minutes)
    if decision.force_punch_out:
        reason = AutoPunchOutReason.MAX_OUT_TIME
        return auto_punch_out(record, now, status=decision.status, reason=reason), reason
    return replace(record, status=decision.status), None

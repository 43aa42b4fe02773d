from __future__ import annotations

from dataclasses import dataclass

from ..core.constants import ABSENT_OUT_MINUTES, HALF_DAY_OUT_MINUTES
from ..core.enums import AttendanceStatus


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    force_punch_out: bool = False


@dataclass(frozen=True)
class StatusPolicy:
    """Map cumulative OUT minutes of a day to the attendance status.

    Both bounds are inclusive on the lower status: exactly 120 minutes is
    still PRESENT, exactly 240 still HALF_DAY. Anything above 240 is ABSENT
    and ends the session.
    """

    half_day_after_minutes: int = HALF_DAY_OUT_MINUTES
    absent_after_minutes: int = ABSENT_OUT_MINUTES

    def decide(self, total_out_minutes: int) -> StatusDecision:
        if total_out_minutes > self.absent_after_minutes:
            return StatusDecision(status=AttendanceStatus.ABSENT, force_punch_out=True)
        if total_out_minutes > self.half_day_after_minutes:
            return StatusDecision(status=AttendanceStatus.HALF_DAY)
        return StatusDecision(status=AttendanceStatus.PRESENT)

from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class ApprovedLeave:
    """Approved leave range, both ends inclusive."""

    employee_id: int
    leave_type: str
    from_date: date
    to_date: date

    def covers(self, day: date) -> bool:
        return self.from_date <= day <= self.to_date

from __future__ import annotations

from datetime import date
from typing import Protocol, Sequence

from .model import ApprovedLeave

# Leave is approved once either approver in the chain has signed it off.
APPROVED_LEAVE_STATUSES = ("MANAGER_APPROVED", "HR_APPROVED")


class LeaveRepository(Protocol):
    def has_approved_leave(self, employee_id: int, day: date) -> bool:
        raise NotImplementedError

    def list_approved_between(self, employee_id: int, start: date, end: date) -> Sequence[ApprovedLeave]:
        """Approved leaves overlapping [start, end]."""

        raise NotImplementedError

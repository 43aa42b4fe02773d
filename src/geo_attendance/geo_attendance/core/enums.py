from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Caller role handed over by the identity layer."""

    EMPLOYEE = "EMPLOYEE"
    MANAGER = "MANAGER"
    HR = "HR"
    ADMIN = "ADMIN"


class AttendanceStatus(str, Enum):
    """Day status stored on the attendance row."""

    PRESENT = "PRESENT"
    HALF_DAY = "HALF_DAY"
    ABSENT = "ABSENT"
    INCOMPLETE = "INCOMPLETE"


class OutReason(str, Enum):
    """Why an OUT period was opened (or how it was closed)."""

    GEO_FENCE_EXIT = "GEO_FENCE_EXIT"
    IP_CHANGE = "IP_CHANGE"
    MANUAL = "MANUAL"
    HEARTBEAT_TIMEOUT = "HEARTBEAT_TIMEOUT"


class AutoPunchOutReason(str, Enum):
    MAX_OUT_COUNT = "MAX_OUT_COUNT"
    MAX_OUT_TIME = "MAX_OUT_TIME"
    HEARTBEAT_TIMEOUT = "HEARTBEAT_TIMEOUT"


class DayType(str, Enum):
    """Calendar classification of a single day."""

    WORKDAY = "WORKDAY"
    WEEKEND = "WEEKEND"
    HOLIDAY = "HOLIDAY"
    LEAVE = "LEAVE"

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any

from ..common.datetime_utils import day_key, utc_now
from ..core.constants import MAX_OUT_COUNT
from ..core.enums import AutoPunchOutReason, OutReason
from ..core.exceptions import NoActiveSession
from ..geo.validator import validate_location
from ..office.repository import OfficePolicyRepository
from .lifecycle import add_out_minutes, apply_status_policy, auto_punch_out
from .model import HeartbeatOutcome
from .out_periods import OutPeriodTracker
from .repository import AttendanceRepository
from .status_policy import StatusPolicy

logger = logging.getLogger(__name__)


class HeartbeatMonitor:
    """Turns periodic location pings into OUT periods and status changes.

    A heartbeat counts as "inside" when the position is within the geofence
    and the network address is either the one captured at punch-in or the
    office address currently authorized (the office may rotate its public
    address during the day).
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        office: OfficePolicyRepository,
        *,
        status_policy: StatusPolicy | None = None,
        max_out_count: int = MAX_OUT_COUNT,
    ):
        self._attendance = attendance
        self._office = office
        self._policy = status_policy or StatusPolicy()
        self._max_out_count = int(max_out_count)

    def heartbeat(
        self,
        employee_id: int,
        latitude: Any,
        longitude: Any,
        ip_address: Any,
        *,
        now: datetime | None = None,
    ) -> HeartbeatOutcome:
        now = now or utc_now()
        today = day_key(now)
        check = validate_location(latitude, longitude, ip_address, self._office.current_policy())

        with self._attendance.lock_day(employee_id, today) as uow:
            record = uow.record
            if not record or record.punch_in is None:
                raise NoActiveSession("No active attendance session for today")

            if record.punch_out is not None:
                return HeartbeatOutcome(
                    punched_in=False,
                    inside_office=False,
                    location_compliant=check.location_compliant,
                    network_compliant=check.network_compliant,
                    already_punched_out=True,
                    auto_punched_out=record.auto_punched_out,
                    auto_punch_out_reason=record.auto_punch_out_reason,
                    record=record,
                )

            network_ok = check.network_compliant or check.ip_address == record.ip_address
            inside = check.location_compliant and network_ok

            record = replace(record, last_heartbeat=now)
            tracker = OutPeriodTracker(uow)
            open_period = tracker.find_open_period(record)

            def outcome(**kwargs) -> HeartbeatOutcome:
                return HeartbeatOutcome(
                    punched_in=record.is_open,
                    inside_office=inside and record.is_open,
                    location_compliant=check.location_compliant,
                    network_compliant=network_ok,
                    auto_punched_out=record.punch_out is not None,
                    auto_punch_out_reason=record.auto_punch_out_reason,
                    record=record,
                    **kwargs,
                )

            if not inside and open_period is None:
                if record.out_count >= self._max_out_count:
                    decision = self._policy.decide(record.total_out_minutes)
                    record = auto_punch_out(
                        record, now, status=decision.status, reason=AutoPunchOutReason.MAX_OUT_COUNT
                    )
                    uow.save_record(record)
                    logger.info(
                        "Employee %s auto punched out: OUT limit of %d events reached",
                        employee_id,
                        self._max_out_count,
                    )
                    return outcome()

                reason = OutReason.GEO_FENCE_EXIT if not check.location_compliant else OutReason.IP_CHANGE
                tracker.open_period(record, now, reason)
                record = replace(record, out_count=record.out_count + 1)
                uow.save_record(record)
                logger.info("Employee %s went OUT (%s), event %d", employee_id, reason.value, record.out_count)
                return outcome(out_period_opened=reason)

            if inside and open_period is not None:
                minutes = tracker.close_period(open_period, now)
                record = add_out_minutes(record, minutes)
                record, auto_reason = apply_status_policy(record, self._policy, now)
                uow.save_record(record)
                if auto_reason is not None:
                    logger.info(
                        "Employee %s auto punched out: %d OUT minutes exceed the daily limit",
                        employee_id,
                        record.total_out_minutes,
                    )
                else:
                    logger.info("Employee %s back IN after %d min OUT", employee_id, minutes)
                return outcome(out_minutes_added=minutes)

            uow.save_record(record)
            return outcome()

from __future__ import annotations

import logging
from datetime import datetime
from functools import wraps
from typing import Any, Optional

from flask import Flask, jsonify, request, session

from ..core.exceptions import (
    DomainError,
    LocationRejected,
    NotFound,
    PolicyViolation,
    StateConflict,
    ValidationError,
)
from ..container import Container
from .model import AttendanceRecord, HeartbeatOutcome, PresenceStatus
from .month_calendar import MonthlyCalendar

logger = logging.getLogger(__name__)

_HTTP_STATUS = (
    (ValidationError, 400),
    (PolicyViolation, 403),
    (NotFound, 404),
    (StateConflict, 409),
)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() + "Z" if value else None


def record_json(r: Optional[AttendanceRecord]) -> Optional[dict]:
    if r is None:
        return None
    return {
        "id": r.attendance_id,
        "employeeId": r.employee_id,
        "date": r.work_date.isoformat(),
        "punchIn": _iso(r.punch_in),
        "punchOut": _iso(r.punch_out),
        "lastHeartbeat": _iso(r.last_heartbeat),
        "totalOutMinutes": r.total_out_minutes,
        "outCount": r.out_count,
        "status": r.status.value,
        "autoPunchedOut": r.auto_punched_out,
        "autoPunchOutReason": r.auto_punch_out_reason.value if r.auto_punch_out_reason else None,
        "latitude": r.latitude,
        "longitude": r.longitude,
        "distanceMeters": r.distance_meters,
        "ipAddress": r.ip_address,
    }


def heartbeat_json(o: HeartbeatOutcome) -> dict:
    if o.already_punched_out:
        return {
            "success": True,
            "message": "Already punched out",
            "punchedIn": False,
            "insideOffice": False,
            "autoPunchedOut": o.auto_punched_out,
            "reason": o.auto_punch_out_reason.value if o.auto_punch_out_reason else None,
        }
    if o.auto_punched_out:
        return {
            "success": True,
            "message": "Automatically punched out",
            "autoPunchedOut": True,
            "reason": o.auto_punch_out_reason.value if o.auto_punch_out_reason else None,
            "punchedIn": False,
            "insideOffice": False,
            "attendance": record_json(o.record),
        }
    return {
        "success": True,
        "punchedIn": o.punched_in,
        "insideOffice": o.inside_office,
        "locationCompliant": o.location_compliant,
        "networkCompliant": o.network_compliant,
        "outPeriodOpened": o.out_period_opened.value if o.out_period_opened else None,
        "outMinutesAdded": o.out_minutes_added,
        "status": o.record.status.value if o.record else None,
        "outCount": o.record.out_count if o.record else 0,
        "totalOutMinutes": o.record.total_out_minutes if o.record else 0,
    }


def presence_json(p: PresenceStatus) -> dict:
    return {
        "success": True,
        "punchedIn": p.punched_in,
        "insideOffice": p.inside_office,
        "status": p.status.value if p.status else None,
        "lastHeartbeat": _iso(p.last_heartbeat),
        "outCount": p.out_count,
        "totalOutMinutes": p.total_out_minutes,
        "outSince": _iso(p.out_since),
        "autoPunchedOut": p.auto_punched_out,
        "autoPunchOutReason": p.auto_punch_out_reason.value if p.auto_punch_out_reason else None,
    }


def calendar_json(c: MonthlyCalendar) -> dict:
    s = c.summary
    return {
        "success": True,
        "month": c.month,
        "year": c.year,
        "daysInMonth": len(c.days),
        "employee": {"id": c.employee.employee_id, "name": c.employee.name, "email": c.employee.email, "role": c.employee.role.value},
        "days": [
            {
                "day": d.day.day,
                "date": d.day.isoformat(),
                "status": d.status,
                "type": d.day_type.value,
                "leaveType": d.leave_type,
                "holidayName": d.holiday_name,
                "punchIn": _iso(d.punch_in),
                "punchOut": _iso(d.punch_out),
            }
            for d in c.days
        ],
        "summary": {
            "totalDays": s.total_days,
            "presentDays": s.present_days,
            "halfDays": s.half_days,
            "absentDays": s.absent_days,
            "incompleteDays": s.incomplete_days,
            "leaveDays": s.leave_days,
            "holidayDays": s.holiday_days,
        },
    }


def error_response(e: DomainError):
    status = next((code for cls, code in _HTTP_STATUS if isinstance(e, cls)), 400)
    body: dict[str, Any] = {"success": False, "error": str(e), "code": e.code}
    if isinstance(e, LocationRejected):
        body.update(
            locationValid=e.location_compliant,
            wifiValid=e.network_compliant,
            distance=e.distance_meters,
        )
    return jsonify(body), status


def register(app: Flask, container: Container) -> None:
    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"success": False, "error": "Authentication required", "code": "UNAUTHENTICATED"}), 401
            return view(*args, **kwargs)

        return wrapper

    def _current_employee_id() -> int:
        return int(session["user_id"])

    def _position_payload() -> tuple[Any, Any, Any]:
        data = request.get_json(silent=True) or {}
        lat, lon, ip = data.get("latitude"), data.get("longitude"), data.get("ipAddress")
        if any(v is None or v == "" for v in (lat, lon, ip)):
            raise ValidationError("Latitude, longitude, and IP address are required")
        return lat, lon, ip

    def _internal_error(action: str):
        logger.exception("%s error", action)
        return jsonify({"success": False, "error": "Internal server error"}), 500

    @app.route("/api/attendance/validate-location", methods=["POST"], endpoint="validate_location")
    @login_required
    def validate_location():
        try:
            lat, lon, ip = _position_payload()
            check, policy = container.attendance_service.validate_location(lat, lon, ip)
            return jsonify(
                {
                    "success": check.valid,
                    "valid": check.valid,
                    "locationValid": check.location_compliant,
                    "wifiValid": check.network_compliant,
                    "message": (
                        f"Location and Wi-Fi validated successfully. Distance: {check.distance_meters:.2f} meters from office."
                        if check.valid
                        else check.error
                    ),
                    "locationError": check.location_error,
                    "wifiError": check.network_error,
                    "distance": check.distance_meters,
                    "officeLocation": {
                        "latitude": policy.latitude,
                        "longitude": policy.longitude,
                        "radius": policy.radius_meters,
                        "ip": policy.authorized_ip,
                    },
                    "employeeLocation": {
                        "latitude": check.latitude,
                        "longitude": check.longitude,
                        "ip": check.ip_address,
                    },
                }
            )
        except DomainError as e:
            return error_response(e)
        except Exception:
            return _internal_error("Validate location")

    @app.route("/api/attendance/punch-in", methods=["POST"], endpoint="punch_in")
    @login_required
    def punch_in():
        try:
            lat, lon, ip = _position_payload()
            record = container.attendance_service.punch_in(_current_employee_id(), lat, lon, ip)
            return jsonify({"success": True, "message": "Punched in successfully", "attendance": record_json(record)})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return _internal_error("Punch in")

    @app.route("/api/attendance/punch-out", methods=["POST"], endpoint="punch_out")
    @login_required
    def punch_out():
        try:
            lat, lon, ip = _position_payload()
            record = container.attendance_service.punch_out(_current_employee_id(), lat, lon, ip)
            return jsonify({"success": True, "message": "Punched out successfully", "attendance": record_json(record)})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return _internal_error("Punch out")

    @app.route("/api/attendance/heartbeat", methods=["POST"], endpoint="heartbeat")
    @login_required
    def heartbeat():
        try:
            lat, lon, ip = _position_payload()
            outcome = container.heartbeat_monitor.heartbeat(_current_employee_id(), lat, lon, ip)
            return jsonify(heartbeat_json(outcome))
        except DomainError as e:
            return error_response(e)
        except Exception:
            return _internal_error("Heartbeat")

    @app.route("/api/attendance/presence", methods=["GET"], endpoint="presence")
    @login_required
    def presence():
        try:
            return jsonify(presence_json(container.attendance_service.get_presence(_current_employee_id())))
        except Exception:
            return _internal_error("Get presence status")

    @app.route("/api/attendance/today", methods=["GET"], endpoint="today")
    @login_required
    def today():
        try:
            record = container.attendance_service.get_today_record(_current_employee_id())
            return jsonify(
                {
                    "success": True,
                    "punchedIn": bool(record and record.punch_in),
                    "punchInTime": _iso(record.punch_in) if record else None,
                    "punchOutTime": _iso(record.punch_out) if record else None,
                    "status": record.status.value if record else None,
                }
            )
        except Exception:
            return _internal_error("Get today status")

    @app.route("/api/attendance/my", methods=["GET"], endpoint="my_attendance")
    @login_required
    def my_attendance():
        try:
            month = request.args.get("month", type=int)
            year = request.args.get("year", type=int)
            rows = container.attendance_service.get_history(_current_employee_id(), month=month, year=year)
            return jsonify({"success": True, "data": [record_json(r) for r in rows]})
        except DomainError as e:
            return error_response(e)
        except Exception:
            return _internal_error("Get attendance")

    @app.route("/api/attendance/my-calendar", methods=["GET"], endpoint="my_calendar")
    @login_required
    def my_calendar():
        try:
            month = request.args.get("month", type=int)
            year = request.args.get("year", type=int)
            if not month or not year:
                raise ValidationError("Month and year are required")
            cal = container.calendar_service.monthly_calendar(_current_employee_id(), year=year, month=month)
            return jsonify(calendar_json(cal))
        except DomainError as e:
            return error_response(e)
        except Exception:
            return _internal_error("Get my monthly calendar")

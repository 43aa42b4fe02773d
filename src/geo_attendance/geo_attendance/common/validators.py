from __future__ import annotations

import ipaddress
from typing import Any

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def _require_float(value: Any, field_name: str) -> float:
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field_name} is required")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if number != number or number in (float("inf"), float("-inf")):
        raise ValidationError(f"{field_name} must be a finite number")
    return number


def require_latitude(value: Any) -> float:
    lat = _require_float(value, "latitude")
    if not -90 <= lat <= 90:
        raise ValidationError("Invalid latitude or longitude")
    return lat


def require_longitude(value: Any) -> float:
    lon = _require_float(value, "longitude")
    if not -180 <= lon <= 180:
        raise ValidationError("Invalid latitude or longitude")
    return lon


def require_ip_address(value: Any) -> str:
    """Accept a literal IPv4 or IPv6 address, returned stripped."""
    if value is not None and not isinstance(value, str):
        raise ValidationError("Invalid IP address format")
    text = require_non_empty(value, "ipAddress")
    try:
        ipaddress.ip_address(text)
    except ValueError:
        raise ValidationError("Invalid IP address format")
    return text

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class OfficePolicy:
    """Geofence center/radius and the office's public network address."""

    latitude: float
    longitude: float
    radius_meters: int
    authorized_ip: str

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ..common.validators import require_ip_address, require_latitude, require_longitude
from ..office.model import OfficePolicy
from .haversine import distance_meters


@dataclass(frozen=True)
class LocationCheck:
    """Result of checking one position/network pair against the office policy."""

    latitude: float
    longitude: float
    ip_address: str
    location_compliant: bool
    network_compliant: bool
    distance_meters: float
    location_error: Optional[str] = None
    network_error: Optional[str] = None

    @property
    def valid(self) -> bool:
        return self.location_compliant and self.network_compliant

    @property
    def error(self) -> Optional[str]:
        return self.location_error or self.network_error


def validate_location(latitude: Any, longitude: Any, ip_address: Any, policy: OfficePolicy) -> LocationCheck:
    """Decide geofence and network compliance.

    Raises ValidationError when the coordinates or the address are malformed;
    a failed check is reported in the result, never raised.
    """

    lat = require_latitude(latitude)
    lon = require_longitude(longitude)
    ip = require_ip_address(ip_address)

    distance = distance_meters(lat, lon, float(policy.latitude), float(policy.longitude))

    location_ok = distance <= policy.radius_meters
    location_error = None
    if not location_ok:
        location_error = (
            f"Location is {distance:.2f} meters away from office. "
            f"Must be within {policy.radius_meters} meters."
        )

    network_ok = ip == policy.authorized_ip
    network_error = None
    if not network_ok:
        network_error = f"Not connected to office Wi-Fi. Your IP: {ip}, Office IP: {policy.authorized_ip}"

    return LocationCheck(
        latitude=lat,
        longitude=lon,
        ip_address=ip,
        location_compliant=location_ok,
        network_compliant=network_ok,
        distance_meters=round(distance, 2),
        location_error=location_error,
        network_error=network_error,
    )

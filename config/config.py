"""Settings shared by every environment module."""

import os

LOG_FORMAT = os.getenv("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")

# Used while the office_settings table is empty.
OFFICE_DEFAULTS = {
    "latitude": float(os.getenv("DEFAULT_OFFICE_LATITUDE", "17.489313654492967")),
    "longitude": float(os.getenv("DEFAULT_OFFICE_LONGITUDE", "78.39285505628658")),
    "radius_meters": int(os.getenv("DEFAULT_OFFICE_RADIUS", "50")),
    "public_ip": os.getenv("DEFAULT_OFFICE_PUBLIC_IP", "103.206.104.149"),
}

# Presence tracking
HALF_DAY_OUT_MINUTES = int(os.getenv("HALF_DAY_OUT_MINUTES", "120"))
ABSENT_OUT_MINUTES = int(os.getenv("ABSENT_OUT_MINUTES", "240"))
MAX_OUT_COUNT = int(os.getenv("MAX_OUT_COUNT", "2"))
HEARTBEAT_TIMEOUT_MINUTES = int(os.getenv("HEARTBEAT_TIMEOUT_MINUTES", "10"))
SWEEP_INTERVAL_MINUTES = int(os.getenv("SWEEP_INTERVAL_MINUTES", "5"))


def db_config(default_password: str = "") -> dict:
    return {
        "host": os.getenv("DB_HOST", "localhost"),
        "port": int(os.getenv("DB_PORT", "3306")),
        "user": os.getenv("DB_USER", "root"),
        "password": os.getenv("DB_PASSWORD", default_password),
        "database": os.getenv("DB_NAME", "geo_attendance"),
    }

from __future__ import annotations

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchone
from .model import OfficePolicy
from .repository import OfficePolicyRepository


class MySQLOfficePolicyRepository(OfficePolicyRepository):
    """Reads the newest ``office_settings`` row, falling back to configured defaults."""

    def __init__(self, conn_factory: DatabaseConnection, *, defaults: OfficePolicy):
        self._conn_factory = conn_factory
        self._defaults = defaults

    def current_policy(self) -> OfficePolicy:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT latitude, longitude, radius_meters, office_public_ip
                FROM office_settings
                ORDER BY id DESC
                LIMIT 1
                """
            )
            r = fetchone(cur)
            if not r:
                return self._defaults
            return OfficePolicy(
                latitude=float(r["latitude"]),
                longitude=float(r["longitude"]),
                radius_meters=int(r["radius_meters"]),
                authorized_ip=str(r["office_public_ip"]),
            )

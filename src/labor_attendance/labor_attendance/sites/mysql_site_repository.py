from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Site
from .repository import SiteRepository


def _to_site(r: dict) -> Site:
    return Site(
        site_id=int(r["site_id"]),
        name=r["name"],
        latitude=float(r["latitude"]),
        longitude=float(r["longitude"]),
        radius_meters=float(r["radius_meters"]),
        is_active=bool(r["is_active"]),
        address=r.get("address"),
    )


class MySQLSiteRepository(SiteRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, site_id: int) -> Optional[Site]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT site_id, name, latitude, longitude, radius_meters, is_active, address
                FROM sites
                WHERE site_id=%s
                """,
                (int(site_id),),
            )
            r = fetchone(cur)
            return _to_site(r) if r else None

    def list_active(self) -> Sequence[Site]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT site_id, name, latitude, longitude, radius_meters, is_active, address
                FROM sites
                WHERE is_active=1
                ORDER BY site_id
                """
            )
            return [_to_site(r) for r in fetchall(cur)]

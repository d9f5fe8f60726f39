from __future__ import annotations

import json
from decimal import Decimal
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Worker
from .repository import WorkerRepository

_COLUMNS = "worker_id, name, base_rate, face_descriptor, is_active, shift_id, site_id, category, phone"


def _load_descriptor(raw) -> Optional[list[float]]:
    if raw is None or raw == "":
        return None
    return [float(x) for x in json.loads(raw)]


def _to_worker(r: dict) -> Worker:
    return Worker(
        worker_id=int(r["worker_id"]),
        name=r["name"],
        base_rate=Decimal(r["base_rate"]),
        face_descriptor=_load_descriptor(r.get("face_descriptor")),
        is_active=bool(r["is_active"]),
        shift_id=r.get("shift_id"),
        site_id=r.get("site_id"),
        category=r.get("category"),
        phone=r.get("phone"),
    )


class MySQLWorkerRepository(WorkerRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, worker_id: int) -> Optional[Worker]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM workers WHERE worker_id=%s", (int(worker_id),))
            r = fetchone(cur)
            return _to_worker(r) if r else None

    def list_enrolled(self) -> Sequence[Worker]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM workers
                WHERE is_active=1 AND face_descriptor IS NOT NULL
                ORDER BY name
                """
            )
            return [_to_worker(r) for r in fetchall(cur)]

    def count_active_for_site(self, site_id: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(*) AS n FROM workers WHERE is_active=1 AND site_id=%s",
                (int(site_id),),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def set_face_descriptor(self, worker_id: int, descriptor: Optional[Sequence[float]]) -> bool:
        payload = json.dumps([float(x) for x in descriptor]) if descriptor is not None else None
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE workers SET face_descriptor=%s WHERE worker_id=%s",
                (payload, int(worker_id)),
            )
            return cur.rowcount > 0

from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import RequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import AccessRequest
from .repository import AccessRequestRepository

_COLUMNS = """
    request_id, worker_id, site_id, latitude, longitude, distance_meters,
    status, created_at, decided_by, decided_at
"""


def _to_request(r: dict) -> AccessRequest:
    distance = r.get("distance_meters")
    return AccessRequest(
        request_id=int(r["request_id"]),
        worker_id=int(r["worker_id"]),
        site_id=int(r["site_id"]),
        latitude=float(r["latitude"]),
        longitude=float(r["longitude"]),
        status=RequestStatus(r["status"]),
        created_at=r["created_at"],
        distance_meters=int(distance) if distance is not None else None,
        decided_by=r.get("decided_by"),
        decided_at=r.get("decided_at"),
    )


class MySQLAccessRequestRepository(AccessRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        worker_id: int,
        site_id: int,
        latitude: float,
        longitude: float,
        created_at: datetime,
        distance_meters: Optional[int] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO access_requests(worker_id, site_id, latitude, longitude, distance_meters, status, created_at)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(worker_id),
                    int(site_id),
                    float(latitude),
                    float(longitude),
                    distance_meters,
                    RequestStatus.PENDING.value,
                    created_at,
                ),
            )
            return int(cur.lastrowid)

    def get(self, *, request_id: int) -> Optional[AccessRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM access_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _to_request(r) if r else None

    def find_pending(self, *, worker_id: int, site_id: int, work_date: date) -> Optional[AccessRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM access_requests
                WHERE worker_id=%s AND site_id=%s AND status=%s AND DATE(created_at)=%s
                ORDER BY created_at DESC
                LIMIT 1
                """,
                (int(worker_id), int(site_id), RequestStatus.PENDING.value, work_date),
            )
            r = fetchone(cur)
            return _to_request(r) if r else None

    def list(
        self,
        *,
        status: Optional[RequestStatus] = None,
        worker_id: Optional[int] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[AccessRequest]:
        clauses = ["1=1"]
        params: list[object] = []

        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if worker_id is not None:
            clauses.append("worker_id=%s")
            params.append(int(worker_id))

        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM access_requests
                WHERE {where}
                ORDER BY created_at DESC, request_id DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_request(r) for r in fetchall(cur)]

    def decide(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        decided_by: str,
        decided_at: datetime,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE access_requests
                SET status=%s, decided_by=%s, decided_at=%s
                WHERE request_id=%s AND status=%s
                """,
                (status.value, decided_by, decided_at, int(request_id), RequestStatus.PENDING.value),
            )
            return cur.rowcount > 0

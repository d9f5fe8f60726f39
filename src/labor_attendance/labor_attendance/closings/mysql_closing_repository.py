from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import ClosingSource, ClosingStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import DailyClosing
from .repository import ClosingRepository

_COLUMNS = """
    closing_id, site_id, work_date, source, automated_count, reference_count,
    difference, status, note, closed_by, closed_at
"""


def _to_closing(r: dict) -> DailyClosing:
    return DailyClosing(
        closing_id=int(r["closing_id"]),
        site_id=int(r["site_id"]),
        work_date=r["work_date"],
        source=ClosingSource(r["source"]),
        automated_count=int(r["automated_count"]),
        reference_count=int(r["reference_count"]),
        difference=int(r["difference"]),
        status=ClosingStatus(r["status"]),
        closed_by=r["closed_by"],
        closed_at=r["closed_at"],
        note=r.get("note"),
    )


class MySQLClosingRepository(ClosingRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(
        self,
        *,
        site_id: int,
        work_date: date,
        source: ClosingSource,
        automated_count: int,
        reference_count: int,
        difference: int,
        status: ClosingStatus,
        closed_by: str,
        closed_at: datetime,
        note: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO daily_closings(
                    site_id, work_date, source, automated_count, reference_count,
                    difference, status, note, closed_by, closed_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(site_id),
                    work_date,
                    source.value,
                    int(automated_count),
                    int(reference_count),
                    int(difference),
                    status.value,
                    note,
                    closed_by,
                    closed_at,
                ),
            )
            return int(cur.lastrowid)

    def get(self, *, closing_id: int) -> Optional[DailyClosing]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM daily_closings WHERE closing_id=%s", (int(closing_id),))
            r = fetchone(cur)
            return _to_closing(r) if r else None

    def latest(
        self,
        *,
        site_id: int,
        work_date: date,
        source: Optional[ClosingSource] = None,
    ) -> Optional[DailyClosing]:
        clauses = ["site_id=%s", "work_date=%s"]
        params: list[object] = [int(site_id), work_date]
        if source is not None:
            clauses.append("source=%s")
            params.append(source.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM daily_closings
                WHERE {" AND ".join(clauses)}
                ORDER BY closed_at DESC, closing_id DESC
                LIMIT 1
                """,
                tuple(params),
            )
            r = fetchone(cur)
            return _to_closing(r) if r else None

    def list(
        self,
        *,
        start: date,
        end: date,
        site_id: Optional[int] = None,
        status: Optional[ClosingStatus] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[DailyClosing]:
        clauses = ["work_date BETWEEN %s AND %s"]
        params: list[object] = [start, end]
        if site_id is not None:
            clauses.append("site_id=%s")
            params.append(int(site_id))
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM daily_closings
                WHERE {" AND ".join(clauses)}
                ORDER BY work_date DESC, closed_at DESC, closing_id DESC
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_closing(r) for r in fetchall(cur)]

    def set_note(self, *, closing_id: int, note: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE daily_closings SET note=%s WHERE closing_id=%s", (note, int(closing_id)))
            return cur.rowcount > 0

    def delete_many(self, closing_ids: Iterable[int]) -> int:
        ids = [int(i) for i in closing_ids]
        if not ids:
            return 0
        placeholders = ",".join(["%s"] * len(ids))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"DELETE FROM daily_closings WHERE closing_id IN ({placeholders})", tuple(ids))
            return int(cur.rowcount)

    def delete_before(self, cutoff: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM daily_closings WHERE work_date < %s", (cutoff,))
            return int(cur.rowcount)

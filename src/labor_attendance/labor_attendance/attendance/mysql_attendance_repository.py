from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Sequence

from mysql.connector import errors as mysql_errors

from ..core.enums import AttendanceState, DayStatus
from ..core.exceptions import DuplicateCheckInError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_bool, as_optional_float, db_cursor, fetchall, fetchone, is_duplicate_key
from .model import AttendanceLog
from .repository import AttendanceRepository

_COLUMNS = """
    log_id, worker_id, site_id, work_date, check_in_time, check_out_time, hours_worked,
    state, day_status, gps_lat, gps_lon, gps_accuracy, is_flagged, access_request_id, note
"""


def _to_log(r: dict) -> AttendanceLog:
    return AttendanceLog(
        log_id=int(r["log_id"]),
        worker_id=int(r["worker_id"]),
        site_id=int(r["site_id"]),
        work_date=r["work_date"],
        check_in_time=r["check_in_time"],
        check_out_time=r.get("check_out_time"),
        hours_worked=as_optional_float(r.get("hours_worked")),
        state=AttendanceState(r["state"]),
        day_status=DayStatus(r.get("day_status") or DayStatus.PRESENT.value),
        gps_lat=as_optional_float(r.get("gps_lat")),
        gps_lon=as_optional_float(r.get("gps_lon")),
        gps_accuracy=as_optional_float(r.get("gps_accuracy")),
        is_flagged=as_bool(r.get("is_flagged")),
        access_request_id=r.get("access_request_id"),
        note=r.get("note"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, log_id: int) -> Optional[AttendanceLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_logs WHERE log_id=%s", (int(log_id),))
            r = fetchone(cur)
            return _to_log(r) if r else None

    def get_for_worker_and_date(self, worker_id: int, work_date: date) -> Optional[AttendanceLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance_logs WHERE worker_id=%s AND work_date=%s",
                (int(worker_id), work_date),
            )
            r = fetchone(cur)
            return _to_log(r) if r else None

    def create_check_in(
        self,
        *,
        worker_id: int,
        site_id: int,
        work_date: date,
        check_in_time: datetime,
        gps_lat: Optional[float] = None,
        gps_lon: Optional[float] = None,
        gps_accuracy: Optional[float] = None,
        is_flagged: bool = False,
        access_request_id: Optional[int] = None,
        note: Optional[str] = None,
    ) -> int:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_logs(
                        worker_id, site_id, work_date, check_in_time, state,
                        gps_lat, gps_lon, gps_accuracy, is_flagged, access_request_id, note
                    )
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                    """,
                    (
                        int(worker_id),
                        int(site_id),
                        work_date,
                        check_in_time,
                        AttendanceState.CHECKED_IN.value,
                        gps_lat,
                        gps_lon,
                        gps_accuracy,
                        1 if is_flagged else 0,
                        access_request_id,
                        note,
                    ),
                )
                return int(cur.lastrowid)
        except mysql_errors.IntegrityError as e:
            if is_duplicate_key(e):
                raise DuplicateCheckInError("Already checked in today") from e
            raise

    def update_check_out(
        self,
        *,
        log_id: int,
        check_out_time: datetime,
        hours_worked: float,
        day_status: DayStatus,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_logs
                SET check_out_time=%s, hours_worked=%s, day_status=%s, state=%s
                WHERE log_id=%s AND state=%s AND check_out_time IS NULL
                """,
                (
                    check_out_time,
                    hours_worked,
                    day_status.value,
                    AttendanceState.CHECKED_OUT.value,
                    int(log_id),
                    AttendanceState.CHECKED_IN.value,
                ),
            )
            return cur.rowcount > 0

    def count_checked_in(self, *, site_id: int, work_date: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT COUNT(DISTINCT worker_id) AS n
                FROM attendance_logs
                WHERE site_id=%s AND work_date=%s
                """,
                (int(site_id), work_date),
            )
            r = fetchone(cur)
            return int(r["n"]) if r else 0

    def list_for_site_and_date(self, *, site_id: int, work_date: date) -> Sequence[AttendanceLog]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_logs
                WHERE site_id=%s AND work_date=%s
                ORDER BY check_in_time
                """,
                (int(site_id), work_date),
            )
            return [_to_log(r) for r in fetchall(cur)]

    def delete(self, log_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM attendance_logs WHERE log_id=%s", (int(log_id),))
            return cur.rowcount > 0

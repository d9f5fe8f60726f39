from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from mysql.connector import errorcode
from mysql.connector import errors as mysql_errors

from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def is_duplicate_key(err: BaseException) -> bool:
    """True when a write lost a UNIQUE / PRIMARY KEY race."""

    return isinstance(err, mysql_errors.IntegrityError) and getattr(err, "errno", None) == errorcode.ER_DUP_ENTRY


def as_bool(value: Any) -> bool:
    # TINYINT(1) comes back as int; some drivers hand back b'\x01'
    if isinstance(value, (bytes, bytearray)):
        return any(value)
    return bool(value)


def as_optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)

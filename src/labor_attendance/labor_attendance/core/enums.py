from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles of back-office users calling the engine."""

    ADMIN = "admin"
    OWNER = "owner"
    MANAGER = "manager"
    ACCOUNTANT = "accountant"


class AttendanceState(str, Enum):
    """Lifecycle of one worker's attendance on one calendar date.

    NO_LOG is never stored: it is the absence of a row.
    """

    NO_LOG = "NO_LOG"
    CHECKED_IN = "CHECKED_IN"
    CHECKED_OUT = "CHECKED_OUT"


class DayStatus(str, Enum):
    PRESENT = "PRESENT"
    HALF_DAY = "HALF_DAY"


class RequestStatus(str, Enum):
    """Access request workflow status (PENDING -> APPROVED | REJECTED)."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class ClosingSource(str, Enum):
    """Where the reference count of a daily closing comes from."""

    ROSTER = "ROSTER"
    NOTEBOOK = "NOTEBOOK"


class ClosingStatus(str, Enum):
    OK = "OK"
    MATCHED = "MATCHED"
    MISMATCH = "MISMATCH"


class LocationFailure(str, Enum):
    PERMISSION_DENIED = "PERMISSION_DENIED"
    POSITION_UNAVAILABLE = "POSITION_UNAVAILABLE"
    TIMEOUT = "TIMEOUT"

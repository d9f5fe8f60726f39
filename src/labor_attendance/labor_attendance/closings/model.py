from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Tuple

from ..core.enums import ClosingSource, ClosingStatus


def reconcile(automated_count: int, reference_count: int, source: ClosingSource) -> Tuple[int, ClosingStatus]:
    """Difference and status of a closing; status depends on the difference only.

    ROSTER compares scanned against expected (scanned - expected), NOTEBOOK
    compares the system count against the supervisor's notebook
    (system - notebook). Both differences are automated minus reference.
    """

    difference = int(automated_count) - int(reference_count)
    if difference != 0:
        return difference, ClosingStatus.MISMATCH
    if source == ClosingSource.NOTEBOOK:
        return difference, ClosingStatus.MATCHED
    return difference, ClosingStatus.OK


@dataclass(frozen=True)
class DailyClosing:
    """End-of-day headcount reconciliation for one site."""

    closing_id: int
    site_id: int
    work_date: date
    source: ClosingSource
    automated_count: int
    reference_count: int
    difference: int
    status: ClosingStatus
    closed_by: str
    closed_at: datetime
    note: Optional[str] = None

    @property
    def is_mismatch(self) -> bool:
        return self.status == ClosingStatus.MISMATCH


@dataclass(frozen=True)
class ClosingSummary:
    total: int
    ok: int
    mismatch: int

from __future__ import annotations

from datetime import date, datetime
from typing import Iterable, Optional, Protocol, Sequence

from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import ClosingSource, ClosingStatus
from .model import DailyClosing


class ClosingRepository(Protocol):
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
        """Append a closing; earlier closings of the same day are kept."""

        raise NotImplementedError

    def get(self, *, closing_id: int) -> Optional[DailyClosing]:
        raise NotImplementedError

    def latest(
        self,
        *,
        site_id: int,
        work_date: date,
        source: Optional[ClosingSource] = None,
    ) -> Optional[DailyClosing]:
        raise NotImplementedError

    def list(
        self,
        *,
        start: date,
        end: date,
        site_id: Optional[int] = None,
        status: Optional[ClosingStatus] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[DailyClosing]:
        """Closings with start <= work_date <= end, newest first."""

        raise NotImplementedError

    def set_note(self, *, closing_id: int, note: str) -> bool:
        raise NotImplementedError

    def delete_many(self, closing_ids: Iterable[int]) -> int:
        raise NotImplementedError

    def delete_before(self, cutoff: date) -> int:
        """Delete closings whose work_date is strictly before `cutoff`."""

        raise NotImplementedError

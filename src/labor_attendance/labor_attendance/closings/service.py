from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable, Optional, Sequence

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import days_ago
from ..common.validators import optional_note, require_non_empty, require_non_negative_int
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import ClosingSource, ClosingStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..sites.repository import SiteRepository
from ..workers.repository import WorkerRepository
from .model import ClosingSummary, DailyClosing, reconcile
from .repository import ClosingRepository

logger = logging.getLogger(__name__)

ADMIN_ROLES = {Role.ADMIN, Role.OWNER}


class ClosingService:
    """End-of-day reconciliation of scanned attendance against a manual count.

    A mismatch is recorded and reported, never enforced. Closings are
    append-only: re-running a day adds a new row and the newest one wins.
    """

    def __init__(
        self,
        closings: ClosingRepository,
        attendance: AttendanceRepository,
        workers: WorkerRepository,
        sites: SiteRepository,
    ):
        self._closings = closings
        self._attendance = attendance
        self._workers = workers
        self._sites = sites

    def _require_site(self, site_id: int) -> int:
        site = self._sites.get_by_id(int(site_id))
        if not site:
            raise NotFoundError("Site not found")
        return site.site_id

    def _record(
        self,
        *,
        site_id: int,
        work_date: date,
        source: ClosingSource,
        automated_count: int,
        reference_count: int,
        closed_by: str,
        now: datetime,
        note: Optional[str],
    ) -> DailyClosing:
        difference, status = reconcile(automated_count, reference_count, source)
        closing_id = self._closings.create(
            site_id=site_id,
            work_date=work_date,
            source=source,
            automated_count=automated_count,
            reference_count=reference_count,
            difference=difference,
            status=status,
            closed_by=require_non_empty(closed_by, "Closed by"),
            closed_at=now,
            note=optional_note(note),
        )

        message = (
            f"Closing {closing_id} for site {site_id} on {work_date:%Y-%m-%d} ({source.value}): "
            f"{automated_count} vs {reference_count}, difference {difference:+d}"
        )
        if status == ClosingStatus.MISMATCH:
            logger.warning(f"{message} MISMATCH")
        else:
            logger.info(f"{message} {status.value}")

        closing = self._closings.get(closing_id=closing_id)
        if not closing:
            raise NotFoundError("Closing not found after saving")
        return closing

    def compute_daily_closing(
        self,
        site_id: int,
        work_date: date,
        expected_count: Optional[int] = None,
        *,
        closed_by: str,
        now: datetime,
        note: Optional[str] = None,
    ) -> DailyClosing:
        """Scanned workers vs expected headcount; difference = scanned - expected.

        Without an explicit `expected_count` the active workers assigned to the
        site are the expectation.
        """

        site_id = self._require_site(site_id)
        if expected_count is None:
            expected = self._workers.count_active_for_site(site_id)
        else:
            expected = require_non_negative_int(expected_count, "Expected count")
        scanned = self._attendance.count_checked_in(site_id=site_id, work_date=work_date)

        return self._record(
            site_id=site_id,
            work_date=work_date,
            source=ClosingSource.ROSTER,
            automated_count=scanned,
            reference_count=expected,
            closed_by=closed_by,
            now=now,
            note=note,
        )

    def compute_notebook_closing(
        self,
        site_id: int,
        work_date: date,
        notebook_count: int,
        *,
        closed_by: str,
        now: datetime,
        note: Optional[str] = None,
    ) -> DailyClosing:
        """System count vs the supervisor's notebook; difference = system - notebook."""

        site_id = self._require_site(site_id)
        notebook = require_non_negative_int(notebook_count, "Notebook count")
        system = self._attendance.count_checked_in(site_id=site_id, work_date=work_date)

        return self._record(
            site_id=site_id,
            work_date=work_date,
            source=ClosingSource.NOTEBOOK,
            automated_count=system,
            reference_count=notebook,
            closed_by=closed_by,
            now=now,
            note=note,
        )

    def latest_closing(
        self, site_id: int, work_date: date, source: Optional[ClosingSource] = None
    ) -> Optional[DailyClosing]:
        return self._closings.latest(site_id=int(site_id), work_date=work_date, source=source)

    def annotate_closing(self, closing_id: int, note: str) -> DailyClosing:
        """Attach the explaining note to a closing; counts are left untouched."""

        note = require_non_empty(note, "Note")
        if not self._closings.get(closing_id=int(closing_id)):
            raise NotFoundError("Closing not found")
        self._closings.set_note(closing_id=int(closing_id), note=note)
        logger.info(f"Closing {closing_id} annotated")

        closing = self._closings.get(closing_id=int(closing_id))
        if not closing:
            raise NotFoundError("Closing not found")
        return closing

    def list_closings(
        self,
        start: date,
        end: date,
        status: Optional[ClosingStatus] = None,
        *,
        site_id: Optional[int] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[DailyClosing]:
        if end < start:
            raise ValidationError("End date must be on or after start date")
        return self._closings.list(start=start, end=end, site_id=site_id, status=status, limit=int(limit))

    @staticmethod
    def summarize(closings: Iterable[DailyClosing]) -> ClosingSummary:
        rows = list(closings)
        mismatch = sum(1 for c in rows if c.is_mismatch)
        return ClosingSummary(total=len(rows), ok=len(rows) - mismatch, mismatch=mismatch)

    def delete_closings(self, closing_ids: Iterable[int], *, current_role: Role, confirm: bool) -> int:
        if current_role not in ADMIN_ROLES:
            raise AuthorizationError("Only administrators can delete closings")
        ids = sorted({require_non_negative_int(i, "Closing id") for i in closing_ids})
        if not ids:
            raise ValidationError("Select at least one closing to delete")
        if not confirm:
            raise ValidationError(f"Deleting {len(ids)} closing(s) requires confirmation")
        deleted = self._closings.delete_many(ids)
        logger.info(f"Deleted {deleted} closing(s) by {current_role.value}")
        return deleted

    def delete_closings_older_than(self, days: int, *, today: date, current_role: Role, confirm: bool) -> int:
        if current_role not in ADMIN_ROLES:
            raise AuthorizationError("Only administrators can delete closings")
        days = require_non_negative_int(days, "Days")
        if days == 0:
            raise ValidationError("Days must be greater than 0")
        if not confirm:
            raise ValidationError(f"Deleting closings older than {days} days requires confirmation")
        cutoff = days_ago(today, days)
        deleted = self._closings.delete_before(cutoff)
        logger.info(f"Deleted {deleted} closing(s) dated before {cutoff:%Y-%m-%d} by {current_role.value}")
        return deleted

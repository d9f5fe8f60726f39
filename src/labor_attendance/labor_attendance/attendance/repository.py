from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import DayStatus
from .model import AttendanceLog


class AttendanceRepository(Protocol):
    def get_by_id(self, log_id: int) -> Optional[AttendanceLog]:
        raise NotImplementedError

    def get_for_worker_and_date(self, worker_id: int, work_date: date) -> Optional[AttendanceLog]:
        raise NotImplementedError

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
        """Insert the CHECKED_IN log.

        Must be atomic on (worker_id, work_date): when a log already exists the
        implementation raises DuplicateCheckInError instead of inserting.
        """

        raise NotImplementedError

    def update_check_out(
        self,
        *,
        log_id: int,
        check_out_time: datetime,
        hours_worked: float,
        day_status: DayStatus,
    ) -> bool:
        """Close an open log. Returns False if the log was not open anymore."""

        raise NotImplementedError

    def count_checked_in(self, *, site_id: int, work_date: date) -> int:
        """Distinct workers that checked in at the site on that date."""

        raise NotImplementedError

    def list_for_site_and_date(self, *, site_id: int, work_date: date) -> Sequence[AttendanceLog]:
        raise NotImplementedError

    def delete(self, log_id: int) -> bool:
        raise NotImplementedError

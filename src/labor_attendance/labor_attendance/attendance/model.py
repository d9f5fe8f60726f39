from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import AttendanceState, DayStatus


@dataclass(frozen=True)
class AttendanceLog:
    """Domain entity: one worker's attendance on one calendar date."""

    log_id: int
    worker_id: int
    site_id: int
    work_date: date
    check_in_time: datetime
    check_out_time: Optional[datetime]
    hours_worked: Optional[float]
    state: AttendanceState
    day_status: DayStatus = DayStatus.PRESENT
    gps_lat: Optional[float] = None
    gps_lon: Optional[float] = None
    gps_accuracy: Optional[float] = None
    is_flagged: bool = False
    access_request_id: Optional[int] = None
    note: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.state == AttendanceState.CHECKED_IN

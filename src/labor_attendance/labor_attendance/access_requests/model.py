from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import RequestStatus


@dataclass(frozen=True)
class AccessRequest:
    """Worker asking to be let in from outside the site geofence."""

    request_id: int
    worker_id: int
    site_id: int
    latitude: float
    longitude: float
    status: RequestStatus
    created_at: datetime
    distance_meters: Optional[int] = None
    decided_by: Optional[str] = None
    decided_at: Optional[datetime] = None

    @property
    def work_date(self) -> date:
        return self.created_at.date()

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING

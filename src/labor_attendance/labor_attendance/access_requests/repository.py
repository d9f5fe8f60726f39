from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Protocol, Sequence

from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import RequestStatus
from .model import AccessRequest


class AccessRequestRepository(Protocol):
    def create(
        self,
        *,
        worker_id: int,
        site_id: int,
        latitude: float,
        longitude: float,
        created_at: datetime,
        distance_meters: Optional[int] = None,
    ) -> int:
        raise NotImplementedError

    def get(self, *, request_id: int) -> Optional[AccessRequest]:
        raise NotImplementedError

    def find_pending(self, *, worker_id: int, site_id: int, work_date: date) -> Optional[AccessRequest]:
        raise NotImplementedError

    def list(
        self,
        *,
        status: Optional[RequestStatus] = None,
        worker_id: Optional[int] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[AccessRequest]:
        """Newest first."""

        raise NotImplementedError

    def decide(
        self,
        *,
        request_id: int,
        status: RequestStatus,
        decided_by: str,
        decided_at: datetime,
    ) -> bool:
        """Move a PENDING request to a terminal status.

        Conditional on the row still being PENDING; returns False when another
        decision got there first (or the id does not exist).
        """

        raise NotImplementedError

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional, Sequence, Union

from ..common.validators import require_non_empty, validate_coordinates
from ..core.constants import DEFAULT_LIST_LIMIT
from ..core.enums import RequestStatus, Role
from ..core.exceptions import (
    AccessNotGrantedError,
    AlreadyResolvedError,
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from ..geofence.model import Coordinates
from ..sites.repository import SiteRepository
from ..workers.repository import WorkerRepository
from .model import AccessRequest
from .repository import AccessRequestRepository

logger = logging.getLogger(__name__)

RESOLVER_ROLES = {Role.ADMIN, Role.OWNER}
TERMINAL_STATUSES = {RequestStatus.APPROVED, RequestStatus.REJECTED}


class AccessRequestService:
    """PENDING -> APPROVED | REJECTED. A decided request never changes again."""

    def __init__(self, requests: AccessRequestRepository, workers: WorkerRepository, sites: SiteRepository):
        self._requests = requests
        self._workers = workers
        self._sites = sites

    def get_request(self, request_id: int) -> AccessRequest:
        req = self._requests.get(request_id=int(request_id))
        if not req:
            raise NotFoundError("Access request not found")
        return req

    def submit_access_request(
        self,
        worker_id: int,
        site_id: int,
        coords: Coordinates,
        *,
        now: datetime,
        distance_meters: Optional[int] = None,
    ) -> AccessRequest:
        lat, lon = validate_coordinates(coords.latitude, coords.longitude)

        if not self._workers.get_by_id(int(worker_id)):
            raise NotFoundError("Worker not found")
        if not self._sites.get_by_id(int(site_id)):
            raise NotFoundError("Site not found")

        existing = self._requests.find_pending(worker_id=int(worker_id), site_id=int(site_id), work_date=now.date())
        if existing:
            logger.info(f"Worker {worker_id} already has pending access request {existing.request_id}")
            return existing

        request_id = self._requests.create(
            worker_id=int(worker_id),
            site_id=int(site_id),
            latitude=lat,
            longitude=lon,
            created_at=now,
            distance_meters=distance_meters,
        )
        logger.info(
            f"Access request {request_id} submitted by worker {worker_id} for site {site_id}"
            f" ({distance_meters if distance_meters is not None else '?'}m away)"
        )
        return self.get_request(request_id)

    def resolve_access_request(
        self,
        request_id: int,
        decision: Union[RequestStatus, str],
        *,
        current_role: Role,
        resolved_by: str,
        now: datetime,
    ) -> AccessRequest:
        if current_role not in RESOLVER_ROLES:
            raise AuthorizationError("Only an admin or owner can resolve access requests")

        try:
            status = decision if isinstance(decision, RequestStatus) else RequestStatus(str(decision).strip().upper())
        except ValueError:
            raise ValidationError(f"Unknown decision: {decision!r}")
        if status not in TERMINAL_STATUSES:
            raise ValidationError("Decision must be APPROVED or REJECTED")

        resolved_by = require_non_empty(resolved_by, "Resolver")

        decided = self._requests.decide(
            request_id=int(request_id),
            status=status,
            decided_by=resolved_by,
            decided_at=now,
        )
        if not decided:
            current = self._requests.get(request_id=int(request_id))
            if not current:
                raise NotFoundError("Access request not found")
            raise AlreadyResolvedError(f"Access request already {current.status.value}")

        logger.info(f"Access request {request_id} {status.value} by {resolved_by}")
        return self.get_request(request_id)

    def approve(self, request_id: int, *, current_role: Role, resolved_by: str, now: datetime) -> AccessRequest:
        return self.resolve_access_request(
            request_id, RequestStatus.APPROVED, current_role=current_role, resolved_by=resolved_by, now=now
        )

    def reject(self, request_id: int, *, current_role: Role, resolved_by: str, now: datetime) -> AccessRequest:
        return self.resolve_access_request(
            request_id, RequestStatus.REJECTED, current_role=current_role, resolved_by=resolved_by, now=now
        )

    def list_requests(
        self,
        status: Optional[RequestStatus] = None,
        *,
        worker_id: Optional[int] = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> Sequence[AccessRequest]:
        return self._requests.list(status=status, worker_id=worker_id, limit=int(limit))

    def find_grant(self, worker_id: int, request_id: int, work_date: date) -> AccessRequest:
        """The approved request that lets `worker_id` check in on `work_date`."""

        req = self.get_request(request_id)
        if req.worker_id != int(worker_id):
            raise AccessNotGrantedError("Access request belongs to another worker")
        if req.status != RequestStatus.APPROVED:
            raise AccessNotGrantedError(f"Access request is {req.status.value}, not approved")
        if req.work_date != work_date:
            raise AccessNotGrantedError("Access request was approved for a different day")
        return req

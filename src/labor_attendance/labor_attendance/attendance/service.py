from __future__ import annotations

import logging
import math
from datetime import date, datetime
from typing import Optional, Sequence, Tuple

import numpy as np

from ..access_requests.service import AccessRequestService
from ..biometrics.matcher import as_descriptor, match
from ..common.datetime_utils import hours_between
from ..common.validators import validate_coordinates
from ..core.constants import (
    DEFAULT_MATCH_THRESHOLD,
    DESCRIPTOR_LENGTH,
    SPOOF_MAX_SPEED_KMH,
    SPOOF_MIN_ACCURACY_M,
)
from ..core.enums import AttendanceState, Role
from ..core.exceptions import (
    AuthorizationError,
    DayAlreadyClosedError,
    DuplicateCheckInError,
    EarlyCheckOutError,
    IdentityMismatchError,
    NoOpenSessionError,
    NotFoundError,
    OutOfRangeError,
    SpoofedLocationError,
    ValidationError,
)
from ..geofence.evaluator import distance_outside, evaluate, format_distance, nearest_site
from ..geofence.model import Coordinates, GeofenceResult, PositionFix
from ..geofence.spoof import detect_spoof
from ..sites.model import Site
from ..sites.repository import SiteRepository
from ..workers.model import Worker
from ..workers.repository import WorkerRepository
from .factory import CheckoutStrategyFactory
from .model import AttendanceLog
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)

ADMIN_ROLES = {Role.ADMIN, Role.OWNER}
GRANTED_NOTE = "Checked in with approved access request"


class AttendanceService:
    """Per (worker, date): NO_LOG -> CHECKED_IN -> CHECKED_OUT.

    Every attempt either moves the state forward or raises; nothing is
    recorded for a rejected attempt. The one-log-per-day rule is ultimately
    enforced by the repository so two simultaneous check-ins cannot both win.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        workers: WorkerRepository,
        sites: SiteRepository,
        access_requests: AccessRequestService,
        *,
        checkout_policy: CheckoutStrategyFactory | None = None,
        match_threshold: float = DEFAULT_MATCH_THRESHOLD,
        spoof_max_speed_kmh: float = SPOOF_MAX_SPEED_KMH,
        spoof_min_accuracy_m: float = SPOOF_MIN_ACCURACY_M,
        descriptor_length: int = DESCRIPTOR_LENGTH,
    ):
        self._attendance = attendance
        self._workers = workers
        self._sites = sites
        self._access_requests = access_requests
        self._policy = checkout_policy or CheckoutStrategyFactory()
        self._match_threshold = float(match_threshold)
        self._spoof_max_speed_kmh = float(spoof_max_speed_kmh)
        self._spoof_min_accuracy_m = float(spoof_min_accuracy_m)
        self._descriptor_length = int(descriptor_length)

    def _active_worker(self, worker_id: int) -> Worker:
        worker = self._workers.get_by_id(int(worker_id))
        if not worker or not worker.is_active:
            raise NotFoundError("Worker not found or inactive")
        return worker

    def _active_site(self, site_id: int) -> Site:
        site = self._sites.get_by_id(int(site_id))
        if not site or not site.is_active:
            raise NotFoundError("Site not found or inactive")
        return site

    def _ensure_no_log(self, worker_id: int, work_date: date) -> None:
        existing = self._attendance.get_for_worker_and_date(worker_id, work_date)
        if not existing:
            return
        if existing.state == AttendanceState.CHECKED_OUT:
            raise DayAlreadyClosedError("Already checked out today. No further attendance actions allowed.")
        raise DuplicateCheckInError("Already checked in today")

    def _screen_fix(
        self, fix: Optional[PositionFix], previous_fix: Optional[PositionFix]
    ) -> Tuple[bool, Optional[str]]:
        """Reject mock GPS; accept a weak signal but flag the log."""

        if fix is None:
            return False, None
        check = detect_spoof(
            fix,
            previous_fix,
            max_speed_kmh=self._spoof_max_speed_kmh,
            min_accuracy_m=self._spoof_min_accuracy_m,
        )
        if check.is_spoofed:
            logger.warning(f"Spoofed location rejected ({check.reason}, confidence {check.confidence:.2f})")
            raise SpoofedLocationError(f"Location rejected: {check.reason}")
        if check.reason:
            return True, check.reason
        return False, None

    def _verify_identity(self, worker: Worker, candidate: np.ndarray) -> float:
        result = match(candidate, worker.face_descriptor, self._match_threshold)
        if not result.is_match:
            logger.warning(
                f"Face mismatch for worker {worker.worker_id}: distance {result.distance:.3f}"
                f" > threshold {self._match_threshold}"
            )
            raise IdentityMismatchError(
                "Face does not match the enrolled worker",
                distance=result.distance,
                threshold=self._match_threshold,
            )
        return result.distance

    def _load(self, log_id: int) -> AttendanceLog:
        log = self._attendance.get_by_id(log_id)
        if not log:
            raise NotFoundError("Attendance log not found")
        return log

    def request_check_in(
        self,
        worker_id: int,
        site_id: int,
        coords: Coordinates,
        descriptor,
        *,
        now: datetime,
        fix: Optional[PositionFix] = None,
        previous_fix: Optional[PositionFix] = None,
    ) -> AttendanceLog:
        lat, lon = validate_coordinates(coords.latitude, coords.longitude)
        candidate = as_descriptor(descriptor, length=self._descriptor_length)

        worker = self._active_worker(worker_id)
        site = self._active_site(site_id)
        today = now.date()

        self._ensure_no_log(worker.worker_id, today)

        flagged, note = self._screen_fix(fix, previous_fix)

        result = evaluate(lat, lon, site.latitude, site.longitude, site.radius_meters)
        if not result.within_radius:
            request = self._access_requests.submit_access_request(
                worker.worker_id,
                site.site_id,
                Coordinates(lat, lon),
                now=now,
                distance_meters=result.distance_meters,
            )
            outside = distance_outside(result, site.radius_meters)
            logger.warning(
                f"Worker {worker.worker_id} out of range of site {site.site_id}: "
                f"{result.distance_meters}m (radius {site.radius_meters:g}m), access request {request.request_id}"
            )
            raise OutOfRangeError(
                f"You are {format_distance(outside)} outside {site.name}. Access request sent to admin.",
                distance_meters=result.distance_meters,
                radius_meters=site.radius_meters,
                access_request_id=request.request_id,
            )

        distance = self._verify_identity(worker, candidate)

        log_id = self._attendance.create_check_in(
            worker_id=worker.worker_id,
            site_id=site.site_id,
            work_date=today,
            check_in_time=now,
            gps_lat=lat,
            gps_lon=lon,
            gps_accuracy=fix.accuracy_m if fix else None,
            is_flagged=flagged,
            note=note,
        )
        logger.info(
            f"Worker {worker.worker_id} checked in at site {site.site_id} "
            f"({result.distance_meters}m from centre, face distance {distance:.3f})"
        )
        return self._load(log_id)

    def request_granted_check_in(
        self,
        worker_id: int,
        access_request_id: int,
        descriptor,
        coords: Coordinates,
        *,
        now: datetime,
    ) -> AttendanceLog:
        """Check in from outside the fence on the strength of an approved request.

        The geofence is skipped; identity is not.
        """

        lat, lon = validate_coordinates(coords.latitude, coords.longitude)
        candidate = as_descriptor(descriptor, length=self._descriptor_length)

        worker = self._active_worker(worker_id)
        today = now.date()
        grant = self._access_requests.find_grant(worker.worker_id, access_request_id, today)
        site = self._active_site(grant.site_id)

        self._ensure_no_log(worker.worker_id, today)
        self._verify_identity(worker, candidate)

        log_id = self._attendance.create_check_in(
            worker_id=worker.worker_id,
            site_id=site.site_id,
            work_date=today,
            check_in_time=now,
            gps_lat=lat,
            gps_lon=lon,
            access_request_id=grant.request_id,
            note=GRANTED_NOTE,
        )
        logger.info(f"Worker {worker.worker_id} checked in at site {site.site_id} via access request {grant.request_id}")
        return self._load(log_id)

    def request_check_out(
        self,
        worker_id: int,
        *,
        now: datetime,
        hours_worked: Optional[float] = None,
        confirm_early: bool = False,
    ) -> AttendanceLog:
        log = self._attendance.get_for_worker_and_date(int(worker_id), now.date())
        if not log:
            raise NoOpenSessionError("Not checked in today")
        if not log.is_open:
            raise NoOpenSessionError("Already checked out today")
        if now < log.check_in_time:
            raise ValidationError("Check-out time cannot be earlier than check-in time")

        if hours_worked is not None:
            worked = float(hours_worked)
            if not math.isfinite(worked) or worked < 0:
                raise ValidationError("Hours worked must be a non-negative number")
        elif log.hours_worked is not None:
            worked = float(log.hours_worked)
        else:
            worked = hours_between(log.check_in_time, now)
        worked = round(worked, 2)

        strategy = self._policy.for_checkout(hours_worked=worked)
        decision = strategy.decide_checkout(hours_worked=worked, confirmed=bool(confirm_early))
        if not decision.allowed:
            raise EarlyCheckOutError(
                decision.message or "Check-out refused",
                hours_worked=worked,
                needs_confirmation=decision.needs_confirmation,
            )

        closed = self._attendance.update_check_out(
            log_id=log.log_id,
            check_out_time=now,
            hours_worked=worked,
            day_status=decision.day_status,
        )
        if not closed:
            raise NoOpenSessionError("Check-out already recorded")

        logger.info(f"Worker {log.worker_id} checked out after {worked}h ({decision.day_status.value})")
        return self._load(log.log_id)

    def delete_log(self, log_id: int, *, current_role: Role) -> None:
        if current_role not in ADMIN_ROLES:
            raise AuthorizationError("Only administrators can delete attendance logs")
        if not self._attendance.delete(int(log_id)):
            raise NotFoundError("Attendance log not found")
        logger.info(f"Attendance log {log_id} deleted by {current_role.value}")

    def get_day_log(self, worker_id: int, work_date: date) -> Optional[AttendanceLog]:
        return self._attendance.get_for_worker_and_date(int(worker_id), work_date)

    def list_site_day(self, site_id: int, work_date: date) -> Sequence[AttendanceLog]:
        return self._attendance.list_for_site_and_date(site_id=int(site_id), work_date=work_date)

    def locate_site(self, coords: Coordinates) -> Optional[Tuple[Site, GeofenceResult]]:
        """Active site containing `coords`, otherwise the closest active site."""

        lat, lon = validate_coordinates(coords.latitude, coords.longitude)
        return nearest_site(Coordinates(lat, lon), self._sites.list_active())

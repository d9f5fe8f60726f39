from __future__ import annotations

from dataclasses import dataclass
from types import ModuleType
from typing import Any, Optional

from .access_requests.mysql_access_request_repository import MySQLAccessRequestRepository
from .access_requests.service import AccessRequestService
from .attendance.factory import CheckoutStrategyFactory
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.service import AttendanceService
from .biometrics.base import DescriptorExtractor
from .closings.mysql_closing_repository import MySQLClosingRepository
from .closings.service import ClosingService
from .core import constants
from .database.connection import DBConfig, DatabaseConnection
from .sites.mysql_site_repository import MySQLSiteRepository
from .workers.mysql_worker_repository import MySQLWorkerRepository
from .workers.service import WorkerService


@dataclass(frozen=True)
class Container:
    attendance_service: AttendanceService
    access_request_service: AccessRequestService
    closing_service: ClosingService
    worker_service: WorkerService
    extractor: Optional[DescriptorExtractor] = None
    location_timeout_seconds: float = constants.LOCATION_TIMEOUT_SECONDS


def _setting(settings: Optional[ModuleType], name: str, default: Any) -> Any:
    return getattr(settings, name, default) if settings is not None else default


def build_services(
    *,
    attendance_repo,
    workers_repo,
    sites_repo,
    access_requests_repo,
    closings_repo,
    settings: Optional[ModuleType] = None,
    extractor: Optional[DescriptorExtractor] = None,
) -> Container:
    """Wire services over any repository implementations."""

    checkout_policy = CheckoutStrategyFactory(
        block_hours=float(_setting(settings, "EARLY_CHECKOUT_BLOCK_HOURS", constants.EARLY_CHECKOUT_BLOCK_HOURS)),
        confirm_hours=float(_setting(settings, "EARLY_CHECKOUT_CONFIRM_HOURS", constants.EARLY_CHECKOUT_CONFIRM_HOURS)),
    )
    access_request_service = AccessRequestService(access_requests_repo, workers_repo, sites_repo)
    attendance_service = AttendanceService(
        attendance_repo,
        workers_repo,
        sites_repo,
        access_request_service,
        checkout_policy=checkout_policy,
        match_threshold=float(_setting(settings, "MATCH_THRESHOLD", constants.DEFAULT_MATCH_THRESHOLD)),
        spoof_max_speed_kmh=float(_setting(settings, "SPOOF_MAX_SPEED_KMH", constants.SPOOF_MAX_SPEED_KMH)),
        spoof_min_accuracy_m=float(_setting(settings, "SPOOF_MIN_ACCURACY_M", constants.SPOOF_MIN_ACCURACY_M)),
    )
    closing_service = ClosingService(closings_repo, attendance_repo, workers_repo, sites_repo)
    worker_service = WorkerService(
        workers_repo,
        duplicate_threshold=float(
            _setting(settings, "DUPLICATE_FACE_THRESHOLD", constants.DEFAULT_DUPLICATE_FACE_THRESHOLD)
        ),
    )

    return Container(
        attendance_service=attendance_service,
        access_request_service=access_request_service,
        closing_service=closing_service,
        worker_service=worker_service,
        extractor=extractor,
        location_timeout_seconds=float(
            _setting(settings, "LOCATION_TIMEOUT_SECONDS", constants.LOCATION_TIMEOUT_SECONDS)
        ),
    )


def build_container(
    *,
    db_config: dict,
    settings: Optional[ModuleType] = None,
    extractor: Optional[DescriptorExtractor] = None,
) -> Container:
    conn = DatabaseConnection.get_instance(DBConfig.from_dict(db_config))

    return build_services(
        attendance_repo=MySQLAttendanceRepository(conn),
        workers_repo=MySQLWorkerRepository(conn),
        sites_repo=MySQLSiteRepository(conn),
        access_requests_repo=MySQLAccessRequestRepository(conn),
        closings_repo=MySQLClosingRepository(conn),
        settings=settings,
        extractor=extractor,
    )

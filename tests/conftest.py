from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

import pytest

from labor_attendance.access_requests.model import AccessRequest
from labor_attendance.attendance.model import AttendanceLog
from labor_attendance.closings.model import DailyClosing
from labor_attendance.container import build_services
from labor_attendance.core.enums import AttendanceState, DayStatus, RequestStatus
from labor_attendance.core.exceptions import DuplicateCheckInError
from labor_attendance.sites.model import Site
from labor_attendance.workers.model import Worker

SITE_LAT = 23.0225
SITE_LON = 72.5714


def make_face(offset: float = 0.0, *, base: float = 0.0) -> list[float]:
    """128-d descriptor at distance `offset` from make_face(base=base)."""
    return [base + offset] + [base] * 127


class FakeSiteRepo:
    def __init__(self, sites):
        self._sites = {s.site_id: s for s in sites}

    def get_by_id(self, site_id):
        return self._sites.get(int(site_id))

    def list_active(self):
        return [s for s in self._sites.values() if s.is_active]


class FakeWorkerRepo:
    def __init__(self, workers):
        self._lock = threading.RLock()
        self._workers = {w.worker_id: w for w in workers}

    def get_by_id(self, worker_id):
        return self._workers.get(int(worker_id))

    def list_enrolled(self):
        return [w for w in self._workers.values() if w.is_active and w.face_descriptor is not None]

    def count_active_for_site(self, site_id):
        return sum(1 for w in self._workers.values() if w.is_active and w.site_id == int(site_id))

    def set_face_descriptor(self, worker_id, descriptor):
        with self._lock:
            worker = self._workers.get(int(worker_id))
            if not worker:
                return False
            value = list(descriptor) if descriptor is not None else None
            self._workers[worker.worker_id] = replace(worker, face_descriptor=value)
            return True


class FakeAttendanceRepo:
    """Behaves like attendance_logs with UNIQUE(worker_id, work_date)."""

    def __init__(self):
        self._lock = threading.RLock()
        self._next_id = 1
        self.logs: dict[int, AttendanceLog] = {}
        self.insert_attempts = 0

    def get_by_id(self, log_id):
        return self.logs.get(int(log_id))

    def get_for_worker_and_date(self, worker_id, work_date):
        with self._lock:
            for log in self.logs.values():
                if log.worker_id == int(worker_id) and log.work_date == work_date:
                    return log
            return None

    def create_check_in(
        self,
        *,
        worker_id,
        site_id,
        work_date,
        check_in_time,
        gps_lat=None,
        gps_lon=None,
        gps_accuracy=None,
        is_flagged=False,
        access_request_id=None,
        note=None,
    ):
        with self._lock:
            self.insert_attempts += 1
            if self.get_for_worker_and_date(worker_id, work_date):
                raise DuplicateCheckInError("Already checked in today")
            log_id = self._next_id
            self._next_id += 1
            self.logs[log_id] = AttendanceLog(
                log_id=log_id,
                worker_id=int(worker_id),
                site_id=int(site_id),
                work_date=work_date,
                check_in_time=check_in_time,
                check_out_time=None,
                hours_worked=None,
                state=AttendanceState.CHECKED_IN,
                gps_lat=gps_lat,
                gps_lon=gps_lon,
                gps_accuracy=gps_accuracy,
                is_flagged=bool(is_flagged),
                access_request_id=access_request_id,
                note=note,
            )
            return log_id

    def update_check_out(self, *, log_id, check_out_time, hours_worked, day_status):
        with self._lock:
            log = self.logs.get(int(log_id))
            if not log or log.state != AttendanceState.CHECKED_IN or log.check_out_time is not None:
                return False
            self.logs[log.log_id] = replace(
                log,
                check_out_time=check_out_time,
                hours_worked=hours_worked,
                day_status=day_status,
                state=AttendanceState.CHECKED_OUT,
            )
            return True

    def count_checked_in(self, *, site_id, work_date):
        return len(
            {log.worker_id for log in self.logs.values() if log.site_id == int(site_id) and log.work_date == work_date}
        )

    def list_for_site_and_date(self, *, site_id, work_date):
        rows = [log for log in self.logs.values() if log.site_id == int(site_id) and log.work_date == work_date]
        return sorted(rows, key=lambda log: log.check_in_time)

    def delete(self, log_id):
        with self._lock:
            return self.logs.pop(int(log_id), None) is not None

    def seed(self, *, worker_id, site_id, work_date, check_in_time, state=AttendanceState.CHECKED_IN, **extra):
        log_id = self.create_check_in(
            worker_id=worker_id, site_id=site_id, work_date=work_date, check_in_time=check_in_time
        )
        if state == AttendanceState.CHECKED_OUT:
            self.update_check_out(
                log_id=log_id,
                check_out_time=extra.get("check_out_time", check_in_time),
                hours_worked=extra.get("hours_worked", 0.0),
                day_status=DayStatus.PRESENT,
            )
        elif extra:
            self.logs[log_id] = replace(self.logs[log_id], **extra)
        return log_id


class FakeAccessRequestRepo:
    def __init__(self):
        self._lock = threading.RLock()
        self._next_id = 1
        self.requests: dict[int, AccessRequest] = {}

    def create(self, *, worker_id, site_id, latitude, longitude, created_at, distance_meters=None):
        with self._lock:
            rid = self._next_id
            self._next_id += 1
            self.requests[rid] = AccessRequest(
                request_id=rid,
                worker_id=int(worker_id),
                site_id=int(site_id),
                latitude=float(latitude),
                longitude=float(longitude),
                status=RequestStatus.PENDING,
                created_at=created_at,
                distance_meters=distance_meters,
            )
            return rid

    def get(self, *, request_id):
        return self.requests.get(int(request_id))

    def find_pending(self, *, worker_id, site_id, work_date):
        with self._lock:
            return self._find_pending(int(worker_id), int(site_id), work_date)

    def _find_pending(self, worker_id, site_id, work_date):
        for req in sorted(self.requests.values(), key=lambda r: r.created_at, reverse=True):
            if (
                req.worker_id == int(worker_id)
                and req.site_id == int(site_id)
                and req.is_pending
                and req.created_at.date() == work_date
            ):
                return req
        return None

    def list(self, *, status=None, worker_id=None, limit=200):
        rows = [
            r
            for r in self.requests.values()
            if (status is None or r.status == status) and (worker_id is None or r.worker_id == int(worker_id))
        ]
        rows.sort(key=lambda r: (r.created_at, r.request_id), reverse=True)
        return rows[: int(limit)]

    def decide(self, *, request_id, status, decided_by, decided_at):
        with self._lock:
            req = self.requests.get(int(request_id))
            if not req or req.status != RequestStatus.PENDING:
                return False
            self.requests[req.request_id] = replace(req, status=status, decided_by=decided_by, decided_at=decided_at)
            return True


class FakeClosingRepo:
    def __init__(self):
        self._next_id = 1
        self.closings: dict[int, DailyClosing] = {}

    def create(
        self,
        *,
        site_id,
        work_date,
        source,
        automated_count,
        reference_count,
        difference,
        status,
        closed_by,
        closed_at,
        note=None,
    ):
        cid = self._next_id
        self._next_id += 1
        self.closings[cid] = DailyClosing(
            closing_id=cid,
            site_id=int(site_id),
            work_date=work_date,
            source=source,
            automated_count=automated_count,
            reference_count=reference_count,
            difference=difference,
            status=status,
            closed_by=closed_by,
            closed_at=closed_at,
            note=note,
        )
        return cid

    def get(self, *, closing_id):
        return self.closings.get(int(closing_id))

    def latest(self, *, site_id, work_date, source=None):
        rows = [
            c
            for c in self.closings.values()
            if c.site_id == int(site_id) and c.work_date == work_date and (source is None or c.source == source)
        ]
        return max(rows, key=lambda c: (c.closed_at, c.closing_id), default=None)

    def list(self, *, start, end, site_id=None, status=None, limit=200):
        rows = [
            c
            for c in self.closings.values()
            if start <= c.work_date <= end
            and (site_id is None or c.site_id == int(site_id))
            and (status is None or c.status == status)
        ]
        rows.sort(key=lambda c: (c.work_date, c.closed_at, c.closing_id), reverse=True)
        return rows[: int(limit)]

    def set_note(self, *, closing_id, note):
        c = self.closings.get(int(closing_id))
        if not c:
            return False
        self.closings[c.closing_id] = replace(c, note=note)
        return True

    def delete_many(self, closing_ids):
        return sum(1 for cid in closing_ids if self.closings.pop(int(cid), None) is not None)

    def delete_before(self, cutoff: date):
        old = [cid for cid, c in self.closings.items() if c.work_date < cutoff]
        for cid in old:
            del self.closings[cid]
        return len(old)


def _worker(worker_id: int, name: str, descriptor: Optional[list], *, is_active: bool = True) -> Worker:
    return Worker(
        worker_id=worker_id,
        name=name,
        base_rate=Decimal("650.00"),
        face_descriptor=descriptor,
        is_active=is_active,
        site_id=1,
    )


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 2, 8, 30, 0)


@pytest.fixture
def face():
    return make_face


@pytest.fixture
def site() -> Site:
    return Site(site_id=1, name="Riverside Block A", latitude=SITE_LAT, longitude=SITE_LON, radius_meters=200)


@pytest.fixture
def sites_repo(site):
    closed = Site(site_id=2, name="Old Yard", latitude=23.1, longitude=72.6, radius_meters=150, is_active=False)
    return FakeSiteRepo([site, closed])


@pytest.fixture
def workers_repo():
    return FakeWorkerRepo(
        [
            _worker(1, "Ravi", make_face()),
            _worker(2, "Meena", make_face(base=1.0)),
            _worker(3, "Arjun", None),
            _worker(4, "Sunil", make_face(base=2.0), is_active=False),
        ]
    )


@pytest.fixture
def attendance_repo():
    return FakeAttendanceRepo()


@pytest.fixture
def access_repo():
    return FakeAccessRequestRepo()


@pytest.fixture
def closings_repo():
    return FakeClosingRepo()


@pytest.fixture
def services(attendance_repo, workers_repo, sites_repo, access_repo, closings_repo):
    return build_services(
        attendance_repo=attendance_repo,
        workers_repo=workers_repo,
        sites_repo=sites_repo,
        access_requests_repo=access_repo,
        closings_repo=closings_repo,
    )

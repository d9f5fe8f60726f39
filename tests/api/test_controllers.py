from datetime import timedelta

import pytest
from flask import Flask

from labor_attendance.access_requests import controller as access_requests_controller
from labor_attendance.attendance import controller as attendance_controller
from labor_attendance.closings import controller as closings_controller
from labor_attendance.common.http import register_error_handlers
from labor_attendance.core.exceptions import ValidationError
from labor_attendance.workers import controller as workers_controller

FAR = {"latitude": 23.0400, "longitude": 72.5900}


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock(fixed_now, monkeypatch):
    clock = Clock(fixed_now)
    for module in (attendance_controller, access_requests_controller, closings_controller):
        monkeypatch.setattr(module, "now_local", clock)
    return clock


@pytest.fixture
def app(services, clock):
    app = Flask(__name__)
    app.secret_key = "test"
    register_error_handlers(app)
    attendance_controller.register(app, services)
    access_requests_controller.register(app, services)
    closings_controller.register(app, services)
    workers_controller.register(app, services)
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def sign_in(client, role, name="Priya"):
    with client.session_transaction() as sess:
        sess["role"] = role
        sess["name"] = name


def check_in_body(site, face, **extra):
    body = {
        "worker_id": 1,
        "site_id": site.site_id,
        "latitude": site.latitude,
        "longitude": site.longitude,
        "accuracy": 12,
        "descriptor": face(0.01),
    }
    body.update(extra)
    return body


def test_location_options(client):
    res = client.get("/api/attendance/location-options")

    assert res.status_code == 200
    assert res.get_json() == {
        "success": True,
        "enable_high_accuracy": True,
        "timeout_ms": 10000,
        "maximum_age": 0,
    }


def test_check_in_then_check_out(client, clock, site, face):
    res = client.post("/api/attendance/check-in", json=check_in_body(site, face))

    assert res.status_code == 201
    log = res.get_json()["log"]
    assert log["state"] == "CHECKED_IN"
    assert log["work_date"] == "2026-03-02"
    assert log["check_in_time"] == "2026-03-02T08:30:00"

    again = client.post("/api/attendance/check-in", json=check_in_body(site, face))
    assert again.status_code == 409
    assert again.get_json()["success"] is False

    clock.now += timedelta(hours=9)
    res = client.post("/api/attendance/check-out", json={"worker_id": 1})

    assert res.status_code == 200
    log = res.get_json()["log"]
    assert log["state"] == "CHECKED_OUT"
    assert log["hours_worked"] == 9.0
    assert log["day_status"] == "PRESENT"


def test_early_check_out_asks_for_confirmation(client, clock, site, face):
    client.post("/api/attendance/check-in", json=check_in_body(site, face))
    clock.now += timedelta(hours=2, minutes=30)

    res = client.post("/api/attendance/check-out", json={"worker_id": 1})

    assert res.status_code == 422
    body = res.get_json()
    assert body["reason"] == "EARLY_CHECKOUT"
    assert body["needs_confirmation"] is True

    res = client.post("/api/attendance/check-out", json={"worker_id": 1, "confirm_early": True})
    assert res.status_code == 200
    assert res.get_json()["log"]["day_status"] == "HALF_DAY"


def test_out_of_range_reports_distance_and_request(client, site, face):
    res = client.post("/api/attendance/check-in", json=check_in_body(site, face, **FAR))

    assert res.status_code == 422
    body = res.get_json()
    assert body["reason"] == "OUT_OF_RANGE"
    assert body["distance_meters"] > body["radius_meters"] == 200
    assert isinstance(body["access_request_id"], int)


def test_wrong_face_is_rejected(client, site, face):
    res = client.post("/api/attendance/check-in", json=check_in_body(site, face, descriptor=face(base=1.0)))

    assert res.status_code == 422
    body = res.get_json()
    assert body["reason"] == "IDENTITY_MISMATCH"
    assert body["distance"] > body["threshold"]


@pytest.mark.parametrize("code, reason", [(1, "PERMISSION_DENIED"), (3, "TIMEOUT"), ("weird", "POSITION_UNAVAILABLE")])
def test_client_location_failure(client, code, reason):
    res = client.post("/api/attendance/check-in", json={"worker_id": 1, "site_id": 1, "location_error": code})

    assert res.status_code == 422
    assert res.get_json()["reason"] == reason


@pytest.mark.parametrize(
    "body",
    [
        {"site_id": 1, "latitude": 23.0, "longitude": 72.5, "descriptor": [0.0] * 128},
        {"worker_id": 1, "site_id": 1, "latitude": "north", "longitude": 72.5, "descriptor": [0.0] * 128},
        {"worker_id": 1, "site_id": 1, "latitude": 23.0, "longitude": 72.5},
        {"worker_id": 1, "site_id": 1, "latitude": 23.0, "longitude": 72.5, "descriptor": [0.0] * 5},
    ],
)
def test_malformed_check_in_is_bad_request(client, body):
    res = client.post("/api/attendance/check-in", json=body)

    assert res.status_code == 400
    assert res.get_json()["success"] is False


def test_granted_check_in_flow(client, site, face):
    denied = client.post("/api/attendance/check-in", json=check_in_body(site, face, **FAR)).get_json()
    request_id = denied["access_request_id"]

    early = client.post(
        "/api/attendance/granted-check-in",
        json={"worker_id": 1, "access_request_id": request_id, "descriptor": face(0.01), **FAR},
    )
    assert early.status_code == 422
    assert early.get_json()["reason"] == "ACCESS_NOT_GRANTED"

    sign_in(client, "admin")
    resolved = client.post(f"/api/access-requests/{request_id}/resolve", json={"decision": "approved"})
    assert resolved.status_code == 200
    assert resolved.get_json()["request"]["status"] == "APPROVED"
    assert resolved.get_json()["request"]["decided_by"] == "Priya"

    res = client.post(
        "/api/attendance/granted-check-in",
        json={"worker_id": 1, "access_request_id": request_id, "descriptor": face(0.01), **FAR},
    )
    assert res.status_code == 201
    assert res.get_json()["log"]["access_request_id"] == request_id


def test_access_request_endpoints_need_roles(client):
    submitted = client.post(
        "/api/access-requests", json={"worker_id": 2, "site_id": 1, "distance_meters": 950, **FAR}
    )
    assert submitted.status_code == 201
    request_id = submitted.get_json()["request"]["request_id"]

    assert client.get("/api/access-requests").status_code == 403

    sign_in(client, "manager")
    listed = client.get("/api/access-requests?status=pending")
    assert listed.status_code == 200
    assert [r["request_id"] for r in listed.get_json()["requests"]] == [request_id]
    assert client.get("/api/access-requests?status=maybe").status_code == 400
    assert client.post(f"/api/access-requests/{request_id}/resolve", json={"decision": "REJECTED"}).status_code == 403

    sign_in(client, "owner")
    assert client.post(f"/api/access-requests/{request_id}/resolve", json={}).status_code == 400
    assert client.post(f"/api/access-requests/{request_id}/resolve", json={"decision": "REJECTED"}).status_code == 200
    again = client.post(f"/api/access-requests/{request_id}/resolve", json={"decision": "APPROVED"})
    assert again.status_code == 409
    assert client.get("/api/access-requests/999").status_code == 404


def test_closing_endpoints(client, attendance_repo, fixed_now):
    for worker_id in (1, 2):
        attendance_repo.seed(worker_id=worker_id, site_id=1, work_date=fixed_now.date(), check_in_time=fixed_now)

    assert client.post("/api/closings", json={"site_id": 1, "expected_count": 3}).status_code == 403

    sign_in(client, "manager")
    res = client.post("/api/closings", json={"site_id": 1, "expected_count": 3})
    assert res.status_code == 201
    closing = res.get_json()["closing"]
    assert (closing["difference"], closing["status"], closing["closed_by"]) == (-1, "MISMATCH", "Priya")

    res = client.post("/api/closings", json={"site_id": 1, "notebook_count": 2, "work_date": "2026-03-02"})
    assert res.get_json()["closing"]["status"] == "MATCHED"

    noted = client.post(f"/api/closings/{closing['closing_id']}/note", json={"note": "Arjun on leave"})
    assert noted.get_json()["closing"]["note"] == "Arjun on leave"

    listed = client.get("/api/closings").get_json()
    assert listed["summary"] == {"total": 2, "ok": 1, "mismatch": 1}
    assert client.get("/api/closings?status=MISMATCH").get_json()["summary"]["total"] == 1

    latest = client.get("/api/closings/latest?site_id=1&source=roster").get_json()["closing"]
    assert latest["closing_id"] == closing["closing_id"]
    assert client.get("/api/closings/latest").status_code == 400

    assert client.post("/api/closings/delete", json={"ids": [closing["closing_id"]], "confirm": True}).status_code == 403
    sign_in(client, "admin")
    assert client.post("/api/closings/delete", json={"ids": [closing["closing_id"]]}).status_code == 400
    deleted = client.post("/api/closings/delete", json={"ids": [closing["closing_id"]], "confirm": True})
    assert deleted.get_json()["deleted"] == 1


def test_enrollment_endpoints(client, face):
    sign_in(client, "manager")
    res = client.post("/api/workers/3/enroll", json={"descriptors": [face(base=3.0), face(0.02, base=3.0)]})

    assert res.status_code == 200
    worker = res.get_json()["worker"]
    assert worker["is_enrolled"] is True
    assert "face_descriptor" not in worker

    assert client.post("/api/workers/3/enroll", json={"descriptors": [face(base=3.0)]}).status_code == 400
    assert client.post("/api/workers/3/reset-enrollment").status_code == 403

    sign_in(client, "admin")
    res = client.post("/api/workers/3/reset-enrollment")
    assert res.status_code == 200
    assert res.get_json()["worker"]["is_enrolled"] is False

    duplicate = client.post("/api/workers/3/enroll", json={"descriptors": [face(0.01)]})
    assert duplicate.status_code == 422
    assert duplicate.get_json()["reason"] == "DUPLICATE_FACE"


def test_admin_deletes_log(client, attendance_repo, fixed_now):
    log_id = attendance_repo.seed(worker_id=1, site_id=1, work_date=fixed_now.date(), check_in_time=fixed_now)

    sign_in(client, "accountant")
    assert client.delete(f"/api/attendance/logs/{log_id}").status_code == 403

    sign_in(client, "admin")
    assert client.delete(f"/api/attendance/logs/{log_id}").status_code == 200
    assert client.get(f"/api/attendance/workers/1/days/{fixed_now:%Y-%m-%d}").get_json()["log"] is None
    assert client.delete(f"/api/attendance/logs/{log_id}").status_code == 404


def test_nearest_site(client, site):
    inside = client.get("/api/attendance/nearest-site?latitude=23.0226&longitude=72.5715").get_json()
    outside = client.get("/api/attendance/nearest-site?latitude=23.0400&longitude=72.5900").get_json()

    assert inside["site"]["site_id"] == site.site_id
    assert inside["within_radius"] is True
    assert outside["site"]["name"] == "Riverside Block A"
    assert outside["within_radius"] is False
    assert outside["distance"].endswith("km")
    assert client.get("/api/attendance/nearest-site?latitude=north").status_code == 400


@pytest.mark.parametrize("accuracy", ["good", -5, float("nan")])
def test_malformed_accuracy_is_bad_request(client, site, face, accuracy):
    res = client.post("/api/attendance/check-in", json=check_in_body(site, face, accuracy=accuracy))

    assert res.status_code == 400
    assert res.get_json()["success"] is False


@pytest.mark.parametrize("hours", ["eight", -1])
def test_malformed_hours_worked_is_bad_request(client, clock, site, face, hours):
    client.post("/api/attendance/check-in", json=check_in_body(site, face))
    clock.now += timedelta(hours=9)

    res = client.post("/api/attendance/check-out", json={"worker_id": 1, "hours_worked": hours})

    assert res.status_code == 400
    assert client.post("/api/attendance/check-out", json={"worker_id": 1, "hours_worked": "7.5"}).status_code == 200


def test_malformed_distance_is_bad_request(client):
    res = client.post("/api/access-requests", json={"worker_id": 2, "site_id": 1, "distance_meters": "far", **FAR})

    assert res.status_code == 400
    assert client.post("/api/access-requests", json={"worker_id": 2, "site_id": 1, **FAR}).status_code == 201


@pytest.mark.parametrize("ids", [["x"], [{"id": 1}]])
def test_malformed_closing_ids_are_bad_request(client, ids):
    sign_in(client, "admin")

    res = client.post("/api/closings/delete", json={"ids": ids, "confirm": True})

    assert res.status_code == 400


def test_fix_times_in_mixed_formats_are_comparable():
    iso = attendance_controller._parse_timestamp("2026-03-02T09:00:00+05:30")
    epoch = attendance_controller._parse_timestamp(1772421600000)
    zulu = attendance_controller._parse_timestamp("2026-03-02T03:30:00Z")

    assert (iso - epoch) == timedelta(minutes=10)
    assert iso == zulu
    with pytest.raises(ValidationError):
        attendance_controller._parse_timestamp("yesterday")


def test_check_in_with_mixed_fix_time_formats(client, site, face):
    body = check_in_body(
        site,
        face,
        timestamp="2026-03-02T09:00:00+05:30",
        previous={"latitude": site.latitude, "longitude": site.longitude, "accuracy": 10, "timestamp": 1772421600000},
    )

    res = client.post("/api/attendance/check-in", json=body)

    assert res.status_code == 201
    assert res.get_json()["log"]["is_flagged"] is False

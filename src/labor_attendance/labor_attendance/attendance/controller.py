from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from flask import Flask, request

from ..common.datetime_utils import now_local
from ..common.http import current_role, date_arg, descriptor_from, int_field, json_body, ok, role_required
from ..common.validators import require_non_negative, validate_coordinates
from ..core.enums import Role
from ..core.exceptions import NotFoundError, ValidationError
from ..container import Container
from ..geofence.evaluator import format_distance
from ..geofence.location import failure_from_code, location_error
from ..geofence.model import Coordinates, PositionFix


def _parse_timestamp(raw: Any) -> Optional[datetime]:
    """Client fix time as an aware UTC datetime.

    Epoch milliseconds and ISO-8601 (with or without offset) may be mixed
    between the current and previous fix; naive ISO values are local time.
    """

    if raw in (None, ""):
        return None
    try:
        if isinstance(raw, (int, float)) and not isinstance(raw, bool):
            # browsers report epoch milliseconds
            return datetime.fromtimestamp(float(raw) / 1000, tz=timezone.utc)
        text = str(raw).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        return datetime.fromisoformat(text).astimezone(timezone.utc)
    except (ValueError, OverflowError, OSError):
        raise ValidationError("timestamp must be ISO-8601 or epoch milliseconds")


def _fix_from(raw: Dict[str, Any]) -> PositionFix:
    lat, lon = validate_coordinates(raw.get("latitude"), raw.get("longitude"))
    accuracy = raw.get("accuracy")
    return PositionFix(
        latitude=lat,
        longitude=lon,
        accuracy_m=require_non_negative(accuracy, "accuracy") if accuracy is not None else None,
        timestamp=_parse_timestamp(raw.get("timestamp")),
    )


def _position(body: Dict[str, Any]) -> Tuple[Coordinates, Optional[PositionFix], Optional[PositionFix]]:
    """Coordinates plus the optional current/previous fixes for spoof screening.

    A client that could not get a position reports the Geolocation error code
    instead of coordinates.
    """

    if body.get("location_error") is not None:
        raise location_error(failure_from_code(body["location_error"]))

    fix = _fix_from(body)
    current = fix if fix.accuracy_m is not None or fix.timestamp is not None else None
    previous = _fix_from(body["previous"]) if isinstance(body.get("previous"), dict) else None
    return fix.coordinates, current, previous


def register(app: Flask, container: Container) -> None:
    service = container.attendance_service

    @app.route("/api/attendance/location-options", methods=["GET"], endpoint="attendance_location_options")
    def location_options():
        return ok(
            {
                "enable_high_accuracy": True,
                "timeout_ms": int(container.location_timeout_seconds * 1000),
                "maximum_age": 0,
            }
        )

    @app.route("/api/attendance/nearest-site", methods=["GET"], endpoint="attendance_nearest_site")
    def nearest():
        located = service.locate_site(Coordinates(request.args.get("latitude"), request.args.get("longitude")))
        if located is None:
            raise NotFoundError("No active site configured")
        site, result = located
        return ok(
            {
                "site": {"site_id": site.site_id, "name": site.name, "radius_meters": site.radius_meters},
                "within_radius": result.within_radius,
                "distance_meters": result.distance_meters,
                "distance": format_distance(result.raw_distance_meters),
            }
        )

    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="attendance_check_in")
    def check_in():
        body = json_body()
        coords, fix, previous = _position(body)
        log = service.request_check_in(
            int_field(body, "worker_id"),
            int_field(body, "site_id"),
            coords,
            descriptor_from(body, container.extractor),
            now=now_local(),
            fix=fix,
            previous_fix=previous,
        )
        return ok({"message": "Checked in", "log": log}, status=201)

    @app.route("/api/attendance/granted-check-in", methods=["POST"], endpoint="attendance_granted_check_in")
    def granted_check_in():
        body = json_body()
        coords, _, _ = _position(body)
        log = service.request_granted_check_in(
            int_field(body, "worker_id"),
            int_field(body, "access_request_id"),
            descriptor_from(body, container.extractor),
            coords,
            now=now_local(),
        )
        return ok({"message": "Checked in with approved access", "log": log}, status=201)

    @app.route("/api/attendance/check-out", methods=["POST"], endpoint="attendance_check_out")
    def check_out():
        body = json_body()
        hours = body.get("hours_worked")
        log = service.request_check_out(
            int_field(body, "worker_id"),
            now=now_local(),
            hours_worked=require_non_negative(hours, "hours_worked") if hours is not None else None,
            confirm_early=bool(body.get("confirm_early", False)),
        )
        return ok({"message": "Checked out", "log": log})

    @app.route("/api/attendance/workers/<int:worker_id>/days/<work_date>", methods=["GET"], endpoint="attendance_day_log")
    @role_required()
    def day_log(worker_id: int, work_date: str):
        log = service.get_day_log(worker_id, date_arg(work_date, "work_date"))
        return ok({"log": log})

    @app.route("/api/attendance/sites/<int:site_id>/days/<work_date>", methods=["GET"], endpoint="attendance_site_day")
    @role_required()
    def site_day(site_id: int, work_date: str):
        logs = service.list_site_day(site_id, date_arg(work_date, "work_date"))
        return ok({"logs": list(logs), "count": len(logs)})

    @app.route("/api/attendance/logs/<int:log_id>", methods=["DELETE"], endpoint="attendance_delete_log")
    @role_required(Role.ADMIN, Role.OWNER)
    def delete_log(log_id: int):
        service.delete_log(log_id, current_role=current_role())
        return ok({"message": "Attendance log deleted"})

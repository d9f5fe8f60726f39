from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import now_local
from ..common.http import current_actor, current_role, int_field, json_body, ok, role_required
from ..common.validators import require_non_negative_int
from ..core.enums import RequestStatus, Role
from ..core.exceptions import ValidationError
from ..container import Container
from ..geofence.model import Coordinates


def register(app: Flask, container: Container) -> None:
    service = container.access_request_service

    @app.route("/api/access-requests", methods=["POST"], endpoint="access_request_submit")
    def submit():
        body = json_body()
        distance = body.get("distance_meters")
        req = service.submit_access_request(
            int_field(body, "worker_id"),
            int_field(body, "site_id"),
            Coordinates(body.get("latitude"), body.get("longitude")),
            now=now_local(),
            distance_meters=require_non_negative_int(distance, "distance_meters") if distance is not None else None,
        )
        return ok({"message": "Access request sent to admin", "request": req}, status=201)

    @app.route("/api/access-requests", methods=["GET"], endpoint="access_request_list")
    @role_required()
    def list_requests():
        raw_status = (request.args.get("status") or "").strip().upper()
        try:
            status = RequestStatus(raw_status) if raw_status else None
        except ValueError:
            raise ValidationError(f"Unknown status: {raw_status}")
        worker_id = request.args.get("worker_id", type=int)
        rows = service.list_requests(status, worker_id=worker_id)
        return ok({"requests": list(rows)})

    @app.route("/api/access-requests/<int:request_id>", methods=["GET"], endpoint="access_request_get")
    @role_required()
    def get_request(request_id: int):
        return ok({"request": service.get_request(request_id)})

    @app.route("/api/access-requests/<int:request_id>/resolve", methods=["POST"], endpoint="access_request_resolve")
    @role_required(Role.ADMIN, Role.OWNER)
    def resolve(request_id: int):
        body = json_body()
        decision = body.get("decision")
        if not decision:
            raise ValidationError("decision is required (APPROVED or REJECTED)")
        req = service.resolve_access_request(
            request_id,
            decision,
            current_role=current_role(),
            resolved_by=current_actor(),
            now=now_local(),
        )
        return ok({"message": f"Access request {req.status.value.lower()}", "request": req})

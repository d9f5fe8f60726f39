from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import days_ago, now_local
from ..common.http import current_actor, current_role, date_arg, int_field, json_body, ok, role_required
from ..core.enums import ClosingSource, ClosingStatus, Role
from ..core.exceptions import ValidationError
from ..container import Container

DEFAULT_HISTORY_DAYS = 30


def register(app: Flask, container: Container) -> None:
    service = container.closing_service

    @app.route("/api/closings", methods=["POST"], endpoint="closing_compute")
    @role_required(Role.ADMIN, Role.OWNER, Role.MANAGER)
    def compute():
        body = json_body()
        now = now_local()
        site_id = int_field(body, "site_id")
        work_date = date_arg(body.get("work_date"), "work_date", default=now.date())

        if body.get("notebook_count") is not None:
            closing = service.compute_notebook_closing(
                site_id,
                work_date,
                body["notebook_count"],
                closed_by=current_actor(),
                now=now,
                note=body.get("note"),
            )
        else:
            closing = service.compute_daily_closing(
                site_id,
                work_date,
                body.get("expected_count"),
                closed_by=current_actor(),
                now=now,
                note=body.get("note"),
            )
        return ok({"closing": closing}, status=201)

    @app.route("/api/closings", methods=["GET"], endpoint="closing_list")
    @role_required()
    def list_closings():
        today = now_local().date()
        end = date_arg(request.args.get("end"), "end", default=today)
        start = date_arg(request.args.get("start"), "start", default=days_ago(end, DEFAULT_HISTORY_DAYS))
        raw_status = (request.args.get("status") or "").strip().upper()
        try:
            status = ClosingStatus(raw_status) if raw_status else None
        except ValueError:
            raise ValidationError(f"Unknown status: {raw_status}")

        rows = service.list_closings(start, end, status, site_id=request.args.get("site_id", type=int))
        return ok({"closings": list(rows), "summary": service.summarize(rows)})

    @app.route("/api/closings/latest", methods=["GET"], endpoint="closing_latest")
    @role_required()
    def latest():
        site_id = request.args.get("site_id", type=int)
        if site_id is None:
            raise ValidationError("site_id is required")
        work_date = date_arg(request.args.get("work_date"), "work_date", default=now_local().date())
        raw_source = (request.args.get("source") or "").strip().upper()
        try:
            source = ClosingSource(raw_source) if raw_source else None
        except ValueError:
            raise ValidationError(f"Unknown source: {raw_source}")
        return ok({"closing": service.latest_closing(site_id, work_date, source)})

    @app.route("/api/closings/<int:closing_id>/note", methods=["POST"], endpoint="closing_annotate")
    @role_required(Role.ADMIN, Role.OWNER, Role.MANAGER)
    def annotate(closing_id: int):
        body = json_body()
        return ok({"closing": service.annotate_closing(closing_id, body.get("note") or "")})

    @app.route("/api/closings/delete", methods=["POST"], endpoint="closing_delete")
    @role_required(Role.ADMIN, Role.OWNER)
    def delete_selected():
        body = json_body()
        ids = body.get("ids") or []
        if not isinstance(ids, list):
            raise ValidationError("ids must be a list")
        deleted = service.delete_closings(ids, current_role=current_role(), confirm=bool(body.get("confirm", False)))
        return ok({"deleted": deleted})

    @app.route("/api/closings/purge", methods=["POST"], endpoint="closing_purge")
    @role_required(Role.ADMIN, Role.OWNER)
    def purge():
        body = json_body()
        deleted = service.delete_closings_older_than(
            int_field(body, "days"),
            today=now_local().date(),
            current_role=current_role(),
            confirm=bool(body.get("confirm", False)),
        )
        return ok({"deleted": deleted})

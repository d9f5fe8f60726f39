from __future__ import annotations

from flask import Flask

from ..common.http import current_role, descriptors_from, json_body, ok, role_required
from ..core.enums import Role
from ..container import Container
from .model import Worker


def _worker_view(worker: Worker) -> dict:
    # descriptors never leave the server
    return {
        "worker_id": worker.worker_id,
        "name": worker.name,
        "site_id": worker.site_id,
        "category": worker.category,
        "is_active": worker.is_active,
        "is_enrolled": worker.is_enrolled,
    }


def register(app: Flask, container: Container) -> None:
    service = container.worker_service

    @app.route("/api/workers/<int:worker_id>/enroll", methods=["POST"], endpoint="worker_enroll")
    @role_required(Role.ADMIN, Role.OWNER, Role.MANAGER)
    def enroll(worker_id: int):
        body = json_body()
        worker = service.enroll(worker_id, descriptors_from(body, container.extractor))
        return ok({"message": f"{worker.name} enrolled", "worker": _worker_view(worker)})

    @app.route("/api/workers/<int:worker_id>/reset-enrollment", methods=["POST"], endpoint="worker_reset_enrollment")
    @role_required()
    def reset_enrollment(worker_id: int):
        worker = service.reset_enrollment(current_role=current_role(), worker_id=worker_id)
        return ok({"message": f"{worker.name} must enroll again", "worker": _worker_view(worker)})

"""JSON plumbing shared by the controllers."""

from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from functools import wraps
from typing import Any, Dict, Iterable, Optional

from flask import Flask, jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    DomainError,
    EarlyCheckOutError,
    IdentityMismatchError,
    InvalidDescriptorError,
    LocationError,
    NotFoundError,
    OutOfRangeError,
    PolicyError,
    ValidationError,
)
from .datetime_utils import parse_iso_date

logger = logging.getLogger(__name__)


def to_jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat(timespec="seconds")
    if isinstance(value, date):
        return value.strftime("%Y-%m-%d")
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def ok(payload: Optional[Dict[str, Any]] = None, *, status: int = 200):
    body = {"success": True}
    body.update(to_jsonable(payload or {}))
    return jsonify(body), status


def _status_for(e: DomainError) -> int:
    if isinstance(e, ValidationError):
        return 400
    if isinstance(e, AuthorizationError):
        return 403
    if isinstance(e, NotFoundError):
        return 404
    if isinstance(e, ConflictError):
        return 409
    return 422


def error_payload(e: DomainError) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "message": str(e), "reason": type(e).__name__}
    if isinstance(e, PolicyError):
        body["reason"] = e.reason
    if isinstance(e, LocationError):
        body["reason"] = e.failure.value
    if isinstance(e, OutOfRangeError):
        body.update(
            distance_meters=e.distance_meters,
            radius_meters=e.radius_meters,
            access_request_id=e.access_request_id,
        )
    elif isinstance(e, IdentityMismatchError):
        body.update(distance=round(e.distance, 4), threshold=e.threshold)
    elif isinstance(e, EarlyCheckOutError):
        body.update(hours_worked=e.hours_worked, needs_confirmation=e.needs_confirmation)
    return body


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(e: DomainError):
        status = _status_for(e)
        logger.debug(f"{request.method} {request.path} -> {status} {type(e).__name__}: {e}")
        return jsonify(error_payload(e)), status


def json_body() -> Dict[str, Any]:
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def int_field(body: Dict[str, Any], name: str) -> int:
    value = body.get(name)
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{name} is required")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be an integer")


def current_role() -> Role:
    """Role of the signed-in back-office user, as put in the session at login."""

    raw = session.get("role")
    if not raw:
        raise AuthorizationError("Please sign in to continue")
    try:
        return Role(raw)
    except ValueError:
        raise AuthorizationError("Unknown role")


def current_actor() -> str:
    return str(session.get("name") or session.get("user_id") or "unknown")


def role_required(*roles: Role):
    """Reject the call unless the session role is one of `roles` (any role if none given)."""

    allowed = set(roles)

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            role = current_role()
            if allowed and role not in allowed:
                raise AuthorizationError("You do not have permission for this action")
            return view(*args, **kwargs)

        return wrapper

    return decorator


def descriptor_from(body: Dict[str, Any], extractor) -> Any:
    """Descriptor sent by the client, or extracted from the captured image."""

    if body.get("descriptor") is not None:
        return body["descriptor"]
    if body.get("image"):
        if extractor is None:
            raise ValidationError("Image capture is not enabled on this server; send a descriptor")
        return extractor.extract(str(body["image"]))
    raise InvalidDescriptorError("Face descriptor is missing")


def descriptors_from(body: Dict[str, Any], extractor) -> list:
    """All enrollment captures in the body, as descriptors."""

    captures: Iterable[Any] = body.get("descriptors") or []
    out = list(captures)
    images = body.get("images") or []
    if images:
        if extractor is None:
            raise ValidationError("Image capture is not enabled on this server; send descriptors")
        out.extend(extractor.extract(str(img)) for img in images)
    if not out:
        raise InvalidDescriptorError("At least one face capture is required")
    return out


def date_arg(value: Optional[str], name: str, *, default: Optional[date] = None) -> date:
    if not value:
        if default is not None:
            return default
        raise ValidationError(f"{name} is required")
    try:
        return parse_iso_date(value)
    except ValueError:
        raise ValidationError(f"{name} must be YYYY-MM-DD")

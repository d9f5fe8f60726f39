from __future__ import annotations

import math
from typing import Any, Optional

from ..core.exceptions import InvalidCoordinatesError, ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_positive(value: Any, field_name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not math.isfinite(number) or number <= 0:
        raise ValidationError(f"{field_name} must be greater than 0")
    return number


def require_non_negative(value: Any, field_name: str) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not math.isfinite(number) or number < 0:
        raise ValidationError(f"{field_name} must be a non-negative number")
    return number


def require_non_negative_int(value: Any, field_name: str) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be an integer")
    if number < 0:
        raise ValidationError(f"{field_name} cannot be negative")
    return number


def validate_coordinates(lat: Any, lon: Any) -> tuple[float, float]:
    """Caller-side contract check; the evaluator itself never fails."""

    try:
        lat_f = float(lat)
        lon_f = float(lon)
    except (TypeError, ValueError):
        raise InvalidCoordinatesError("Coordinates must be numbers")

    if not (math.isfinite(lat_f) and math.isfinite(lon_f)):
        raise InvalidCoordinatesError("Coordinates must be finite")
    if not -90.0 <= lat_f <= 90.0:
        raise InvalidCoordinatesError(f"Latitude {lat_f} outside [-90, 90]")
    if not -180.0 <= lon_f <= 180.0:
        raise InvalidCoordinatesError(f"Longitude {lon_f} outside [-180, 180]")
    return lat_f, lon_f


def optional_note(value: Optional[str]) -> Optional[str]:
    return (value or "").strip() or None

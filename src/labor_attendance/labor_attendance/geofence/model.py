from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class PositionFix:
    """One reading from the device location API."""

    latitude: float
    longitude: float
    accuracy_m: Optional[float] = None
    timestamp: Optional[datetime] = None

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(self.latitude, self.longitude)


@dataclass(frozen=True)
class GeofenceResult:
    within_radius: bool
    distance_meters: int
    raw_distance_meters: float


@dataclass(frozen=True)
class SpoofCheck:
    is_spoofed: bool
    confidence: float
    reason: Optional[str] = None
    speed_kmh: Optional[float] = None

"""Physics-based heuristics for mock-GPS detection."""

from __future__ import annotations

from typing import Optional

from ..core.constants import SPOOF_MAX_SPEED_KMH, SPOOF_MIN_ACCURACY_M, SPOOF_PERFECT_ACCURACY_M
from .evaluator import haversine_distance
from .model import PositionFix, SpoofCheck

# Fixes closer together than this give meaningless speeds.
MIN_INTERVAL_HOURS = 0.001
TELEPORT_KM = 10.0
TELEPORT_SECONDS = 10.0


def detect_spoof(
    current: PositionFix,
    previous: Optional[PositionFix] = None,
    *,
    max_speed_kmh: float = SPOOF_MAX_SPEED_KMH,
    min_accuracy_m: float = SPOOF_MIN_ACCURACY_M,
    perfect_accuracy_m: float = SPOOF_PERFECT_ACCURACY_M,
) -> SpoofCheck:
    accuracy = current.accuracy_m
    if accuracy is not None:
        if accuracy > min_accuracy_m:
            # Bad signal, not a fake one.
            return SpoofCheck(
                is_spoofed=False,
                confidence=0.3,
                reason=f"GPS accuracy too poor: {accuracy:g}m (need <{min_accuracy_m:g}m)",
            )
        if accuracy < perfect_accuracy_m:
            return SpoofCheck(
                is_spoofed=True,
                confidence=0.7,
                reason=f"Suspiciously perfect accuracy: {accuracy:g}m (likely mock GPS)",
            )

    if previous is None or previous.timestamp is None or current.timestamp is None:
        return SpoofCheck(is_spoofed=False, confidence=0.0)

    distance_km = (
        haversine_distance(previous.latitude, previous.longitude, current.latitude, current.longitude) / 1000
    )
    elapsed_seconds = (current.timestamp - previous.timestamp).total_seconds()
    elapsed_hours = elapsed_seconds / 3600

    if elapsed_hours > MIN_INTERVAL_HOURS:
        speed = distance_km / elapsed_hours
        if speed > max_speed_kmh:
            return SpoofCheck(
                is_spoofed=True,
                confidence=min(speed / 1000, 1.0),
                reason=f"Impossible travel speed: {round(speed)} km/h in {round(elapsed_hours * 60)} minutes",
                speed_kmh=speed,
            )
        if distance_km > TELEPORT_KM and elapsed_seconds < TELEPORT_SECONDS:
            return SpoofCheck(
                is_spoofed=True,
                confidence=0.95,
                reason=f"Teleport detected: {round(distance_km)}km in {elapsed_seconds:g}s",
                speed_kmh=speed,
            )

    return SpoofCheck(is_spoofed=False, confidence=0.0)

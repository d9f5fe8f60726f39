"""Geofence evaluation on a spherical earth.

All functions here are pure; range checking of coordinates happens before
calling them (see `common.validators.validate_coordinates`).
"""

from __future__ import annotations

import math
from typing import Optional, Sequence, Tuple

from ..core.constants import EARTH_RADIUS_M
from ..sites.model import Site
from .model import Coordinates, GeofenceResult


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in meters."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # Float error can push `a` a hair above 1 for antipodal points.
    a = min(1.0, max(0.0, a))
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(a))


def evaluate(
    user_lat: float,
    user_lon: float,
    site_lat: float,
    site_lon: float,
    radius_meters: float,
) -> GeofenceResult:
    distance = haversine_distance(user_lat, user_lon, site_lat, site_lon)
    return GeofenceResult(
        within_radius=distance <= radius_meters,
        distance_meters=int(round(distance)),
        raw_distance_meters=distance,
    )


def evaluate_site(coords: Coordinates, site: Site) -> GeofenceResult:
    return evaluate(coords.latitude, coords.longitude, site.latitude, site.longitude, site.radius_meters)


def distance_outside(result: GeofenceResult, radius_meters: float) -> int:
    """Meters beyond the fence edge (0 when inside)."""
    return max(0, int(round(result.raw_distance_meters - radius_meters)))


def nearest_site(coords: Coordinates, sites: Sequence[Site]) -> Optional[Tuple[Site, GeofenceResult]]:
    """First site whose fence contains `coords`, otherwise the closest one."""

    closest: Optional[Tuple[Site, GeofenceResult]] = None
    for site in sites:
        result = evaluate_site(coords, site)
        if result.within_radius:
            return site, result
        if closest is None or result.raw_distance_meters < closest[1].raw_distance_meters:
            closest = (site, result)
    return closest


def format_distance(meters: float) -> str:
    if meters < 1000:
        return f"{round(meters)}m"
    return f"{meters / 1000:.1f}km"

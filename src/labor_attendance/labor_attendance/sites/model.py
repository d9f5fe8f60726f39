from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..common.validators import require_positive


@dataclass(frozen=True)
class Site:
    """Work site with a circular geofence."""

    site_id: int
    name: str
    latitude: float
    longitude: float
    radius_meters: float
    is_active: bool = True
    address: Optional[str] = None

    def __post_init__(self):
        require_positive(self.radius_meters, "Site radius")

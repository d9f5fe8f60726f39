from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence


@dataclass(frozen=True)
class Worker:
    """Domain entity: a daily-wage worker.

    `face_descriptor` is None when the worker was never enrolled or when an
    administrator forced re-enrollment.
    """

    worker_id: int
    name: str
    base_rate: Decimal
    face_descriptor: Optional[Sequence[float]]
    is_active: bool = True
    shift_id: Optional[int] = None
    site_id: Optional[int] = None
    category: Optional[str] = None
    phone: Optional[str] = None

    @property
    def is_enrolled(self) -> bool:
        return self.face_descriptor is not None

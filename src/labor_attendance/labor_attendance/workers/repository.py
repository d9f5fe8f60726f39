from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Worker


class WorkerRepository(Protocol):
    def get_by_id(self, worker_id: int) -> Optional[Worker]:
        raise NotImplementedError

    def list_enrolled(self) -> Sequence[Worker]:
        """Active workers that have a face descriptor."""

        raise NotImplementedError

    def count_active_for_site(self, site_id: int) -> int:
        raise NotImplementedError

    def set_face_descriptor(self, worker_id: int, descriptor: Optional[Sequence[float]]) -> bool:
        """Store a descriptor, or None to force re-enrollment."""

        raise NotImplementedError

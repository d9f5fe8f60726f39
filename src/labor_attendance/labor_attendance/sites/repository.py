from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Site


class SiteRepository(Protocol):
    def get_by_id(self, site_id: int) -> Optional[Site]:
        raise NotImplementedError

    def list_active(self) -> Sequence[Site]:
        raise NotImplementedError

from __future__ import annotations

from typing import Protocol


class DescriptorExtractor(Protocol):
    """Turns a captured image into a face descriptor."""

    def extract(self, image_b64: str) -> list[float]:
        raise NotImplementedError

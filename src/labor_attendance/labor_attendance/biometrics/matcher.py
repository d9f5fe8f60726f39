"""Face descriptor comparison.

Descriptors come from an external feature extractor as fixed-length float
vectors; here they are only compared, never produced.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import numpy as np

from ..core.constants import DEFAULT_MATCH_THRESHOLD, DESCRIPTOR_LENGTH
from ..core.exceptions import InvalidDescriptorError, NotEnrolledError
from ..workers.model import Worker


@dataclass(frozen=True)
class MatchResult:
    is_match: bool
    distance: float


@dataclass(frozen=True)
class BestMatch:
    worker: Worker
    distance: float
    similarity: float


def as_descriptor(values, *, length: Optional[int] = DESCRIPTOR_LENGTH) -> np.ndarray:
    """Coerce to a 1-D float vector, rejecting anything malformed."""

    if values is None:
        raise InvalidDescriptorError("Face descriptor is missing")
    try:
        vec = np.asarray(values, dtype=np.float64)
    except (TypeError, ValueError):
        raise InvalidDescriptorError("Face descriptor must be a list of numbers")

    if vec.ndim != 1 or vec.size == 0:
        raise InvalidDescriptorError("Face descriptor must be a flat, non-empty vector")
    if length is not None and vec.size != length:
        raise InvalidDescriptorError(f"Face descriptor must have {length} values, got {vec.size}")
    if not np.all(np.isfinite(vec)):
        raise InvalidDescriptorError("Face descriptor contains non-finite values")
    return vec


def euclidean_distance(a, b) -> float:
    va = as_descriptor(a, length=None)
    vb = as_descriptor(b, length=None)
    if va.shape != vb.shape:
        raise InvalidDescriptorError(f"Descriptor lengths differ ({va.size} vs {vb.size})")
    return float(np.linalg.norm(va - vb))


def match(captured, enrolled, threshold: float = DEFAULT_MATCH_THRESHOLD) -> MatchResult:
    if enrolled is None:
        raise NotEnrolledError("Worker has no enrolled face. Please enroll before checking in.")
    distance = euclidean_distance(captured, enrolled)
    return MatchResult(is_match=distance <= threshold, distance=distance)


def find_best_match(
    captured,
    candidates: Iterable[Worker],
    threshold: float = DEFAULT_MATCH_THRESHOLD,
) -> Optional[BestMatch]:
    """Closest enrolled worker within `threshold`, or None.

    Candidates without a descriptor of the captured length are skipped.
    """

    vector = as_descriptor(captured, length=None)
    best: Optional[Worker] = None
    best_distance = float("inf")

    for worker in candidates:
        if worker.face_descriptor is None or len(worker.face_descriptor) != vector.size:
            continue
        distance = float(np.linalg.norm(vector - np.asarray(worker.face_descriptor, dtype=np.float64)))
        if distance < best_distance:
            best, best_distance = worker, distance

    if best is None or best_distance > threshold:
        return None
    similarity = max(0.0, 1 - best_distance / threshold) if threshold > 0 else 0.0
    return BestMatch(worker=best, distance=best_distance, similarity=similarity)


def average_descriptors(descriptors: Sequence) -> np.ndarray:
    """Element-wise mean of several captures of the same face."""

    if not descriptors:
        raise InvalidDescriptorError("At least one face capture is required")
    vectors = [as_descriptor(d, length=None) for d in descriptors]
    if len({v.size for v in vectors}) != 1:
        raise InvalidDescriptorError("Face captures have different lengths")
    return np.mean(np.vstack(vectors), axis=0)

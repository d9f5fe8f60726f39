from __future__ import annotations

import logging
from typing import Sequence

from ..biometrics.matcher import as_descriptor, average_descriptors, find_best_match
from ..core.constants import DEFAULT_DUPLICATE_FACE_THRESHOLD, DESCRIPTOR_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, DuplicateFaceError, NotFoundError, ValidationError
from .model import Worker
from .repository import WorkerRepository

logger = logging.getLogger(__name__)

ADMIN_ROLES = {Role.ADMIN, Role.OWNER}


class WorkerService:
    """Use case: face enrollment and forced re-enrollment."""

    def __init__(
        self,
        workers: WorkerRepository,
        *,
        duplicate_threshold: float = DEFAULT_DUPLICATE_FACE_THRESHOLD,
        descriptor_length: int = DESCRIPTOR_LENGTH,
    ):
        self._workers = workers
        self._duplicate_threshold = float(duplicate_threshold)
        self._descriptor_length = int(descriptor_length)

    def _get(self, worker_id: int) -> Worker:
        worker = self._workers.get_by_id(int(worker_id))
        if not worker:
            raise NotFoundError("Worker not found")
        return worker

    def enroll(self, worker_id: int, captures: Sequence[Sequence[float]]) -> Worker:
        """Store the averaged descriptor of one or more captures.

        Only an unenrolled worker can be enrolled; replacing a face always goes
        through `reset_enrollment` first.
        """

        worker = self._get(worker_id)
        if worker.is_enrolled:
            raise ValidationError("Worker is already enrolled. Reset enrollment first.")

        vectors = [as_descriptor(c, length=self._descriptor_length) for c in captures]
        descriptor = average_descriptors(vectors)

        others = [w for w in self._workers.list_enrolled() if w.worker_id != worker.worker_id]
        duplicate = find_best_match(descriptor, others, self._duplicate_threshold)
        if duplicate:
            logger.warning(
                f"Enrollment of worker {worker.worker_id} rejected: face matches worker "
                f"{duplicate.worker.worker_id} (distance {duplicate.distance:.3f})"
            )
            raise DuplicateFaceError(
                f"Face already registered as {duplicate.worker.name}",
                worker_id=duplicate.worker.worker_id,
            )

        if not self._workers.set_face_descriptor(worker.worker_id, descriptor.tolist()):
            raise ValidationError("Saving face descriptor failed")
        logger.info(f"Worker {worker.worker_id} enrolled from {len(vectors)} capture(s)")
        return self._get(worker.worker_id)

    def reset_enrollment(self, *, current_role: Role, worker_id: int) -> Worker:
        """Force re-enrollment: enrolled -> unenrolled, never the other way."""

        if current_role not in ADMIN_ROLES:
            raise AuthorizationError("Only administrators can reset face enrollment")

        worker = self._get(worker_id)
        if not worker.is_enrolled:
            return worker

        self._workers.set_face_descriptor(worker.worker_id, None)
        logger.info(f"Worker {worker.worker_id} enrollment reset; re-enrollment required")
        return self._get(worker.worker_id)

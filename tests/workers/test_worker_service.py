import pytest

from labor_attendance.core.enums import Role
from labor_attendance.core.exceptions import (
    AuthorizationError,
    DuplicateFaceError,
    InvalidDescriptorError,
    NotFoundError,
    ValidationError,
)


def test_enroll_averages_captures(services, workers_repo, face):
    worker = services.worker_service.enroll(3, [face(0.2, base=5.0), face(0.4, base=5.0)])

    assert worker.is_enrolled
    assert worker.face_descriptor[0] == pytest.approx(5.3)
    assert workers_repo.get_by_id(3).face_descriptor[1] == pytest.approx(5.0)


def test_enroll_rejects_face_of_another_worker(services, workers_repo, face):
    with pytest.raises(DuplicateFaceError) as exc:
        services.worker_service.enroll(3, [face(0.1, base=1.0)])

    assert exc.value.worker_id == 2
    assert workers_repo.get_by_id(3).face_descriptor is None


def test_enroll_requires_reset_first(services, face):
    with pytest.raises(ValidationError):
        services.worker_service.enroll(1, [face()])


def test_enroll_validates_captures(services, face):
    with pytest.raises(InvalidDescriptorError):
        services.worker_service.enroll(3, [])
    with pytest.raises(InvalidDescriptorError):
        services.worker_service.enroll(3, [[0.1] * 10])
    with pytest.raises(NotFoundError):
        services.worker_service.enroll(99, [face(base=7.0)])


def test_reset_enrollment_is_admin_only(services):
    with pytest.raises(AuthorizationError):
        services.worker_service.reset_enrollment(current_role=Role.MANAGER, worker_id=1)


def test_reset_then_reenroll(services, face):
    reset = services.worker_service.reset_enrollment(current_role=Role.OWNER, worker_id=1)
    assert reset.is_enrolled is False

    again = services.worker_service.reset_enrollment(current_role=Role.ADMIN, worker_id=1)
    assert again.is_enrolled is False

    enrolled = services.worker_service.enroll(1, [face(base=3.0)])
    assert enrolled.is_enrolled

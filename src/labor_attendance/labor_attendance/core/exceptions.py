from __future__ import annotations

from typing import Optional

from .enums import LocationFailure


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class InvalidCoordinatesError(ValidationError):
    """Latitude/longitude missing, not finite or out of range."""


class InvalidDescriptorError(ValidationError):
    """Biometric descriptor missing or malformed."""


class NoFaceDetectedError(ValidationError):
    """The extractor found no face in the submitted image."""


class NotFoundError(DomainError):
    """Referenced worker, site, log or request does not exist."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class PolicyError(DomainError):
    """Expected, user-recoverable rejection of an attempt.

    `reason` is a stable code the presentation layer routes on.
    """

    reason = "POLICY"


class OutOfRangeError(PolicyError):
    reason = "OUT_OF_RANGE"

    def __init__(
        self,
        message: str,
        *,
        distance_meters: int,
        radius_meters: float,
        access_request_id: Optional[int] = None,
    ):
        super().__init__(message)
        self.distance_meters = distance_meters
        self.radius_meters = radius_meters
        self.access_request_id = access_request_id


class IdentityMismatchError(PolicyError):
    reason = "IDENTITY_MISMATCH"

    def __init__(self, message: str, *, distance: float, threshold: float):
        super().__init__(message)
        self.distance = distance
        self.threshold = threshold


class NotEnrolledError(PolicyError):
    reason = "NOT_ENROLLED"


class SpoofedLocationError(PolicyError):
    reason = "SPOOFED_LOCATION"


class AccessNotGrantedError(PolicyError):
    """Access request is not an approved grant for this worker and day."""

    reason = "ACCESS_NOT_GRANTED"


class DuplicateFaceError(PolicyError):
    reason = "DUPLICATE_FACE"

    def __init__(self, message: str, *, worker_id: int):
        super().__init__(message)
        self.worker_id = worker_id


class EarlyCheckOutError(PolicyError):
    reason = "EARLY_CHECKOUT"

    def __init__(self, message: str, *, hours_worked: float, needs_confirmation: bool = False):
        super().__init__(message)
        self.hours_worked = hours_worked
        self.needs_confirmation = needs_confirmation


class ConflictError(DomainError):
    """The mutation lost against current state; retrying it will not help."""


class DuplicateCheckInError(ConflictError):
    pass


class DayAlreadyClosedError(DuplicateCheckInError):
    """The worker already checked out on this date."""


class NoOpenSessionError(ConflictError):
    pass


class AlreadyResolvedError(ConflictError):
    pass


class LocationError(DomainError):
    """Device location could not be acquired."""

    def __init__(self, failure: LocationFailure, message: str):
        super().__init__(message)
        self.failure = failure

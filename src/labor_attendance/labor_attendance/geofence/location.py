"""Bounded device position acquisition.

The device location API is an external collaborator. Whatever goes wrong is
reported as a `LocationError` with one of three reasons; a failure is never
treated as being inside a fence.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from typing import Protocol

from ..core.constants import LOCATION_TIMEOUT_SECONDS
from ..core.enums import LocationFailure
from ..core.exceptions import LocationError
from .model import PositionFix

logger = logging.getLogger(__name__)

FAILURE_MESSAGES = {
    LocationFailure.PERMISSION_DENIED: "Location permission denied. Please enable GPS.",
    LocationFailure.POSITION_UNAVAILABLE: "Location unavailable. Please check GPS signal.",
    LocationFailure.TIMEOUT: "Location request timed out. Please try again.",
}

# W3C GeolocationPositionError codes as reported by browsers.
_CLIENT_CODES = {
    1: LocationFailure.PERMISSION_DENIED,
    2: LocationFailure.POSITION_UNAVAILABLE,
    3: LocationFailure.TIMEOUT,
}


class LocationProvider(Protocol):
    def get_current_position(self, *, high_accuracy: bool, timeout_seconds: float) -> PositionFix:
        raise NotImplementedError


def location_error(failure: LocationFailure) -> LocationError:
    return LocationError(failure, FAILURE_MESSAGES[failure])


def failure_from_code(code) -> LocationFailure:
    """Map a client-reported error code (1/2/3 or the enum name)."""

    if isinstance(code, str) and not code.isdigit():
        try:
            return LocationFailure(code.upper())
        except ValueError:
            return LocationFailure.POSITION_UNAVAILABLE
    try:
        return _CLIENT_CODES.get(int(code), LocationFailure.POSITION_UNAVAILABLE)
    except (TypeError, ValueError):
        return LocationFailure.POSITION_UNAVAILABLE


def acquire_position(
    provider: LocationProvider,
    *,
    timeout_seconds: float = LOCATION_TIMEOUT_SECONDS,
    high_accuracy: bool = True,
) -> PositionFix:
    """Ask the provider for one high-accuracy fix, giving up after the timeout.

    No retry happens here: a repeat is a new attempt initiated by the user.
    """

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="location")
    future = executor.submit(
        provider.get_current_position,
        high_accuracy=high_accuracy,
        timeout_seconds=timeout_seconds,
    )
    try:
        return future.result(timeout=timeout_seconds)
    except FutureTimeout:
        future.cancel()
        logger.warning(f"Location request timed out after {timeout_seconds:g}s")
        raise location_error(LocationFailure.TIMEOUT)
    except LocationError:
        raise
    except PermissionError:
        raise location_error(LocationFailure.PERMISSION_DENIED)
    except Exception as e:
        logger.error(f"Location provider failed: {e}")
        raise location_error(LocationFailure.POSITION_UNAVAILABLE) from e
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

from datetime import datetime, timedelta

import pytest

from labor_attendance.geofence.model import PositionFix
from labor_attendance.geofence.spoof import detect_spoof

T0 = datetime(2026, 3, 2, 8, 0, 0)


def test_poor_accuracy_is_reported_but_not_spoofed():
    check = detect_spoof(PositionFix(23.0225, 72.5714, accuracy_m=150))

    assert check.is_spoofed is False
    assert check.confidence == pytest.approx(0.3)
    assert "150m" in check.reason


@pytest.mark.parametrize("accuracy", [0, 1.5, 2.9])
def test_perfect_accuracy_looks_like_mock_gps(accuracy):
    check = detect_spoof(PositionFix(23.0225, 72.5714, accuracy_m=accuracy))

    assert check.is_spoofed is True
    assert check.confidence == pytest.approx(0.7)


def test_normal_fix_without_history_passes():
    check = detect_spoof(PositionFix(23.0225, 72.5714, accuracy_m=15))

    assert check.is_spoofed is False
    assert check.reason is None


def test_impossible_speed_between_fixes():
    previous = PositionFix(23.0225, 72.5714, accuracy_m=10, timestamp=T0)
    current = PositionFix(23.0300, 72.5800, accuracy_m=10, timestamp=T0 + timedelta(seconds=10))

    check = detect_spoof(current, previous)

    assert check.is_spoofed is True
    assert check.speed_kmh > 150
    assert check.confidence == pytest.approx(min(check.speed_kmh / 1000, 1.0))


def test_walking_speed_passes():
    previous = PositionFix(23.0225, 72.5714, accuracy_m=10, timestamp=T0)
    current = PositionFix(23.0234, 72.5714, accuracy_m=10, timestamp=T0 + timedelta(minutes=5))

    assert detect_spoof(current, previous).is_spoofed is False


def test_fixes_too_close_in_time_are_not_compared():
    previous = PositionFix(23.0225, 72.5714, accuracy_m=10, timestamp=T0)
    current = PositionFix(23.0300, 72.5800, accuracy_m=10, timestamp=T0 + timedelta(seconds=2))

    assert detect_spoof(current, previous).is_spoofed is False


def test_speed_limit_is_configurable():
    previous = PositionFix(23.0225, 72.5714, accuracy_m=10, timestamp=T0)
    current = PositionFix(23.0300, 72.5800, accuracy_m=10, timestamp=T0 + timedelta(minutes=1))

    assert detect_spoof(current, previous).is_spoofed is False
    assert detect_spoof(current, previous, max_speed_kmh=50).is_spoofed is True

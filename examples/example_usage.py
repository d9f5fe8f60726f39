"""Example: using the engine's building blocks directly (no Flask, no MySQL).

Controllers are a thin layer; the decisions live in plain functions and services.
"""

import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(REPO_ROOT / "src" / "labor_attendance"))

from labor_attendance.biometrics.matcher import match
from labor_attendance.closings.model import reconcile
from labor_attendance.core.enums import ClosingSource
from labor_attendance.geofence.evaluator import evaluate, format_distance


def main():
    site = (23.0225, 72.5714, 200)
    for lat, lon in [(23.0226, 72.5715), (23.0300, 72.5800)]:
        result = evaluate(lat, lon, *site)
        print(f"({lat}, {lon}) inside={result.within_radius} distance={format_distance(result.distance_meters)}")

    enrolled = [0.1] * 128
    captured = [0.1] * 127 + [0.4]
    print(match(captured, enrolled, threshold=0.5))

    print(reconcile(8, 10, ClosingSource.ROSTER))


if __name__ == "__main__":
    main()

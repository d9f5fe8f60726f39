import math

import pytest

from labor_attendance.common.validators import validate_coordinates
from labor_attendance.core.exceptions import InvalidCoordinatesError, ValidationError
from labor_attendance.geofence.evaluator import (
    distance_outside,
    evaluate,
    format_distance,
    haversine_distance,
    nearest_site,
)
from labor_attendance.geofence.model import Coordinates
from labor_attendance.sites.model import Site

SITE = (23.0225, 72.5714)


def test_point_next_to_site_is_inside():
    result = evaluate(23.0226, 72.5715, *SITE, 200)

    assert result.within_radius is True
    assert 10 <= result.distance_meters <= 20


def test_point_a_kilometre_away_is_outside():
    result = evaluate(23.0300, 72.5800, *SITE, 200)

    assert result.within_radius is False
    assert 1100 <= result.distance_meters <= 1300


def test_same_point_is_zero_distance_and_inside_any_radius():
    result = evaluate(*SITE, *SITE, 0.5)

    assert result.distance_meters == 0
    assert result.raw_distance_meters == 0
    assert result.within_radius is True


@pytest.mark.parametrize(
    "a, b",
    [
        ((23.0225, 72.5714), (23.0300, 72.5800)),
        ((-33.8688, 151.2093), (51.5074, -0.1278)),
        ((0.0, 179.9), (0.0, -179.9)),
    ],
)
def test_distance_is_symmetric(a, b):
    assert haversine_distance(*a, *b) == pytest.approx(haversine_distance(*b, *a))


def test_antipodal_points_do_not_blow_up():
    d = haversine_distance(0.0, 0.0, 0.0, 180.0)
    assert d == pytest.approx(math.pi * 6_371_000)


def test_larger_radius_never_turns_inside_into_outside():
    user = (23.0260, 72.5750)
    seen_inside = False
    for radius in range(50, 2000, 25):
        inside = evaluate(*user, *SITE, radius).within_radius
        if seen_inside:
            assert inside
        seen_inside = seen_inside or inside
    assert seen_inside


@pytest.mark.parametrize("dlat, dlon", [(1, 0), (0, 1), (-1, 1), (1, -1)])
def test_walking_away_at_fixed_radius_never_comes_back_inside(dlat, dlon):
    step = 0.00002
    results = [evaluate(SITE[0] + dlat * step * i, SITE[1] + dlon * step * i, *SITE, 200) for i in range(300)]

    distances = [r.raw_distance_meters for r in results]
    assert distances == sorted(distances)
    first_outside = next(i for i, r in enumerate(results) if not r.within_radius)
    assert all(r.within_radius for r in results[:first_outside])
    assert not any(r.within_radius for r in results[first_outside:])


def test_closer_point_is_accepted_whenever_a_farther_one_is():
    grid = [
        (SITE[0] + 0.0007 * i, SITE[1] + 0.0009 * j)
        for i in range(-4, 5)
        for j in range(-4, 5)
    ]
    results = sorted((evaluate(*p, *SITE, 300) for p in grid), key=lambda r: r.raw_distance_meters)

    verdicts = [r.within_radius for r in results]
    assert True in verdicts and False in verdicts
    assert verdicts == sorted(verdicts, reverse=True)


def test_decision_uses_unrounded_distance():
    raw = evaluate(23.0300, 72.5800, *SITE, 1).raw_distance_meters

    assert evaluate(23.0300, 72.5800, *SITE, raw).within_radius is True
    assert evaluate(23.0300, 72.5800, *SITE, raw - 0.01).within_radius is False
    assert evaluate(23.0300, 72.5800, *SITE, raw).distance_meters == round(raw)


def test_distance_outside_is_zero_inside_the_fence():
    inside = evaluate(23.0226, 72.5715, *SITE, 200)
    outside = evaluate(23.0300, 72.5800, *SITE, 200)

    assert distance_outside(inside, 200) == 0
    assert distance_outside(outside, 200) == round(outside.raw_distance_meters - 200)


@pytest.mark.parametrize("meters, text", [(0, "0m"), (150, "150m"), (999.4, "999m"), (1234, "1.2km"), (15000, "15.0km")])
def test_format_distance(meters, text):
    assert format_distance(meters) == text


def test_nearest_site_prefers_a_containing_site():
    far = Site(site_id=1, name="Far", latitude=23.1, longitude=72.6, radius_meters=100)
    near = Site(site_id=2, name="Near", latitude=23.0225, longitude=72.5714, radius_meters=200)

    site, result = nearest_site(Coordinates(23.0226, 72.5715), [far, near])

    assert site.site_id == 2
    assert result.within_radius


def test_nearest_site_falls_back_to_closest():
    a = Site(site_id=1, name="A", latitude=23.0300, longitude=72.5800, radius_meters=50)
    b = Site(site_id=2, name="B", latitude=23.2, longitude=72.8, radius_meters=50)

    site, result = nearest_site(Coordinates(*SITE), [b, a])

    assert site.site_id == 1
    assert not result.within_radius
    assert nearest_site(Coordinates(*SITE), []) is None


@pytest.mark.parametrize("lat, lon", [(91, 0), (-90.5, 10), (10, 181), (float("nan"), 0), ("abc", 1), (None, 1)])
def test_validate_coordinates_rejects_bad_input(lat, lon):
    with pytest.raises(InvalidCoordinatesError):
        validate_coordinates(lat, lon)


def test_validate_coordinates_accepts_numeric_strings():
    assert validate_coordinates("23.0225", "72.5714") == (23.0225, 72.5714)


@pytest.mark.parametrize("radius", [0, -5, float("inf")])
def test_site_requires_positive_radius(radius):
    with pytest.raises(ValidationError):
        Site(site_id=1, name="Bad", latitude=0, longitude=0, radius_meters=radius)

from __future__ import annotations

import pytest

from route_engine.services.geo import (
    compute_route_metrics,
    coordinate_bounds,
    haversine_miles,
)
from route_engine.services.types import ResolvedCoordinate

DALLAS = ResolvedCoordinate(longitude=-96.797, latitude=32.7767)
HOUSTON = ResolvedCoordinate(longitude=-95.3698, latitude=29.7604)
AUSTIN = ResolvedCoordinate(longitude=-97.7431, latitude=30.2672)


def test_one_degree_of_longitude_at_equator() -> None:
    metrics = compute_route_metrics(
        [
            ResolvedCoordinate(longitude=0.0, latitude=0.0),
            ResolvedCoordinate(longitude=1.0, latitude=0.0),
        ]
    )

    assert metrics.total_distance_miles == pytest.approx(69.094, abs=0.01)


@pytest.mark.parametrize(
    ("start", "finish"),
    [(DALLAS, HOUSTON), (HOUSTON, AUSTIN), (AUSTIN, DALLAS)],
)
def test_distance_is_symmetric(start: ResolvedCoordinate, finish: ResolvedCoordinate) -> None:
    forward = haversine_miles(start.latitude, start.longitude, finish.latitude, finish.longitude)
    backward = haversine_miles(finish.latitude, finish.longitude, start.latitude, start.longitude)

    assert forward == pytest.approx(backward)
    assert forward > 0


def test_distance_between_identical_points_is_zero() -> None:
    assert haversine_miles(32.7767, -96.797, 32.7767, -96.797) == pytest.approx(0.0, abs=1e-9)


def test_dallas_to_houston_is_plausible() -> None:
    distance = haversine_miles(DALLAS.latitude, DALLAS.longitude, HOUSTON.latitude, HOUSTON.longitude)

    assert 220 < distance < 230


@pytest.mark.parametrize("coordinates", [[], [DALLAS]])
def test_short_routes_have_zero_distance(coordinates: list[ResolvedCoordinate]) -> None:
    metrics = compute_route_metrics(coordinates)

    assert metrics.total_distance_miles == 0
    assert metrics.ordered_coordinates == tuple(coordinates)


def test_route_distance_sums_consecutive_segments() -> None:
    metrics = compute_route_metrics([DALLAS, HOUSTON, AUSTIN])

    expected = haversine_miles(
        DALLAS.latitude, DALLAS.longitude, HOUSTON.latitude, HOUSTON.longitude
    ) + haversine_miles(HOUSTON.latitude, HOUSTON.longitude, AUSTIN.latitude, AUSTIN.longitude)
    assert metrics.total_distance_miles == pytest.approx(expected)


def test_bounds_cover_all_coordinates() -> None:
    bounds = coordinate_bounds([DALLAS, HOUSTON, AUSTIN])

    assert bounds is not None
    assert bounds.west == AUSTIN.longitude
    assert bounds.east == HOUSTON.longitude
    assert bounds.south == HOUSTON.latitude
    assert bounds.north == DALLAS.latitude
    assert coordinate_bounds([]) is None

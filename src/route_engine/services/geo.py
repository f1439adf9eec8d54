from __future__ import annotations

import math
from collections.abc import Sequence

from route_engine.services.types import CoordinateBounds, ResolvedCoordinate, RouteMetrics

EARTH_RADIUS_MILES = 3958.8


def haversine_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    lat1_rad = math.radians(lat1)
    lon1_rad = math.radians(lon1)
    lat2_rad = math.radians(lat2)
    lon2_rad = math.radians(lon2)

    dlat = lat2_rad - lat1_rad
    dlon = lon2_rad - lon1_rad

    a = (
        math.sin(dlat / 2.0) ** 2
        + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon / 2.0) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_MILES * c


def segment_miles(start: ResolvedCoordinate, finish: ResolvedCoordinate) -> float:
    return haversine_miles(start.latitude, start.longitude, finish.latitude, finish.longitude)


def compute_route_metrics(coordinates: Sequence[ResolvedCoordinate]) -> RouteMetrics:
    ordered = tuple(coordinates)
    total = 0.0
    for start, finish in zip(ordered, ordered[1:]):
        total += segment_miles(start, finish)
    return RouteMetrics(ordered_coordinates=ordered, total_distance_miles=total)


def coordinate_bounds(coordinates: Sequence[ResolvedCoordinate]) -> CoordinateBounds | None:
    if not coordinates:
        return None

    longitudes = [coordinate.longitude for coordinate in coordinates]
    latitudes = [coordinate.latitude for coordinate in coordinates]
    return CoordinateBounds(
        west=min(longitudes),
        south=min(latitudes),
        east=max(longitudes),
        north=max(latitudes),
    )

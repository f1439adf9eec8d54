from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

StopKind = Literal["pickup", "delivery"]


@dataclass(slots=True, frozen=True)
class ResolvedCoordinate:
    longitude: float
    latitude: float

    def as_lng_lat(self) -> tuple[float, float]:
        return self.longitude, self.latitude


@dataclass(slots=True, frozen=True)
class Stop:
    kind: StopKind
    sequence: int = 0
    address: str = ""
    city: str = ""
    state: str = ""
    postal_code: str = ""
    precomputed_coordinate: ResolvedCoordinate | None = None

    @property
    def has_location(self) -> bool:
        if self.precomputed_coordinate is not None:
            return True
        return any(
            part.strip() for part in (self.address, self.city, self.state, self.postal_code)
        )


@dataclass(slots=True, frozen=True)
class CachedCoordinate:
    location_key: str
    latitude: float
    longitude: float

    def to_resolved(self) -> ResolvedCoordinate:
        return ResolvedCoordinate(longitude=self.longitude, latitude=self.latitude)


@dataclass(slots=True, frozen=True)
class VehicleProfile:
    fuel_type: str | None = None
    fuel_efficiency_mpg: float | None = None


@dataclass(slots=True, frozen=True)
class RequiredBreak:
    location: str
    duration_minutes: int
    reason: str = ""
    coordinate: ResolvedCoordinate | None = None


@dataclass(slots=True, frozen=True)
class RouteOptions:
    optimized_stops: tuple[Stop, ...] | None = None
    required_breaks: tuple[RequiredBreak, ...] = ()
    vehicle_profile: VehicleProfile | None = None


@dataclass(slots=True, frozen=True)
class RouteMetrics:
    ordered_coordinates: tuple[ResolvedCoordinate, ...]
    total_distance_miles: float


@dataclass(slots=True, frozen=True)
class FuelEstimate:
    fuel_type: str
    mpg: float
    gallons: float
    cost_usd: float
    co2_lbs: float
    co2_kg: float


@dataclass(slots=True, frozen=True)
class CoordinateBounds:
    west: float
    south: float
    east: float
    north: float


@dataclass(slots=True, frozen=True)
class ResolvedStops:
    ordered_stops: tuple[Stop, ...]
    coordinates: tuple[ResolvedCoordinate | None, ...]

    @property
    def resolved_coordinates(self) -> tuple[ResolvedCoordinate, ...]:
        return tuple(coordinate for coordinate in self.coordinates if coordinate is not None)

    @property
    def unresolved_count(self) -> int:
        return sum(1 for coordinate in self.coordinates if coordinate is None)


@dataclass(slots=True, frozen=True)
class RouteResult:
    stop_key: str
    ordered_stops: tuple[Stop, ...]
    resolved_coordinates: tuple[ResolvedCoordinate | None, ...]
    metrics: RouteMetrics
    fuel_estimate: FuelEstimate | None
    unresolved_stop_count: int
    required_breaks: tuple[RequiredBreak, ...] = ()
    bounds: CoordinateBounds | None = None

    @property
    def ordered_coordinates(self) -> tuple[ResolvedCoordinate, ...]:
        return self.metrics.ordered_coordinates

    @property
    def total_distance_miles(self) -> float:
        return self.metrics.total_distance_miles

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from route_engine.services.types import (
    RequiredBreak,
    ResolvedCoordinate,
    RouteOptions,
    RouteResult,
    Stop,
    VehicleProfile,
)


class CoordinateSchema(BaseModel):
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)

    def to_resolved(self) -> ResolvedCoordinate:
        return ResolvedCoordinate(longitude=self.longitude, latitude=self.latitude)


class StopSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Literal["pickup", "delivery"]
    sequence: int = 0
    address: str = Field(default="", max_length=300)
    city: str = Field(default="", max_length=100)
    state: str = Field(default="", max_length=100)
    postal_code: str = Field(default="", max_length=20)
    precomputed_coordinate: CoordinateSchema | None = None

    def to_stop(self) -> Stop:
        return Stop(
            kind=self.kind,
            sequence=self.sequence,
            address=self.address,
            city=self.city,
            state=self.state,
            postal_code=self.postal_code,
            precomputed_coordinate=(
                self.precomputed_coordinate.to_resolved() if self.precomputed_coordinate else None
            ),
        )


class RequiredBreakSchema(BaseModel):
    model_config = ConfigDict(extra="forbid")

    location: str = Field(max_length=300)
    duration_minutes: int = Field(ge=0)
    reason: str = ""
    coordinate: CoordinateSchema | None = None

    def to_required_break(self) -> RequiredBreak:
        return RequiredBreak(
            location=self.location,
            duration_minutes=self.duration_minutes,
            reason=self.reason,
            coordinate=self.coordinate.to_resolved() if self.coordinate else None,
        )


class VehicleProfileSchema(BaseModel):
    fuel_type: str | None = None
    fuel_efficiency_mpg: float | None = Field(default=None, gt=0.0, le=200.0)


class RouteMetricsRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    stops: list[StopSchema] = Field(min_length=1, max_length=200)
    optimized_stops: list[StopSchema] | None = None
    required_breaks: list[RequiredBreakSchema] = Field(default_factory=list)
    vehicle_profile: VehicleProfileSchema | None = None

    def to_stops(self) -> list[Stop]:
        return [stop.to_stop() for stop in self.stops]

    def to_options(self) -> RouteOptions:
        return RouteOptions(
            optimized_stops=(
                tuple(stop.to_stop() for stop in self.optimized_stops)
                if self.optimized_stops
                else None
            ),
            required_breaks=tuple(item.to_required_break() for item in self.required_breaks),
            vehicle_profile=(
                VehicleProfile(
                    fuel_type=self.vehicle_profile.fuel_type,
                    fuel_efficiency_mpg=self.vehicle_profile.fuel_efficiency_mpg,
                )
                if self.vehicle_profile
                else None
            ),
        )


class FuelEstimateResponse(BaseModel):
    fuel_type: str
    mpg: float
    gallons: float
    cost_usd: float
    co2_lbs: float
    co2_kg: float


class BoundsResponse(BaseModel):
    west: float
    south: float
    east: float
    north: float


class RouteMetricsResponse(BaseModel):
    ordered_coordinates: list[tuple[float, float]]
    total_distance_miles: float
    fuel_estimate: FuelEstimateResponse | None
    unresolved_stop_count: int
    bounds: BoundsResponse | None
    required_breaks: list[RequiredBreakSchema]

    @classmethod
    def from_result(cls, result: RouteResult) -> RouteMetricsResponse:
        fuel = result.fuel_estimate
        bounds = result.bounds
        return cls(
            ordered_coordinates=[
                (round(coordinate.longitude, 6), round(coordinate.latitude, 6))
                for coordinate in result.ordered_coordinates
            ],
            total_distance_miles=round(result.total_distance_miles, 2),
            fuel_estimate=(
                FuelEstimateResponse(
                    fuel_type=fuel.fuel_type,
                    mpg=fuel.mpg,
                    gallons=round(fuel.gallons, 3),
                    cost_usd=round(fuel.cost_usd, 2),
                    co2_lbs=round(fuel.co2_lbs, 2),
                    co2_kg=round(fuel.co2_kg, 2),
                )
                if fuel
                else None
            ),
            unresolved_stop_count=result.unresolved_stop_count,
            bounds=(
                BoundsResponse(
                    west=bounds.west, south=bounds.south, east=bounds.east, north=bounds.north
                )
                if bounds
                else None
            ),
            required_breaks=[
                RequiredBreakSchema(
                    location=item.location,
                    duration_minutes=item.duration_minutes,
                    reason=item.reason,
                    coordinate=(
                        CoordinateSchema(
                            latitude=item.coordinate.latitude,
                            longitude=item.coordinate.longitude,
                        )
                        if item.coordinate
                        else None
                    ),
                )
                for item in result.required_breaks
            ],
        )

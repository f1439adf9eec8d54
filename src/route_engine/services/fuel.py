"""Fuel consumption, cost and CO2 estimates for a resolved route."""

from __future__ import annotations

from route_engine.services.types import FuelEstimate, VehicleProfile

# USD per gallon, or per kWh for electric vehicles.
FUEL_PRICES_USD = {
    "diesel": 3.85,
    "gasoline": 3.25,
    "electric": 0.13,
}
DEFAULT_FUEL_PRICE_USD = 3.50

# Pounds of CO2 per gallon burned.
CO2_LBS_PER_GALLON = {
    "diesel": 22.38,
    "gasoline": 19.64,
    "electric": 0.0,
}
DEFAULT_CO2_LBS_PER_GALLON = 20.0

KG_PER_LB = 0.453592


def fuel_price(fuel_type: str) -> float:
    return FUEL_PRICES_USD.get(fuel_type.lower(), DEFAULT_FUEL_PRICE_USD)


def emission_factor(fuel_type: str) -> float:
    return CO2_LBS_PER_GALLON.get(fuel_type.lower(), DEFAULT_CO2_LBS_PER_GALLON)


def estimate_fuel(
    total_distance_miles: float,
    vehicle_profile: VehicleProfile | None,
) -> FuelEstimate | None:
    """Estimate fuel use for a route, or ``None`` when no estimate is possible.

    ``None`` means "no estimate available" and is returned when the profile is
    missing, lacks a fuel type or efficiency, or the route has no distance. A
    non-positive efficiency counts as missing.
    """
    if vehicle_profile is None:
        return None

    fuel_type = vehicle_profile.fuel_type
    mpg = vehicle_profile.fuel_efficiency_mpg
    if not fuel_type or mpg is None or mpg <= 0:
        return None
    if total_distance_miles <= 0:
        return None

    gallons = total_distance_miles / mpg
    co2_lbs = gallons * emission_factor(fuel_type)
    return FuelEstimate(
        fuel_type=fuel_type,
        mpg=mpg,
        gallons=gallons,
        cost_usd=gallons * fuel_price(fuel_type),
        co2_lbs=co2_lbs,
        co2_kg=co2_lbs * KG_PER_LB,
    )

from __future__ import annotations

import logging
from collections.abc import Sequence

from route_engine.exceptions import NothingToRenderError
from route_engine.services.fuel import estimate_fuel
from route_engine.services.geo import compute_route_metrics, coordinate_bounds
from route_engine.services.orchestration import ConcurrentResolutionOrchestrator
from route_engine.services.resolver import TieredGeocodeResolver
from route_engine.services.stop_key import build_stop_key
from route_engine.services.types import RouteOptions, RouteResult, Stop

logger = logging.getLogger(__name__)


class RouteEngine:
    def __init__(
        self,
        resolver: TieredGeocodeResolver | None = None,
        orchestrator: ConcurrentResolutionOrchestrator | None = None,
    ) -> None:
        self.orchestrator = orchestrator or ConcurrentResolutionOrchestrator(resolver=resolver)

    async def compute_route(
        self,
        stops: Sequence[Stop],
        options: RouteOptions | None = None,
    ) -> RouteResult:
        options = options or RouteOptions()
        candidates = list(options.optimized_stops or stops)
        if not any(stop.has_location for stop in candidates):
            raise NothingToRenderError("No stops with location data to render")

        stop_key = build_stop_key(stops, options.optimized_stops, options.required_breaks)
        resolved = await self.orchestrator.resolve_all(stops, options.optimized_stops)

        coordinates = resolved.resolved_coordinates
        metrics = compute_route_metrics(coordinates)
        fuel_estimate = estimate_fuel(metrics.total_distance_miles, options.vehicle_profile)

        logger.info(
            "Computed route over %d stops: %.1f miles, %d unresolved",
            len(resolved.ordered_stops),
            metrics.total_distance_miles,
            resolved.unresolved_count,
        )
        return RouteResult(
            stop_key=stop_key,
            ordered_stops=resolved.ordered_stops,
            resolved_coordinates=resolved.coordinates,
            metrics=metrics,
            fuel_estimate=fuel_estimate,
            unresolved_stop_count=resolved.unresolved_count,
            required_breaks=tuple(options.required_breaks),
            bounds=coordinate_bounds(coordinates),
        )

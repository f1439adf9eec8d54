from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from django.conf import settings

from route_engine.services.resolver import TieredGeocodeResolver
from route_engine.services.types import ResolvedCoordinate, ResolvedStops, Stop

logger = logging.getLogger(__name__)


def resolution_order(
    stops: Sequence[Stop], optimized_stops: Sequence[Stop] | None = None
) -> list[Stop]:
    if optimized_stops:
        return list(optimized_stops)
    return sorted(stops, key=lambda stop: stop.sequence)


class ConcurrentResolutionOrchestrator:
    def __init__(
        self,
        resolver: TieredGeocodeResolver | None = None,
        max_concurrency: int | None = None,
    ) -> None:
        self.resolver = resolver or TieredGeocodeResolver()
        self.max_concurrency = max(1, max_concurrency or settings.GEOCODE_MAX_CONCURRENCY)

    async def resolve_all(
        self,
        stops: Sequence[Stop],
        optimized_stops: Sequence[Stop] | None = None,
    ) -> ResolvedStops:
        ordered = resolution_order(stops, optimized_stops)
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def resolve_one(stop: Stop) -> ResolvedCoordinate | None:
            async with semaphore:
                return await self.resolver.resolve(stop)

        outcomes = await asyncio.gather(
            *(resolve_one(stop) for stop in ordered),
            return_exceptions=True,
        )

        coordinates: list[ResolvedCoordinate | None] = []
        for index, outcome in enumerate(outcomes):
            if isinstance(outcome, Exception):
                logger.error("Unexpected failure resolving stop %d", index, exc_info=outcome)
                coordinates.append(None)
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                coordinates.append(outcome)

        resolved = ResolvedStops(ordered_stops=tuple(ordered), coordinates=tuple(coordinates))
        if resolved.unresolved_count:
            logger.info(
                "Resolved %d of %d stops", len(ordered) - resolved.unresolved_count, len(ordered)
            )
        return resolved

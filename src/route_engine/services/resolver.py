from __future__ import annotations

import logging

from route_engine.exceptions import (
    CacheLookupError,
    CacheWriteError,
    GeocodeMissError,
    ProviderError,
    TokenUnavailableError,
)
from route_engine.services.cache_store import GeocodeCacheStore, build_cache_store
from route_engine.services.geocoding import MapboxGeocodingClient, ResolutionProvider
from route_engine.services.stop_key import free_text_query, location_key
from route_engine.services.types import CachedCoordinate, ResolvedCoordinate, Stop

logger = logging.getLogger(__name__)


class TieredGeocodeResolver:
    """Resolves a stop through precomputed coordinates, the cache store, then the provider.

    Each tier is only tried when the cheaper one before it cannot answer. A
    provider result is written back to the cache store under the stop's
    ``"city, state"`` key; stops without one are never written back.
    """

    def __init__(
        self,
        cache_store: GeocodeCacheStore | None = None,
        provider: ResolutionProvider | None = None,
    ) -> None:
        self.cache_store = cache_store or build_cache_store()
        self.provider = provider or MapboxGeocodingClient()

    async def resolve(self, stop: Stop) -> ResolvedCoordinate | None:
        if stop.precomputed_coordinate is not None:
            return stop.precomputed_coordinate

        key = location_key(stop.city, stop.state)
        if key is not None:
            cached = await self._lookup(key)
            if cached is not None:
                return cached.to_resolved()

        query = free_text_query(stop)
        if not query:
            return None

        coordinate = await self._geocode(query)
        if coordinate is not None and key is not None:
            await self._write_back(key, coordinate)
        return coordinate

    async def _lookup(self, key: str) -> CachedCoordinate | None:
        try:
            return await self.cache_store.lookup(key)
        except CacheLookupError as exc:
            logger.warning("Geocode cache lookup failed, falling back to provider: %s", exc)
            return None

    async def _geocode(self, query: str) -> ResolvedCoordinate | None:
        try:
            return await self.provider.geocode(query)
        except TokenUnavailableError as exc:
            logger.warning("Skipping geocoding for %r, token unavailable: %s", query, exc)
        except GeocodeMissError:
            logger.info("No geocoding match for %r", query)
        except ProviderError as exc:
            logger.warning("Geocoding provider failed for %r: %s", query, exc)
        return None

    async def _write_back(self, key: str, coordinate: ResolvedCoordinate) -> None:
        try:
            await self.cache_store.write(key, coordinate.latitude, coordinate.longitude)
        except CacheWriteError as exc:
            logger.warning("Ignoring geocode cache write failure: %s", exc)

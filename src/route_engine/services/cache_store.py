from __future__ import annotations

import hashlib
import logging
from typing import Protocol

from django.conf import settings
from django.core.cache import cache
from django.db import DatabaseError
from django.db.models import F

from route_engine.exceptions import CacheLookupError, CacheWriteError
from route_engine.models import GeocodeCacheEntry
from route_engine.services.stop_key import normalize_location_key
from route_engine.services.types import CachedCoordinate

logger = logging.getLogger(__name__)


class GeocodeCacheStore(Protocol):
    async def lookup(self, location_key: str) -> CachedCoordinate | None: ...

    async def write(self, location_key: str, latitude: float, longitude: float) -> None: ...


class DatabaseGeocodeCacheStore:
    """Durable store backed by the ``GeocodeCacheEntry`` table."""

    async def lookup(self, location_key: str) -> CachedCoordinate | None:
        key = normalize_location_key(location_key)
        try:
            entry = await GeocodeCacheEntry.objects.filter(location_key=key).afirst()
            if entry is None:
                return None
            await GeocodeCacheEntry.objects.filter(pk=entry.pk).aupdate(
                hit_count=F("hit_count") + 1
            )
        except DatabaseError as exc:
            raise CacheLookupError(f"Geocode cache lookup failed for {key!r}") from exc

        return CachedCoordinate(
            location_key=entry.location_key,
            latitude=entry.latitude,
            longitude=entry.longitude,
        )

    async def write(self, location_key: str, latitude: float, longitude: float) -> None:
        key = normalize_location_key(location_key)
        city, _, state = key.rpartition(", ")
        try:
            await GeocodeCacheEntry.objects.aupdate_or_create(
                location_key=key,
                defaults={
                    "latitude": latitude,
                    "longitude": longitude,
                    "city": city,
                    "state": state,
                },
            )
        except DatabaseError as exc:
            raise CacheWriteError(f"Geocode cache write failed for {key!r}") from exc


class FrameworkGeocodeCacheStore:
    """Short-lived store on top of Django's configured cache backend."""

    def __init__(self, timeout: int | None = None) -> None:
        self.timeout = timeout if timeout is not None else settings.GEOCODE_CACHE_TTL_SECONDS

    async def lookup(self, location_key: str) -> CachedCoordinate | None:
        key = normalize_location_key(location_key)
        try:
            cached = await cache.aget(self._cache_key(key))
        except Exception as exc:
            raise CacheLookupError(f"Geocode cache lookup failed for {key!r}") from exc
        if not cached:
            return None
        return CachedCoordinate(
            location_key=key,
            latitude=cached["latitude"],
            longitude=cached["longitude"],
        )

    async def write(self, location_key: str, latitude: float, longitude: float) -> None:
        key = normalize_location_key(location_key)
        try:
            await cache.aset(
                self._cache_key(key),
                {"latitude": latitude, "longitude": longitude},
                timeout=self.timeout,
            )
        except Exception as exc:
            raise CacheWriteError(f"Geocode cache write failed for {key!r}") from exc

    @staticmethod
    def _cache_key(location_key: str) -> str:
        digest = hashlib.sha256(location_key.encode()).hexdigest()
        return f"geocode:{digest}"


class LayeredGeocodeCacheStore:
    """Checks the fast store before the durable one and back-fills it on a durable hit."""

    def __init__(
        self,
        fast: GeocodeCacheStore | None = None,
        durable: GeocodeCacheStore | None = None,
    ) -> None:
        self.fast = fast or FrameworkGeocodeCacheStore()
        self.durable = durable or DatabaseGeocodeCacheStore()

    async def lookup(self, location_key: str) -> CachedCoordinate | None:
        try:
            cached = await self.fast.lookup(location_key)
        except CacheLookupError as exc:
            logger.warning("Fast geocode cache lookup failed, trying durable store: %s", exc)
            cached = None
        if cached is not None:
            return cached

        cached = await self.durable.lookup(location_key)
        if cached is not None:
            try:
                await self.fast.write(cached.location_key, cached.latitude, cached.longitude)
            except CacheWriteError as exc:
                logger.warning("Skipping fast geocode cache back-fill: %s", exc)
        return cached

    async def write(self, location_key: str, latitude: float, longitude: float) -> None:
        try:
            await self.fast.write(location_key, latitude, longitude)
        except CacheWriteError as exc:
            logger.warning("Fast geocode cache write failed, writing durable store only: %s", exc)
        await self.durable.write(location_key, latitude, longitude)


def build_cache_store(backend: str | None = None) -> GeocodeCacheStore:
    backend = backend or settings.GEOCODE_CACHE_BACKEND
    if backend == "database":
        return DatabaseGeocodeCacheStore()
    if backend == "cache":
        return FrameworkGeocodeCacheStore()
    if backend == "layered":
        return LayeredGeocodeCacheStore()
    raise ValueError(f"Unknown geocode cache backend: {backend}")

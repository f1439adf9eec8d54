from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol
from urllib.parse import quote

import httpx
from django.conf import settings

from route_engine.exceptions import GeocodeMissError, ProviderError
from route_engine.services.tokens import AccessTokenProvider, get_token_provider
from route_engine.services.types import ResolvedCoordinate

logger = logging.getLogger(__name__)


class ResolutionProvider(Protocol):
    async def geocode(self, query: str) -> ResolvedCoordinate: ...


class MapboxGeocodingClient:
    def __init__(
        self,
        token_provider: AccessTokenProvider | None = None,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.token_provider = token_provider or get_token_provider()
        self.base_url = settings.MAPBOX_GEOCODING_BASE_URL.rstrip("/")
        self.timeout = settings.GEOCODING_TIMEOUT_SECONDS
        self.retry_count = settings.GEOCODING_RETRY_COUNT
        self.country_code = settings.GEOCODING_COUNTRY_CODE
        self.transport = transport

    async def geocode(self, query: str) -> ResolvedCoordinate:
        # TokenUnavailableError propagates so the resolver can skip this tier.
        token = await self.token_provider.get_token()

        params = {"access_token": token, "limit": 1}
        if self.country_code:
            params["country"] = self.country_code
        endpoint = f"{self.base_url}/{quote(query, safe='')}.json"

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            for attempt in range(self.retry_count + 1):
                try:
                    response = await client.get(endpoint, params=params)
                    response.raise_for_status()
                    return self._parse_result(response.json(), query)
                except GeocodeMissError:
                    raise
                except (httpx.HTTPError, ValueError) as exc:
                    if attempt >= self.retry_count:
                        raise ProviderError(f"Geocoding request failed for {query!r}") from exc
                    logger.debug("Geocoding attempt %d failed for %r: %s", attempt + 1, query, exc)
                    await asyncio.sleep(0.3 * (attempt + 1))

        raise ProviderError(f"Geocoding request failed for {query!r}")

    @staticmethod
    def _parse_result(payload: Any, query: str) -> ResolvedCoordinate:
        features = payload.get("features") if isinstance(payload, dict) else None
        if not features:
            raise GeocodeMissError(f"No geocoding match for {query!r}")

        try:
            longitude, latitude = features[0]["center"]
            return ResolvedCoordinate(longitude=float(longitude), latitude=float(latitude))
        except (KeyError, TypeError, ValueError) as exc:
            raise ProviderError("Invalid geocoding response") from exc

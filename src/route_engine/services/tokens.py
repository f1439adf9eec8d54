"""Lazily fetched, process-wide access token for the geocoding provider."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

import httpx
from django.conf import settings

from route_engine.exceptions import TokenUnavailableError

logger = logging.getLogger(__name__)

TokenFetcher = Callable[[], Awaitable[str]]


class AccessTokenProvider:
    """Fetches the token once and shares it with every caller.

    Concurrent callers that arrive while the first fetch is still in flight
    await that same fetch. A failed fetch is not cached, so the next caller
    after the failure starts a fresh one.
    """

    def __init__(self, fetcher: TokenFetcher | None = None) -> None:
        self._fetcher = fetcher or fetch_configured_token
        self._token: str | None = None
        self._pending: asyncio.Task[str] | None = None

    @property
    def token(self) -> str | None:
        return self._token

    async def get_token(self) -> str:
        if self._token is not None:
            return self._token

        pending = self._pending
        if pending is None or pending.get_loop() is not asyncio.get_running_loop():
            pending = asyncio.ensure_future(self._fetch())
            self._pending = pending

        try:
            return await asyncio.shield(pending)
        finally:
            if pending.done() and self._pending is pending:
                self._pending = None

    def reset(self) -> None:
        self._token = None
        self._pending = None

    async def _fetch(self) -> str:
        try:
            token = await self._fetcher()
        except TokenUnavailableError:
            raise
        except Exception as exc:
            raise TokenUnavailableError("Access token fetch failed") from exc

        if not token:
            raise TokenUnavailableError("Access token is empty")

        self._token = token
        logger.info("Geocoding access token initialised")
        return token


async def fetch_configured_token() -> str:
    static_token = settings.MAPBOX_ACCESS_TOKEN
    if static_token:
        return static_token

    token_url = settings.MAPBOX_TOKEN_URL
    if not token_url:
        raise TokenUnavailableError("No access token or token endpoint configured")

    try:
        async with httpx.AsyncClient(timeout=settings.GEOCODING_TIMEOUT_SECONDS) as client:
            response = await client.post(token_url, headers={"Accept": "application/json"})
            response.raise_for_status()
            payload = response.json()
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("Access token endpoint failed: %s", exc)
        raise TokenUnavailableError("Access token endpoint failed") from exc

    token = payload.get("token") if isinstance(payload, dict) else None
    if not token:
        raise TokenUnavailableError("Access token endpoint returned no token")
    return str(token)


_default_provider: AccessTokenProvider | None = None


def get_token_provider() -> AccessTokenProvider:
    global _default_provider
    if _default_provider is None:
        _default_provider = AccessTokenProvider()
    return _default_provider

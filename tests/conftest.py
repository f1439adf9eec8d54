from __future__ import annotations

import pytest
from django.core.cache import cache
from django.test import Client

from route_engine.services.resolver import TieredGeocodeResolver
from tests.fakes import FakeCacheStore, FakeProvider


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client() -> Client:
    return Client()


@pytest.fixture
def cache_store() -> FakeCacheStore:
    return FakeCacheStore()


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider()


@pytest.fixture
def resolver(cache_store: FakeCacheStore, provider: FakeProvider) -> TieredGeocodeResolver:
    return TieredGeocodeResolver(cache_store=cache_store, provider=provider)

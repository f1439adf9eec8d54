from __future__ import annotations

from pathlib import Path

import pytest
from asgiref.sync import async_to_sync
from django.core.management import call_command
from django.core.management.base import CommandError

from route_engine.management.commands.warm_geocode_cache import Command
from route_engine.models import GeocodeCacheEntry
from route_engine.services.cache_store import (
    DatabaseGeocodeCacheStore,
    FrameworkGeocodeCacheStore,
)
from route_engine.services.orchestration import ConcurrentResolutionOrchestrator
from route_engine.services.resolver import TieredGeocodeResolver
from route_engine.services.types import ResolvedCoordinate
from tests.fakes import FakeProvider


@pytest.fixture
def provider(mocker) -> FakeProvider:
    provider = FakeProvider(
        {
            "Tulsa, OK": ResolvedCoordinate(-95.9928, 36.154),
            "Denver, CO": ResolvedCoordinate(-104.9903, 39.7392),
        }
    )
    resolver = TieredGeocodeResolver(cache_store=DatabaseGeocodeCacheStore(), provider=provider)
    mocker.patch.object(
        Command,
        "_build_orchestrator",
        return_value=ConcurrentResolutionOrchestrator(resolver, max_concurrency=2),
    )
    return provider


@pytest.mark.django_db
def test_warm_cache_resolves_unique_uncached_locations(tmp_path: Path, provider: FakeProvider) -> None:
    GeocodeCacheEntry.objects.create(location_key="austin, tx", latitude=30.2672, longitude=-97.7431)
    csv_path = tmp_path / "locations.csv"
    csv_path.write_text(
        "\n".join(
            [
                "City,State",
                "Tulsa,OK",
                " tulsa , ok ",
                "Denver,CO",
                "Austin,TX",
                "Atlantis,ZZ",
                ",TX",
            ]
        ),
        encoding="utf-8",
    )

    call_command("warm_geocode_cache", csv_path=str(csv_path))

    assert sorted(provider.calls) == ["Atlantis, ZZ", "Denver, CO", "Tulsa, OK"]
    keys = set(GeocodeCacheEntry.objects.values_list("location_key", flat=True))
    assert keys == {"austin, tx", "tulsa, ok", "denver, co"}


@pytest.mark.django_db
def test_warm_cache_requires_city_and_state_columns(tmp_path: Path, provider: FakeProvider) -> None:
    csv_path = tmp_path / "locations.csv"
    csv_path.write_text("Address\n100 Main St\n", encoding="utf-8")

    with pytest.raises(CommandError):
        call_command("warm_geocode_cache", csv_path=str(csv_path))
    assert provider.calls == []


def test_warm_cache_rejects_missing_file(tmp_path: Path) -> None:
    with pytest.raises(CommandError):
        call_command("warm_geocode_cache", csv_path=str(tmp_path / "missing.csv"))


@pytest.mark.django_db
def test_warm_cache_writes_framework_only_keys_to_database(tmp_path: Path, mocker) -> None:
    tulsa = ResolvedCoordinate(-95.9928, 36.154)
    async_to_sync(FrameworkGeocodeCacheStore(timeout=60).write)("tulsa, ok", 36.154, -95.9928)
    provider = FakeProvider({"Tulsa, OK": tulsa})
    mocker.patch("route_engine.services.resolver.MapboxGeocodingClient", return_value=provider)
    csv_path = tmp_path / "locations.csv"
    csv_path.write_text("City,State\nTulsa,OK\n", encoding="utf-8")

    call_command("warm_geocode_cache", csv_path=str(csv_path))

    assert provider.calls == ["Tulsa, OK"]
    entry = GeocodeCacheEntry.objects.get()
    assert (entry.location_key, entry.latitude, entry.longitude) == ("tulsa, ok", 36.154, -95.9928)

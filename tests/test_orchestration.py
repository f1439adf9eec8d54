from __future__ import annotations

from asgiref.sync import async_to_sync

from route_engine.services.orchestration import ConcurrentResolutionOrchestrator
from route_engine.services.resolver import TieredGeocodeResolver
from route_engine.services.types import ResolvedCoordinate, Stop
from tests.fakes import FakeCacheStore, FakeProvider

CITIES = [
    ("Dallas", "TX", ResolvedCoordinate(longitude=-96.797, latitude=32.7767)),
    ("Texarkana", "TX", ResolvedCoordinate(longitude=-94.0477, latitude=33.4418)),
    ("Little Rock", "AR", ResolvedCoordinate(longitude=-92.2896, latitude=34.7465)),
    ("Memphis", "TN", ResolvedCoordinate(longitude=-90.049, latitude=35.1495)),
    ("Nashville", "TN", ResolvedCoordinate(longitude=-86.7816, latitude=36.1627)),
]


def _stops() -> list[Stop]:
    return [
        Stop(kind="pickup" if index == 0 else "delivery", sequence=index, city=city, state=state)
        for index, (city, state, _) in enumerate(CITIES)
    ]


def _orchestrator(provider: FakeProvider, max_concurrency: int = 8) -> ConcurrentResolutionOrchestrator:
    resolver = TieredGeocodeResolver(cache_store=FakeCacheStore(), provider=provider)
    return ConcurrentResolutionOrchestrator(resolver, max_concurrency=max_concurrency)


def test_results_follow_input_order_not_completion_order() -> None:
    provider = FakeProvider(
        {f"{city}, {state}": coordinate for city, state, coordinate in CITIES},
        delays={"Dallas, TX": 0.05, "Texarkana, TX": 0.03, "Nashville, TN": 0.0},
    )

    resolved = async_to_sync(_orchestrator(provider).resolve_all)(_stops())

    assert resolved.coordinates == tuple(coordinate for _, _, coordinate in CITIES)
    assert resolved.unresolved_count == 0


def test_stops_are_resolved_concurrently() -> None:
    provider = FakeProvider(
        {f"{city}, {state}": coordinate for city, state, coordinate in CITIES},
        delays={f"{city}, {state}": 0.02 for city, state, _ in CITIES},
    )

    async_to_sync(_orchestrator(provider).resolve_all)(_stops())

    assert provider.max_in_flight == len(CITIES)


def test_concurrency_is_bounded() -> None:
    provider = FakeProvider(
        {f"{city}, {state}": coordinate for city, state, coordinate in CITIES},
        delays={f"{city}, {state}": 0.02 for city, state, _ in CITIES},
    )

    async_to_sync(_orchestrator(provider, max_concurrency=2).resolve_all)(_stops())

    assert provider.max_in_flight == 2


def test_failed_stop_is_excluded_without_aborting_route() -> None:
    results = {f"{city}, {state}": coordinate for city, state, coordinate in CITIES}
    del results["Little Rock, AR"]
    provider = FakeProvider(results)

    resolved = async_to_sync(_orchestrator(provider).resolve_all)(_stops())

    assert resolved.unresolved_count == 1
    assert resolved.coordinates[2] is None
    assert resolved.resolved_coordinates == tuple(
        coordinate for city, _, coordinate in CITIES if city != "Little Rock"
    )


def test_unexpected_resolver_failure_counts_as_unresolved() -> None:
    provider = FakeProvider(
        {f"{city}, {state}": coordinate for city, state, coordinate in CITIES},
        errors={"Memphis, TN": RuntimeError("socket closed")},
    )

    resolved = async_to_sync(_orchestrator(provider).resolve_all)(_stops())

    assert resolved.unresolved_count == 1
    assert resolved.coordinates[3] is None


def test_stops_are_sorted_by_sequence() -> None:
    provider = FakeProvider({f"{city}, {state}": coordinate for city, state, coordinate in CITIES})
    shuffled = list(reversed(_stops()))

    resolved = async_to_sync(_orchestrator(provider).resolve_all)(shuffled)

    assert [stop.city for stop in resolved.ordered_stops] == [city for city, _, _ in CITIES]


def test_optimized_ordering_replaces_sequence_order() -> None:
    provider = FakeProvider({f"{city}, {state}": coordinate for city, state, coordinate in CITIES})
    stops = _stops()
    optimized = [stops[0], stops[3], stops[1], stops[4], stops[2]]

    resolved = async_to_sync(_orchestrator(provider).resolve_all)(stops, optimized)

    assert list(resolved.ordered_stops) == optimized
    assert resolved.coordinates[1] == CITIES[3][2]

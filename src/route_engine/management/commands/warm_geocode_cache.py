from __future__ import annotations

from pathlib import Path
from typing import Any

import polars as pl
from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand, CommandError

from route_engine.models import GeocodeCacheEntry
from route_engine.services.cache_store import DatabaseGeocodeCacheStore
from route_engine.services.orchestration import ConcurrentResolutionOrchestrator
from route_engine.services.resolver import TieredGeocodeResolver
from route_engine.services.types import ResolvedStops, Stop

REQUIRED_COLUMNS = ("city", "state")
OPTIONAL_COLUMNS = ("address", "postal_code")


class Command(BaseCommand):
    help = "Pre-populate the database geocode cache from a CSV of city/state locations."

    def add_arguments(self, parser: Any) -> None:
        parser.add_argument("--csv-path", type=str, required=True, help="Path to the locations CSV")
        parser.add_argument(
            "--limit", type=int, default=500, help="Max uncached locations to resolve in one run"
        )

    def handle(self, *_: Any, **options: Any) -> None:
        csv_path = Path(options["csv_path"])
        if not csv_path.exists():
            raise CommandError(f"CSV file does not exist: {csv_path}")

        limit = max(1, options["limit"])
        records = self._load_and_transform(csv_path).to_dicts()

        cached_keys = set(
            GeocodeCacheEntry.objects.filter(
                location_key__in=[row["location_key"] for row in records]
            ).values_list("location_key", flat=True)
        )
        pending = [row for row in records if row["location_key"] not in cached_keys][:limit]
        if not pending:
            self.stdout.write(self.style.WARNING("No uncached locations to geocode"))
            return

        stops = [
            Stop(
                kind="pickup",
                sequence=index,
                address=row["address"],
                city=row["city"],
                state=row["state"],
                postal_code=row["postal_code"],
            )
            for index, row in enumerate(pending)
        ]

        resolved = self._resolve(stops)
        succeeded = len(stops) - resolved.unresolved_count
        self.stdout.write(
            self.style.SUCCESS(
                f"Geocode warm-up complete: {succeeded} resolved, "
                f"{resolved.unresolved_count} failed, {len(cached_keys)} already cached"
            )
        )

    def _resolve(self, stops: list[Stop]) -> ResolvedStops:
        orchestrator = self._build_orchestrator()
        return async_to_sync(orchestrator.resolve_all)(stops)

    def _build_orchestrator(self) -> ConcurrentResolutionOrchestrator:
        # Warm-up targets the durable table, so a key held only in the
        # framework cache is still written through to the database.
        resolver = TieredGeocodeResolver(cache_store=DatabaseGeocodeCacheStore())
        return ConcurrentResolutionOrchestrator(resolver)

    @staticmethod
    def _load_and_transform(csv_path: Path) -> pl.DataFrame:
        frame = pl.read_csv(csv_path, infer_schema_length=0)
        frame = frame.rename({column: column.strip().lower() for column in frame.columns})

        missing_columns = set(REQUIRED_COLUMNS).difference(frame.columns)
        if missing_columns:
            raise CommandError(f"Missing expected columns: {sorted(missing_columns)}")

        missing_optional = [column for column in OPTIONAL_COLUMNS if column not in frame.columns]
        if missing_optional:
            frame = frame.with_columns([pl.lit("").alias(column) for column in missing_optional])

        return (
            frame.select(
                [
                    pl.col(column)
                    .cast(pl.Utf8, strict=False)
                    .str.strip_chars()
                    .str.replace_all(r"\s+", " ")
                    .fill_null("")
                    .alias(column)
                    for column in (*REQUIRED_COLUMNS, *OPTIONAL_COLUMNS)
                ]
            )
            .filter((pl.col("city").str.len_chars() > 0) & (pl.col("state").str.len_chars() > 0))
            .with_columns(
                pl.concat_str(
                    [pl.col("city").str.to_lowercase(), pl.col("state").str.to_lowercase()],
                    separator=", ",
                ).alias("location_key")
            )
            .unique(subset=["location_key"], keep="first", maintain_order=True)
        )

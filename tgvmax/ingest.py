"""Load-cycle orchestrator for the TGV Max map.

Sequences the station and connection datasets through fetch (or cache),
transform, index, resolve and aggregate stages into a LoadContext. Stations
are mandatory: failing to load them fails the cycle. Connections are
optional: any failure loading them degrades the cycle to a station-only map.

A MapStore publishes the context of the last successful cycle. A new
context replaces the previous one only once its cycle has completed, so a
reader never observes a partially built state.

Usage:
    python -m tgvmax.ingest
    python -m tgvmax.ingest --date 2024-06-01 --output data/tgvmax_map.json
    python -m tgvmax.ingest --no-cache --origin "PARIS (intramuros)"
"""

from __future__ import annotations

import argparse
import datetime
import enum
import logging
import sys
import time
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import TYPE_CHECKING, Final

from tgvmax.aggregate import Aggregation, aggregate
from tgvmax.cache import LoadCache, cache_tag
from tgvmax.config import (
    CONNECTIONS_DATASET,
    STATIONS_DATASET,
    FetchSettings,
    connection_where_clause,
)
from tgvmax.download import DownloadError, build_client, fetch_all_records
from tgvmax.export import write_payload
from tgvmax.filters import ConnectionFilter, FilterStats, apply_filter
from tgvmax.station_index import StationIndex
from tgvmax.station_mapping import ResolutionReport, resolve_connections
from tgvmax.transform import transform_connections, transform_stations

if TYPE_CHECKING:
    import httpx

    from tgvmax.models import Connection, Station

logger: Final[logging.Logger] = logging.getLogger(__name__)

_DEFAULT_OUTPUT: Final[Path] = Path("data/tgvmax_map.json")
_DEFAULT_CACHE_DIR: Final[Path] = Path("data/cache")


# ---- Exceptions -------------------------------------------------------------


class LoadError(Exception):
    """Raised when a load cycle cannot produce a usable map.

    Attributes:
        dataset: Dataset whose failure aborted the cycle, if applicable.
    """

    def __init__(self, message: str, *, dataset: str = "") -> None:
        self.dataset: Final[str] = dataset
        super().__init__(message)


# ---- Enums ------------------------------------------------------------------


class DatasetStatus(enum.Enum):
    """Outcome status for a single dataset in the cycle."""

    SUCCESS = "SUCCESS"
    CACHED = "CACHED"
    FAILED = "FAILED"


class CycleStatus(enum.Enum):
    """Overall outcome of a load cycle."""

    SUCCESS = "SUCCESS"
    DEGRADED = "DEGRADED"
    FAILED = "FAILED"


# ---- Result dataclasses -----------------------------------------------------


@dataclass(frozen=True, slots=True)
class DatasetResult:
    """Outcome of loading a single dataset.

    Attributes:
        dataset_name: Machine-readable dataset identifier.
        status: Final outcome status.
        raw_count: Raw records fetched or read from cache.
        dropped: Records rejected as malformed during transform.
        elapsed_seconds: Wall-clock time for the dataset.
        error_message: Description of failure, if any.
    """

    dataset_name: str
    status: DatasetStatus
    raw_count: int
    dropped: int
    elapsed_seconds: float
    error_message: str = ""


@dataclass(frozen=True, slots=True)
class LoadContext:
    """Everything the rendering consumer needs from one completed cycle.

    Attributes:
        tag: Cache-date tag of the cycle.
        index: Station index (stations in registration order).
        connections: All valid connections, unfiltered.
        report: Resolution of the connections under ``active_filter``.
        aggregation: Pairs and station counts under ``active_filter``.
        active_filter: Filter the report and aggregation reflect.
        from_cache: Whether raw records came from the cache.
    """

    tag: str
    index: StationIndex
    connections: tuple[Connection, ...]
    report: ResolutionReport
    aggregation: Aggregation
    active_filter: ConnectionFilter = field(default_factory=ConnectionFilter)
    from_cache: bool = False

    @property
    def stations(self) -> tuple[Station, ...]:
        return self.index.stations

    @property
    def stats(self) -> FilterStats:
        return FilterStats(
            total_connections=len(self.connections),
            filtered_connections=self.report.total,
            active_stations=len(self.aggregation.active_station_keys),
            station_count=len(self.index),
        )

    def with_filter(self, flt: ConnectionFilter) -> LoadContext:
        """Derive a context whose aggregates cover only matching connections.

        The station index and the unfiltered connection list are shared.
        """
        selected = apply_filter(self.connections, flt)
        report = resolve_connections(selected, self.index)
        return replace(
            self,
            report=report,
            aggregation=aggregate(report.resolved),
            active_filter=flt,
        )


def build_context(
    tag: str,
    stations: list[Station],
    connections: list[Connection],
    *,
    from_cache: bool = False,
) -> LoadContext:
    """Index stations, resolve connections and aggregate them."""
    index = StationIndex.build(stations)
    report = resolve_connections(connections, index)
    return LoadContext(
        tag=tag,
        index=index,
        connections=tuple(connections),
        report=report,
        aggregation=aggregate(report.resolved),
        from_cache=from_cache,
    )


@dataclass(frozen=True, slots=True)
class LoadResult:
    """Summary of a load cycle, as surfaced to the user.

    Attributes:
        status: Overall cycle outcome.
        datasets: Per-dataset results, stations first.
        context: Built context, None when the cycle failed.
        elapsed_seconds: Wall-clock time for the full cycle.
        message: Human-readable outcome or error message.
    """

    status: CycleStatus
    datasets: list[DatasetResult] = field(default_factory=list)
    context: LoadContext | None = None
    elapsed_seconds: float = 0.0
    message: str = ""

    @property
    def station_count(self) -> int:
        return len(self.context.index) if self.context else 0

    @property
    def connection_count(self) -> int:
        return len(self.context.connections) if self.context else 0

    @property
    def resolved_count(self) -> int:
        return len(self.context.report.resolved) if self.context else 0


# ---- Stage executors --------------------------------------------------------


def _fetch_raw(
    client: httpx.Client,
    today: datetime.date,
    settings: FetchSettings,
) -> tuple[list[dict[str, object]], list[dict[str, object]], str]:
    """Fetch both datasets, stations first.

    Returns:
        (raw stations, raw connections, connection error message).

    Raises:
        DownloadError: If the station dataset's first page fails.
    """
    logger.info("Stage: FETCH %s", STATIONS_DATASET.name)
    raw_stations = fetch_all_records(client, STATIONS_DATASET, settings)

    logger.info("Stage: FETCH %s", CONNECTIONS_DATASET.name)
    try:
        raw_connections = fetch_all_records(
            client,
            CONNECTIONS_DATASET,
            settings,
            where=connection_where_clause(today),
        )
    except DownloadError as exc:
        logger.warning("Connections unavailable, continuing without them: %s", exc)
        return raw_stations, [], str(exc)
    return raw_stations, raw_connections, ""


def run_load_cycle(
    today: datetime.date | None = None,
    *,
    settings: FetchSettings | None = None,
    cache: LoadCache | None = None,
    client: httpx.Client | None = None,
) -> LoadResult:
    """Execute one full load cycle.

    Reads both datasets from the cache when it holds an entry for today's
    tag; otherwise fetches them, stations first, and caches the raw records
    after a complete cold load.

    Args:
        today: Cycle date; drives the cache tag and connection window.
        settings: Fetch settings; defaults to FetchSettings.from_env().
        cache: Optional persistent cache.
        client: Optional preconfigured client; one is built and closed
            otherwise.

    Returns:
        LoadResult. Failures are reported through its status, not raised.
    """
    cycle_start = time.monotonic()
    today = today or datetime.date.today()
    settings = settings or FetchSettings.from_env()
    tag = cache_tag(today)

    cached = cache.load(tag) if cache is not None else None
    connection_error = ""
    fetch_elapsed = 0.0

    if cached is not None:
        raw_stations, raw_connections = cached.stations, cached.connections
        source_status = DatasetStatus.CACHED
    else:
        source_status = DatasetStatus.SUCCESS
        fetch_start = time.monotonic()
        owned = client is None
        http = client or build_client(settings)
        try:
            raw_stations, raw_connections, connection_error = _fetch_raw(
                http, today, settings
            )
        except DownloadError as exc:
            logger.error("FAILED [%s] fetch: %s", STATIONS_DATASET.name, exc)
            return LoadResult(
                status=CycleStatus.FAILED,
                datasets=[
                    DatasetResult(
                        dataset_name=STATIONS_DATASET.name,
                        status=DatasetStatus.FAILED,
                        raw_count=0,
                        dropped=0,
                        elapsed_seconds=round(time.monotonic() - fetch_start, 3),
                        error_message=str(exc),
                    )
                ],
                elapsed_seconds=round(time.monotonic() - cycle_start, 3),
                message=f"Could not load stations: {exc}",
            )
        finally:
            if owned:
                http.close()
        fetch_elapsed = round(time.monotonic() - fetch_start, 3)

    stations = transform_stations(raw_stations)
    connections = transform_connections(raw_connections)

    station_result = DatasetResult(
        dataset_name=STATIONS_DATASET.name,
        status=source_status,
        raw_count=len(raw_stations),
        dropped=stations.dropped,
        elapsed_seconds=fetch_elapsed,
    )
    connection_result = DatasetResult(
        dataset_name=CONNECTIONS_DATASET.name,
        status=DatasetStatus.FAILED if connection_error else source_status,
        raw_count=len(raw_connections),
        dropped=connections.dropped,
        elapsed_seconds=fetch_elapsed,
        error_message=connection_error,
    )

    if not stations.records:
        error = LoadError("No usable station found", dataset=STATIONS_DATASET.name)
        logger.error("FAILED [%s] transform: %s", error.dataset, error)
        return LoadResult(
            status=CycleStatus.FAILED,
            datasets=[replace(station_result, status=DatasetStatus.FAILED)],
            elapsed_seconds=round(time.monotonic() - cycle_start, 3),
            message=str(error),
        )

    context = build_context(
        tag,
        stations.records,
        connections.records,
        from_cache=cached is not None,
    )

    if cache is not None and cached is None and not connection_error:
        try:
            cache.save(tag, raw_stations, raw_connections)
            cache.prune(tag)
        except OSError as exc:
            logger.warning("Could not write cache for %s: %s", tag, exc)

    status = CycleStatus.DEGRADED if connection_error else CycleStatus.SUCCESS
    message = (
        f"Loaded {len(context.index)} stations and "
        f"{len(context.connections)} TGV Max connections"
    )
    if connection_error:
        message += " (connections unavailable)"
    logger.info("%s [%s] %s", status.value, tag, message)

    return LoadResult(
        status=status,
        datasets=[station_result, connection_result],
        context=context,
        elapsed_seconds=round(time.monotonic() - cycle_start, 3),
        message=message,
    )


class MapStore:
    """Holds the context of the last successful load cycle.

    ``reload`` runs a new cycle and swaps its context in only once the
    cycle has completed; a failed cycle leaves the previous context in
    place.
    """

    def __init__(self) -> None:
        self._current: LoadContext | None = None

    @property
    def current(self) -> LoadContext | None:
        return self._current

    def reload(
        self,
        today: datetime.date | None = None,
        *,
        settings: FetchSettings | None = None,
        cache: LoadCache | None = None,
        client: httpx.Client | None = None,
    ) -> LoadResult:
        result = run_load_cycle(today, settings=settings, cache=cache, client=client)
        if result.context is not None:
            self._current = result.context
        return result


# ---- CLI ---------------------------------------------------------------------


def _parse_date(value: str) -> datetime.date:
    try:
        return datetime.date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid date '{value}'") from exc


def _build_arg_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the load-cycle CLI."""
    parser = argparse.ArgumentParser(
        description="Build the TGV Max map data from SNCF open data.",
    )
    parser.add_argument(
        "--date",
        type=_parse_date,
        default=None,
        help="Cycle date (YYYY-MM-DD); defaults to today.",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=_DEFAULT_OUTPUT,
        help=f"Map payload path (default: {_DEFAULT_OUTPUT}).",
    )
    parser.add_argument(
        "--cache-dir",
        type=Path,
        default=_DEFAULT_CACHE_DIR,
        help=f"Raw record cache directory (default: {_DEFAULT_CACHE_DIR}).",
    )
    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Always fetch from the API and do not write the cache.",
    )
    parser.add_argument("--origin", default="", help="Keep only this origin.")
    parser.add_argument(
        "--destination", default="", help="Keep only this destination."
    )
    parser.add_argument(
        "--on-date",
        default="",
        help="Keep only connections on this date (YYYY-MM-DD).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug-level logging.",
    )
    return parser


def _print_summary(result: LoadResult) -> None:
    """Print structured execution summary to stdout."""
    header = f"{'Dataset':<14} {'Status':<10} {'Raw':<8} {'Dropped':<9} {'Time (s)'}"
    print(f"\n{'=' * 60}")
    print("TGV Max Load Summary")
    print(f"{'=' * 60}")
    print(header)
    print("-" * 60)

    for ds in result.datasets:
        print(
            f"{ds.dataset_name:<14} "
            f"{ds.status.value:<10} "
            f"{ds.raw_count:<8} "
            f"{ds.dropped:<9} "
            f"{ds.elapsed_seconds:.1f}"
        )

    print("-" * 60)
    if result.context is not None:
        stats = result.context.stats
        print(
            f"Stations: {stats.station_count}  "
            f"Active: {stats.active_stations}  "
            f"Connections: {stats.filtered_connections}/{stats.total_connections}  "
            f"Resolved: {len(result.context.report.resolved)}  "
            f"Pairs: {len(result.context.aggregation.pairs)}"
        )
    print(f"Result: {result.status.value}  {result.message}")
    print(f"{'=' * 60}\n")


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for the load cycle.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code: 0 on success or degraded load, 1 on failure.
    """
    parser = _build_arg_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        stream=sys.stderr,
    )

    cache = None if args.no_cache else LoadCache(args.cache_dir)
    result = run_load_cycle(args.date, cache=cache)

    if result.context is not None:
        flt = ConnectionFilter(
            origin=args.origin,
            destination=args.destination,
            date=args.on_date,
        )
        context = result.context if flt.is_empty else result.context.with_filter(flt)
        result = replace(result, context=context)
        write_payload(context, args.output)

    _print_summary(result)
    return 1 if result.status is CycleStatus.FAILED else 0


if __name__ == "__main__":
    sys.exit(main())

"""Serialize a completed load context into the map payload.

The payload is the handoff to the rendering consumer: stations with their
connection counts, connection pairs with their line weight and a preview of
their trips, and summary statistics.
"""

from __future__ import annotations

import json
import logging
import os
from typing import TYPE_CHECKING, Any, Final

from tgvmax.filters import filter_options

if TYPE_CHECKING:
    from pathlib import Path

    from tgvmax.aggregate import ConnectionPair
    from tgvmax.ingest import LoadContext
    from tgvmax.models import ResolvedConnection, Station

logger: Final[logging.Logger] = logging.getLogger(__name__)

# Trips listed per pair; the full count is always reported
_TRIP_PREVIEW: Final[int] = 4


def _station_payload(station: Station, count: int) -> dict[str, Any]:
    return {
        "key": station.key,
        "name": station.name,
        "short_name": station.short_name,
        "lat": station.lat,
        "lon": station.lon,
        "uic_code": station.uic_code,
        "segment": station.segment.value if station.segment else None,
        "connection_count": count,
    }


def _station_count(context: LoadContext, station: Station) -> int:
    """Connections touching a station, 0 for one shadowed by an earlier key."""
    if context.index.lookup(station.key) is not station:
        return 0
    return context.aggregation.counts.get(station.key, 0)


def _trip_payload(item: ResolvedConnection) -> dict[str, Any]:
    connection = item.connection
    return {
        "train_number": connection.train_number,
        "date": connection.date.isoformat(),
        "departure_time": connection.departure_time,
        "arrival_time": connection.arrival_time,
        "origin": item.origin.key,
        "exact_match": item.is_exact,
    }


def _pair_payload(pair: ConnectionPair) -> dict[str, Any]:
    return {
        "key": pair.key,
        "from": pair.station_a.key,
        "to": pair.station_b.key,
        "path": [
            [pair.station_a.lat, pair.station_a.lon],
            [pair.station_b.lat, pair.station_b.lon],
        ],
        "connection_count": pair.connection_count,
        "weight": pair.weight,
        "trips": [_trip_payload(c) for c in pair.connections[:_TRIP_PREVIEW]],
    }


def build_payload(context: LoadContext) -> dict[str, Any]:
    """Build the JSON-serializable map payload for a context."""
    stats = context.stats
    flt = context.active_filter
    options = filter_options(context.connections)
    return {
        "tag": context.tag,
        "from_cache": context.from_cache,
        "filter": {
            "origin": flt.origin,
            "destination": flt.destination,
            "date": flt.date,
        },
        "options": {
            "origins": list(options.origins),
            "destinations": list(options.destinations),
        },
        "stations": [
            _station_payload(s, _station_count(context, s)) for s in context.stations
        ],
        "pairs": [_pair_payload(p) for p in context.aggregation.pairs],
        "stats": {
            "station_count": stats.station_count,
            "active_stations": stats.active_stations,
            "total_connections": stats.total_connections,
            "filtered_connections": stats.filtered_connections,
            "resolved_connections": len(context.report.resolved),
            "unresolved_connections": context.report.unresolved_count,
            "partial_matches": context.report.partial_count,
            "filter_rate": round(stats.filter_rate, 1),
        },
    }


def write_payload(context: LoadContext, path: Path) -> Path:
    """Write the map payload as UTF-8 JSON via atomic replace.

    Returns:
        Path of the written file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(".tmp")
    tmp_path.write_text(
        json.dumps(build_payload(context), ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    os.replace(str(tmp_path), str(path))
    logger.info("Wrote map payload to %s", path)
    return path

"""Resolve TGV Max connection endpoints against the station index.

Applies matching rules per endpoint in priority order:
1. UIC code carried by the connection record (authoritative)
2. Exact normalized-name match
3. First-token partial-name match (lower confidence, flagged PARTIAL)

A connection resolves only when both endpoints resolve. Unresolved
connections are excluded from aggregation but counted in the report.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from tgvmax.models import Connection, MatchMethod, ResolvedConnection, Station

if TYPE_CHECKING:
    from collections.abc import Iterable

    from tgvmax.station_index import StationIndex

logger: Final[logging.Logger] = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ResolutionReport:
    """Outcome of resolving a batch of connections.

    Attributes:
        resolved: Connections with both endpoints matched, in input order.
        unresolved_count: Connections excluded because an endpoint failed.
        partial_count: Resolved connections relying on a partial-name match.
        unresolved_names: Occurrences of each endpoint name that failed.
    """

    resolved: list[ResolvedConnection] = field(default_factory=list)
    unresolved_count: int = 0
    partial_count: int = 0
    unresolved_names: Counter[str] = field(default_factory=Counter)

    @property
    def total(self) -> int:
        """Number of connections examined."""
        return len(self.resolved) + self.unresolved_count


def _resolve_endpoint(
    name: str,
    uic_code: str | None,
    index: StationIndex,
) -> tuple[Station | None, MatchMethod | None]:
    if uic_code:
        return index.lookup(uic_code), MatchMethod.UIC
    return index.resolve_by_name_with_method(name)


def resolve_connection(
    connection: Connection,
    index: StationIndex,
) -> ResolvedConnection | None:
    """Match both endpoints of a connection to indexed stations.

    Args:
        connection: Connection record to resolve.
        index: Station index snapshot for the current load cycle.

    Returns:
        ResolvedConnection, or None if either endpoint fails to resolve.
    """
    origin, origin_match = _resolve_endpoint(
        connection.origin_name, connection.origin_uic, index
    )
    if origin is None or origin_match is None:
        return None
    destination, destination_match = _resolve_endpoint(
        connection.destination_name, connection.destination_uic, index
    )
    if destination is None or destination_match is None:
        return None
    return ResolvedConnection(
        connection=connection,
        origin=origin,
        destination=destination,
        origin_match=origin_match,
        destination_match=destination_match,
    )


def resolve_connections(
    connections: Iterable[Connection],
    index: StationIndex,
) -> ResolutionReport:
    """Resolve a batch of connections and collect coverage statistics.

    Args:
        connections: Connections in source order.
        index: Station index snapshot for the current load cycle.

    Returns:
        ResolutionReport with resolved connections and failure counts.
    """
    resolved: list[ResolvedConnection] = []
    unresolved_names: Counter[str] = Counter()
    unresolved = 0
    partial = 0

    for connection in connections:
        result = resolve_connection(connection, index)
        if result is None:
            unresolved += 1
            for name, uic in (
                (connection.origin_name, connection.origin_uic),
                (connection.destination_name, connection.destination_uic),
            ):
                station, _ = _resolve_endpoint(name, uic, index)
                if station is None:
                    unresolved_names[name] += 1
            continue
        if not result.is_exact:
            partial += 1
        resolved.append(result)

    total = len(resolved) + unresolved
    coverage = len(resolved) / total * 100 if total else 0.0
    logger.info(
        "Resolved %d/%d connections (%.1f%% coverage, %d partial matches)",
        len(resolved),
        total,
        coverage,
        partial,
    )
    if unresolved_names:
        logger.debug(
            "Most frequent unresolved names: %s",
            unresolved_names.most_common(5),
        )

    return ResolutionReport(
        resolved=resolved,
        unresolved_count=unresolved,
        partial_count=partial,
        unresolved_names=unresolved_names,
    )

"""Group resolved connections into undirected station pairs.

Each pair collects every connection between the same two stations,
regardless of which one the record lists as origin, and carries a line
weight that grows with the connection count and saturates at
MAX_PAIR_WEIGHT. Per-station counts record how many connections touch each
station, origin or destination.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

if TYPE_CHECKING:
    from collections.abc import Iterable

    from tgvmax.models import ResolvedConnection, Station

_BASE_PAIR_WEIGHT: Final[int] = 2
MAX_PAIR_WEIGHT: Final[int] = 8
_PAIR_KEY_SEPARATOR: Final[str] = "|"


def pair_weight(connection_count: int) -> int:
    """Line weight for a pair: count + 2, capped at MAX_PAIR_WEIGHT."""
    return min(max(connection_count, 0) + _BASE_PAIR_WEIGHT, MAX_PAIR_WEIGHT)


def pair_key(first: Station, second: Station) -> str:
    """Direction-independent key for the pair of two stations."""
    return _PAIR_KEY_SEPARATOR.join(sorted((first.key, second.key)))


@dataclass(slots=True)
class ConnectionPair:
    """All resolved connections between two stations.

    Attributes:
        key: Sorted station identifiers joined by ``|``.
        station_a: Origin of the first connection recorded for the pair.
        station_b: Destination of the first connection recorded for the pair.
        connections: Resolved connections in input order.
    """

    key: str
    station_a: Station
    station_b: Station
    connections: list[ResolvedConnection] = field(default_factory=list)

    @property
    def connection_count(self) -> int:
        return len(self.connections)

    @property
    def weight(self) -> int:
        return pair_weight(len(self.connections))


@dataclass(frozen=True, slots=True)
class Aggregation:
    """Pairs and per-station counts derived from one connection set.

    Attributes:
        pairs: Connection pairs in order of first appearance.
        counts: Station identifier to number of touching connections.
    """

    pairs: list[ConnectionPair] = field(default_factory=list)
    counts: dict[str, int] = field(default_factory=dict)

    @property
    def connection_count(self) -> int:
        """Total resolved connections across all pairs."""
        return sum(p.connection_count for p in self.pairs)

    @property
    def active_station_keys(self) -> frozenset[str]:
        """Identifiers of stations touched by at least one connection."""
        return frozenset(k for k, v in self.counts.items() if v > 0)

    def pair_for(self, key: str) -> ConnectionPair | None:
        for pair in self.pairs:
            if pair.key == key:
                return pair
        return None


def aggregate(resolved: Iterable[ResolvedConnection]) -> Aggregation:
    """Collapse resolved connections into pairs and station counts.

    Args:
        resolved: Resolved connections in input order.

    Returns:
        Aggregation with one pair per distinct unordered station pair.
    """
    pairs: dict[str, ConnectionPair] = {}
    counts: dict[str, int] = {}

    for item in resolved:
        key = pair_key(item.origin, item.destination)
        pair = pairs.get(key)
        if pair is None:
            pair = ConnectionPair(
                key=key,
                station_a=item.origin,
                station_b=item.destination,
            )
            pairs[key] = pair
        pair.connections.append(item)

        for station in (item.origin, item.destination):
            counts[station.key] = counts.get(station.key, 0) + 1

    return Aggregation(pairs=list(pairs.values()), counts=counts)

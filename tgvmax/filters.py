"""Origin, destination and date filters over TGV Max connections.

Filters match the raw upstream names and the ISO travel date exactly; an
empty field matches everything. Filtering happens before resolution so
that a filtered view re-aggregates only the matching connections.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from tgvmax.models import Connection


@dataclass(frozen=True, slots=True)
class ConnectionFilter:
    """User-selected connection filter.

    Attributes:
        origin: Exact origin name, or empty for any.
        destination: Exact destination name, or empty for any.
        date: ISO date (YYYY-MM-DD), or empty for any.
    """

    origin: str = ""
    destination: str = ""
    date: str = ""

    @property
    def is_empty(self) -> bool:
        return not (self.origin or self.destination or self.date)

    def matches(self, connection: Connection) -> bool:
        if self.origin and connection.origin_name != self.origin:
            return False
        if self.destination and connection.destination_name != self.destination:
            return False
        return not (self.date and connection.date.isoformat() != self.date)


@dataclass(frozen=True, slots=True)
class FilterOptions:
    """Sorted unique values offered for the origin and destination filters."""

    origins: tuple[str, ...]
    destinations: tuple[str, ...]


@dataclass(frozen=True, slots=True)
class FilterStats:
    """Connection and station coverage for the current filter.

    Attributes:
        total_connections: Connections before filtering.
        filtered_connections: Connections matching the filter.
        active_stations: Stations touched by a filtered, resolved connection.
        station_count: Stations in the index.
    """

    total_connections: int
    filtered_connections: int
    active_stations: int
    station_count: int

    @property
    def filter_rate(self) -> float:
        """Percentage of connections kept by the filter."""
        if self.total_connections == 0:
            return 0.0
        return self.filtered_connections / self.total_connections * 100


def apply_filter(
    connections: Iterable[Connection],
    flt: ConnectionFilter,
) -> list[Connection]:
    """Return the connections matching a filter, order preserved."""
    if flt.is_empty:
        return list(connections)
    return [c for c in connections if flt.matches(c)]


def filter_options(connections: Iterable[Connection]) -> FilterOptions:
    """Collect the distinct origins and destinations, sorted."""
    origins: set[str] = set()
    destinations: set[str] = set()
    for connection in connections:
        origins.add(connection.origin_name)
        destinations.add(connection.destination_name)
    return FilterOptions(
        origins=tuple(sorted(origins)),
        destinations=tuple(sorted(destinations)),
    )

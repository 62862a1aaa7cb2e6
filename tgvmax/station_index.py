"""Lookup structures over the station dataset.

Stations are registered under their UIC code(s) and under their normalized
name. Registration is first-write-wins: a later station whose normalized
name collides with an earlier one stays reachable only through its own UIC
code. Name keys keep insertion order so that the partial-name fallback is
deterministic.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Final

from tgvmax.models import MatchMethod, Station
from tgvmax.normalize import first_token, normalize_station_name

if TYPE_CHECKING:
    from collections.abc import Iterable

logger: Final[logging.Logger] = logging.getLogger(__name__)


class StationIndex:
    """Read-only index of stations by UIC code and normalized name.

    Build instances with :meth:`build`; the index is never mutated after
    construction.
    """

    __slots__ = ("_by_code", "_by_name", "_stations")

    def __init__(
        self,
        by_code: dict[str, Station],
        by_name: dict[str, Station],
        stations: tuple[Station, ...],
    ) -> None:
        self._by_code = by_code
        self._by_name = by_name
        self._stations = stations

    @classmethod
    def build(cls, stations: Iterable[Station]) -> StationIndex:
        """Index stations by UIC code and normalized name.

        Args:
            stations: Stations in source order.

        Returns:
            A new StationIndex.
        """
        by_code: dict[str, Station] = {}
        by_name: dict[str, Station] = {}
        registered: list[Station] = []
        collisions = 0

        for station in stations:
            codes = [c for c in (station.uic_code, *station.alt_uic_codes) if c]
            for code in codes:
                if code not in by_code:
                    by_code[code] = station

            name_key = normalize_station_name(station.name)
            if name_key and name_key not in by_name:
                by_name[name_key] = station
            elif name_key:
                collisions += 1
            registered.append(station)

        if collisions:
            logger.debug("%d stations shadowed by an earlier normalized name", collisions)
        logger.info(
            "Indexed %d stations (%d UIC keys, %d name keys)",
            len(registered),
            len(by_code),
            len(by_name),
        )
        return cls(by_code, by_name, tuple(registered))

    @property
    def stations(self) -> tuple[Station, ...]:
        """All indexed stations in registration order."""
        return self._stations

    def __len__(self) -> int:
        return len(self._stations)

    def __contains__(self, key: object) -> bool:
        return key in self._by_code or key in self._by_name

    def lookup(self, key: str) -> Station | None:
        """Return the station registered under an exact key, if any.

        UIC keys are consulted before normalized-name keys.
        """
        station = self._by_code.get(key)
        if station is not None:
            return station
        return self._by_name.get(key)

    def resolve_by_name_with_method(
        self,
        name: str | None,
    ) -> tuple[Station | None, MatchMethod | None]:
        """Resolve a free-text name and report how it matched.

        Tries the exact normalized key first. On a miss, scans name keys in
        insertion order and returns the first whose first token contains,
        or is contained in, the search key's first token.

        Args:
            name: Free-text station name from a connection record.

        Returns:
            (station, method) on a match, (None, None) otherwise.
        """
        search = normalize_station_name(name)
        if not search:
            return None, None

        station = self._by_name.get(search)
        if station is not None:
            return station, MatchMethod.NAME

        token = first_token(search)
        for key, candidate in self._by_name.items():
            key_token = first_token(key)
            if token in key_token or key_token in token:
                return candidate, MatchMethod.PARTIAL
        return None, None

    def resolve_by_name(self, name: str | None) -> Station | None:
        """Resolve a free-text name to a station, exact key first."""
        station, _ = self.resolve_by_name_with_method(name)
        return station

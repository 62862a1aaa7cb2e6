"""Domain records for the TGV Max map data engine.

Stations and connections are immutable value records built once per load
cycle. Resolved connections pair a connection with the two stations its
endpoints matched, together with how each endpoint was matched so that
consumers can tell authoritative UIC matches from name-based fallbacks.
"""

from __future__ import annotations

import datetime
import enum
from dataclasses import dataclass

from tgvmax.normalize import normalize_station_name


class Segment(enum.Enum):
    """SNCF station classification (DRG segment)."""

    A = "A"
    B = "B"
    C = "C"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, raw: object) -> Segment | None:
        """Map a raw segment value to an enum member, None when absent."""
        if raw is None:
            return None
        value = str(raw).strip().upper()
        if not value:
            return None
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


class MatchMethod(enum.Enum):
    """How a connection endpoint was matched to a station."""

    UIC = "UIC"
    NAME = "NAME"
    PARTIAL = "PARTIAL"


@dataclass(frozen=True, slots=True)
class Station:
    """A passenger station with coordinates and identifying codes.

    Attributes:
        name: Display name as published upstream.
        short_name: Short label (libellecourt), if any.
        lat: Latitude in decimal degrees.
        lon: Longitude in decimal degrees.
        uic_code: Primary UIC code, if any.
        insee_code: Commune INSEE code, if any.
        segment: DRG classification segment, if any.
        alt_uic_codes: Further UIC codes listed for the same station.
    """

    name: str
    lat: float
    lon: float
    short_name: str | None = None
    uic_code: str | None = None
    insee_code: str | None = None
    segment: Segment | None = None
    alt_uic_codes: tuple[str, ...] = ()

    @property
    def key(self) -> str:
        """Stable identifier: UIC code when present, else normalized name."""
        if self.uic_code:
            return self.uic_code
        return normalize_station_name(self.name)


@dataclass(frozen=True, slots=True)
class Connection:
    """A TGV Max eligible trip between two named stations on a date."""

    origin_name: str
    destination_name: str
    date: datetime.date
    origin_code: str | None = None
    destination_code: str | None = None
    origin_uic: str | None = None
    destination_uic: str | None = None
    departure_time: str | None = None
    arrival_time: str | None = None
    train_number: str | None = None


@dataclass(frozen=True, slots=True)
class ResolvedConnection:
    """A connection whose origin and destination both matched a station."""

    connection: Connection
    origin: Station
    destination: Station
    origin_match: MatchMethod
    destination_match: MatchMethod

    @property
    def is_exact(self) -> bool:
        """True when neither endpoint relied on the partial-name fallback."""
        return (
            self.origin_match is not MatchMethod.PARTIAL
            and self.destination_match is not MatchMethod.PARTIAL
        )

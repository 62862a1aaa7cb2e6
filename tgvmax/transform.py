"""Transform raw Explore API records into station and connection models.

Malformed records are dropped here and only reflected in the drop count:
stations without a finite position, connections without both endpoint
names or without a parseable date.
"""

from __future__ import annotations

import datetime
import logging
import math
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final, Generic, TypeVar

from tgvmax.contracts import CONNECTION_CONTRACT, STATION_CONTRACT
from tgvmax.models import Connection, Segment, Station

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

logger: Final[logging.Logger] = logging.getLogger(__name__)

_UIC_SEPARATORS: Final[re.Pattern[str]] = re.compile(r"[;,\s]+")

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class TransformResult(Generic[T]):
    """Outcome of transforming one dataset's raw records.

    Attributes:
        records: Successfully parsed models, in source order.
        dropped: Number of raw records rejected as malformed.
    """

    records: list[T] = field(default_factory=list)
    dropped: int = 0

    @property
    def total(self) -> int:
        return len(self.records) + self.dropped


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _coordinate(value: object, limit: float) -> float | None:
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or abs(number) > limit:
        return None
    return number


def _split_uic_codes(raw: object) -> tuple[str, ...]:
    """Split a codes_uic value into individual codes, order preserved."""
    if raw is None:
        return ()
    values = raw if isinstance(raw, list) else [raw]
    codes: list[str] = []
    for value in values:
        for code in _UIC_SEPARATORS.split(str(value)):
            if code and code not in codes:
                codes.append(code)
    return tuple(codes)


def _parse_date(raw: object) -> datetime.date | None:
    text = _optional_str(raw)
    if text is None:
        return None
    try:
        return datetime.date.fromisoformat(text[:10])
    except ValueError:
        return None


def parse_station(record: dict[str, object]) -> Station | None:
    """Build a Station from a gares-de-voyageurs record.

    Returns:
        Station, or None when the name or a finite position is missing.
    """
    if STATION_CONTRACT.missing_fields(record):
        return None
    position = record["position_geographique"]
    if not isinstance(position, dict):
        return None
    lat = _coordinate(position.get("lat"), 90.0)
    lon = _coordinate(position.get("lon"), 180.0)
    if lat is None or lon is None:
        return None

    codes = _split_uic_codes(record.get("codes_uic"))
    return Station(
        name=str(record["nom"]).strip(),
        lat=lat,
        lon=lon,
        short_name=_optional_str(record.get("libellecourt")),
        uic_code=codes[0] if codes else None,
        insee_code=_optional_str(record.get("codeinsee")),
        segment=Segment.parse(record.get("segment_drg")),
        alt_uic_codes=codes[1:],
    )


def parse_connection(record: dict[str, object]) -> Connection | None:
    """Build a Connection from a tgvmax record.

    Returns:
        Connection, or None when an endpoint name or the date is unusable.
    """
    if CONNECTION_CONTRACT.missing_fields(record):
        return None
    date = _parse_date(record["date"])
    if date is None:
        return None
    return Connection(
        origin_name=str(record["origine"]).strip(),
        destination_name=str(record["destination"]).strip(),
        date=date,
        origin_code=_optional_str(record.get("origine_iata")),
        destination_code=_optional_str(record.get("destination_iata")),
        origin_uic=_optional_str(record.get("origine_uic")),
        destination_uic=_optional_str(record.get("destination_uic")),
        departure_time=_optional_str(record.get("heure_depart")),
        arrival_time=_optional_str(record.get("heure_arrivee")),
        train_number=_optional_str(record.get("train_no")),
    )


def _transform(
    records: Iterable[dict[str, object]],
    parser: Callable[[dict[str, object]], T | None],
    label: str,
) -> TransformResult[T]:
    parsed: list[T] = []
    dropped = 0
    for record in records:
        item = parser(record)
        if item is None:
            dropped += 1
            continue
        parsed.append(item)
    if dropped:
        logger.debug("Dropped %d malformed %s records", dropped, label)
    logger.info("Transformed %d %s records (%d dropped)", len(parsed), label, dropped)
    return TransformResult(records=parsed, dropped=dropped)


def transform_stations(records: Iterable[dict[str, object]]) -> TransformResult[Station]:
    """Parse raw station records, dropping those without a usable position."""
    return _transform(records, parse_station, "station")


def transform_connections(
    records: Iterable[dict[str, object]],
) -> TransformResult[Connection]:
    """Parse raw connection records, dropping those missing an endpoint."""
    return _transform(records, parse_connection, "connection")

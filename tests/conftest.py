"""Shared pytest fixtures for the TGV Max map tests.

Raw records mirror the Explore API v2.1 payloads of the gares-de-voyageurs
and tgvmax datasets. Model fixtures are built directly so that engine tests
do not depend on the transform layer.
"""

from __future__ import annotations

import datetime
from typing import TYPE_CHECKING, Any

import pytest

from tgvmax.config import FetchSettings
from tgvmax.models import Connection, Station

if TYPE_CHECKING:
    from collections.abc import Callable

API_BASE: str = "https://example.test/api/explore/v2.1"

# ---------------------------------------------------------------------------
# Raw records
# ---------------------------------------------------------------------------

STATION_RECORDS: list[dict[str, Any]] = [
    {
        "nom": "Paris Gare de Lyon",
        "libellecourt": "PLY",
        "position_geographique": {"lat": 48.844888, "lon": 2.373613},
        "codeinsee": "75112",
        "codes_uic": "87686006",
        "segment_drg": "A",
    },
    {
        "nom": "Lyon Part Dieu",
        "libellecourt": "LPD",
        "position_geographique": {"lat": 45.760585, "lon": 4.859435},
        "codeinsee": "69383",
        "codes_uic": "87723197",
        "segment_drg": "A",
    },
    {
        "nom": "Marseille Saint-Charles",
        "libellecourt": "MSC",
        "position_geographique": {"lat": 43.302666, "lon": 5.380407},
        "codeinsee": "13201",
        "codes_uic": "87751008",
        "segment_drg": "A",
    },
    {
        "nom": "Gare de Besançon Franche-Comté TGV",
        "libellecourt": "BFC",
        "position_geographique": {"lat": 47.307518, "lon": 5.954201},
        "codeinsee": "25056",
        "codes_uic": "87300822",
        "segment_drg": "B",
    },
]

CONNECTION_RECORDS: list[dict[str, Any]] = [
    {
        "origine": "PARIS (intramuros)",
        "destination": "LYON (gares intramuros)",
        "origine_iata": "FRPAR",
        "destination_iata": "FRLYS",
        "date": "2024-01-01",
        "heure_depart": "06:00",
        "heure_arrivee": "08:00",
        "train_no": "6601",
    },
    {
        "origine": "LYON (gares intramuros)",
        "destination": "PARIS (intramuros)",
        "origine_iata": "FRLYS",
        "destination_iata": "FRPAR",
        "date": "2024-01-02",
        "heure_depart": "18:00",
        "heure_arrivee": "20:00",
        "train_no": "6640",
    },
    {
        "origine": "MARSEILLE ST CHARLES",
        "destination": "LYON PART DIEU",
        "origine_iata": "FRMSC",
        "destination_iata": "FRLPD",
        "date": "2024-01-01",
        "heure_depart": "07:10",
        "heure_arrivee": "08:50",
        "train_no": "6104",
    },
]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def settings() -> FetchSettings:
    """Fetch settings pointing at the mocked API, without retry delay."""
    return FetchSettings(
        api_base_url=API_BASE,
        timeout=5.0,
        retries=3,
        retry_delay=0.0,
    )


@pytest.fixture()
def station_records() -> list[dict[str, Any]]:
    return [dict(r) for r in STATION_RECORDS]


@pytest.fixture()
def connection_records() -> list[dict[str, Any]]:
    return [dict(r) for r in CONNECTION_RECORDS]


@pytest.fixture()
def explore_page() -> Callable[..., dict[str, Any]]:
    """Factory wrapping records in an Explore v2.1 records payload."""

    def _page(records: list[dict[str, Any]], total: int | None = None) -> dict[str, Any]:
        return {
            "total_count": total if total is not None else len(records),
            "results": records,
        }

    return _page


@pytest.fixture()
def make_station() -> Callable[..., Station]:
    """Factory for stations with placeholder coordinates."""

    def _station(
        name: str,
        uic_code: str | None = None,
        lat: float = 46.0,
        lon: float = 2.0,
    ) -> Station:
        return Station(name=name, lat=lat, lon=lon, uic_code=uic_code)

    return _station


@pytest.fixture()
def make_connection() -> Callable[..., Connection]:
    """Factory for connections from names and an ISO date."""

    def _connection(
        origin: str,
        destination: str,
        date: str = "2024-01-01",
        **kwargs: Any,
    ) -> Connection:
        return Connection(
            origin_name=origin,
            destination_name=destination,
            date=datetime.date.fromisoformat(date),
            **kwargs,
        )

    return _connection

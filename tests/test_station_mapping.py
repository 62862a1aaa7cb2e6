"""Tests for connection endpoint resolution."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from tgvmax.models import Connection, MatchMethod, Station
from tgvmax.station_index import StationIndex
from tgvmax.station_mapping import resolve_connection, resolve_connections

if TYPE_CHECKING:
    from collections.abc import Callable


@pytest.fixture()
def index(make_station: Callable[..., Station]) -> StationIndex:
    return StationIndex.build(
        [
            make_station("Paris Gare de Lyon", "87686006"),
            make_station("Lyon Part Dieu", "87723197"),
            make_station("Marseille Saint-Charles", "87751008"),
        ]
    )


class TestResolveConnection:
    """Tests for single-connection resolution."""

    def test_both_endpoints_by_name(
        self, index: StationIndex, make_connection: Callable[..., Connection]
    ) -> None:
        result = resolve_connection(
            make_connection("LYON PART DIEU", "Marseille Saint-Charles"), index
        )
        assert result is not None
        assert result.origin.uic_code == "87723197"
        assert result.destination.uic_code == "87751008"
        assert result.origin_match is MatchMethod.NAME
        assert result.is_exact

    def test_uic_takes_priority_over_name(
        self, index: StationIndex, make_connection: Callable[..., Connection]
    ) -> None:
        result = resolve_connection(
            make_connection(
                "LYON PART DIEU",
                "PARIS (intramuros)",
                origin_uic="87751008",
                destination_uic="87686006",
            ),
            index,
        )
        assert result is not None
        assert result.origin.name == "Marseille Saint-Charles"
        assert result.origin_match is MatchMethod.UIC
        assert result.destination_match is MatchMethod.UIC

    def test_unknown_uic_does_not_fall_back(
        self, index: StationIndex, make_connection: Callable[..., Connection]
    ) -> None:
        connection = make_connection(
            "LYON PART DIEU", "Marseille Saint-Charles", origin_uic="00000000"
        )
        assert resolve_connection(connection, index) is None

    def test_partial_match_not_exact(
        self, index: StationIndex, make_connection: Callable[..., Connection]
    ) -> None:
        result = resolve_connection(
            make_connection("PARIS (intramuros)", "LYON PART DIEU"), index
        )
        assert result is not None
        assert result.origin_match is MatchMethod.PARTIAL
        assert not result.is_exact

    def test_unresolved_destination(
        self, index: StationIndex, make_connection: Callable[..., Connection]
    ) -> None:
        assert (
            resolve_connection(make_connection("LYON PART DIEU", "Bordeaux"), index)
            is None
        )

    def test_unresolved_origin(
        self, index: StationIndex, make_connection: Callable[..., Connection]
    ) -> None:
        assert (
            resolve_connection(make_connection("Bordeaux", "LYON PART DIEU"), index)
            is None
        )


class TestResolveConnections:
    """Tests for batch resolution and its report."""

    def test_report_counts(
        self, index: StationIndex, make_connection: Callable[..., Connection]
    ) -> None:
        connections = [
            make_connection("LYON PART DIEU", "Marseille Saint-Charles"),
            make_connection("PARIS (intramuros)", "LYON PART DIEU"),
            make_connection("Bordeaux", "LYON PART DIEU"),
            make_connection("Bordeaux", "Nantes"),
        ]
        report = resolve_connections(connections, index)
        assert len(report.resolved) == 2
        assert report.unresolved_count == 2
        assert report.partial_count == 1
        assert report.total == 4
        assert report.unresolved_names["Bordeaux"] == 2
        assert report.unresolved_names["Nantes"] == 1
        assert "LYON PART DIEU" not in report.unresolved_names

    def test_order_preserved(
        self, index: StationIndex, make_connection: Callable[..., Connection]
    ) -> None:
        connections = [
            make_connection("LYON PART DIEU", "Marseille Saint-Charles", "2024-01-02"),
            make_connection("LYON PART DIEU", "Marseille Saint-Charles", "2024-01-01"),
        ]
        report = resolve_connections(connections, index)
        assert [r.connection for r in report.resolved] == connections

    def test_empty_index(self, make_connection: Callable[..., Connection]) -> None:
        report = resolve_connections(
            [make_connection("LYON PART DIEU", "Marseille Saint-Charles")],
            StationIndex.build([]),
        )
        assert report.resolved == []
        assert report.unresolved_count == 1

    def test_no_connections(self, index: StationIndex) -> None:
        report = resolve_connections([], index)
        assert report.total == 0
        assert report.partial_count == 0

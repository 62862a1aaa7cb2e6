"""Tests for dataset configuration, fetch settings and record contracts."""

from __future__ import annotations

import datetime

import pytest

from tgvmax.config import (
    CONNECTION_WINDOW_DAYS,
    CONNECTIONS_DATASET,
    DATASETS,
    STATIONS_DATASET,
    FetchSettings,
    connection_where_clause,
    get_dataset_by_name,
)
from tgvmax.contracts import CONNECTION_CONTRACT, STATION_CONTRACT


class TestDatasetRegistry:
    """Tests for the dataset registry."""

    def test_station_limits(self) -> None:
        assert STATIONS_DATASET.page_size == 100
        assert STATIONS_DATASET.max_pages == 5
        assert STATIONS_DATASET.required

    def test_connection_limits(self) -> None:
        assert CONNECTIONS_DATASET.page_size == 100
        assert CONNECTIONS_DATASET.max_pages == 20
        assert not CONNECTIONS_DATASET.required

    def test_names_unique(self) -> None:
        names = [d.name for d in DATASETS]
        assert len(names) == len(set(names))

    def test_lookup(self) -> None:
        assert get_dataset_by_name("connections") is CONNECTIONS_DATASET

    def test_unknown_name(self) -> None:
        with pytest.raises(KeyError, match="Valid names: stations, connections"):
            get_dataset_by_name("trains")

    def test_records_url(self) -> None:
        assert (
            STATIONS_DATASET.records_url("https://example.test/api/explore/v2.1")
            == "https://example.test/api/explore/v2.1/catalog/datasets/"
            "gares-de-voyageurs/records"
        )


class TestConnectionWhereClause:
    """Tests for the connection date window filter."""

    def test_default_window(self) -> None:
        clause = connection_where_clause(datetime.date(2024, 1, 15))
        assert clause == (
            'date >= "2024-01-15" and date <= "2024-02-14" '
            'and od_happy_card = "OUI"'
        )

    def test_custom_window(self) -> None:
        clause = connection_where_clause(datetime.date(2024, 12, 31), window_days=1)
        assert 'date <= "2025-01-01"' in clause

    def test_window_length(self) -> None:
        assert CONNECTION_WINDOW_DAYS == 30


class TestFetchSettings:
    """Tests for environment-driven fetch settings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in (
            "TGVMAX_API_BASE",
            "TGVMAX_TIMEOUT",
            "TGVMAX_RETRIES",
            "TGVMAX_RETRY_DELAY",
        ):
            monkeypatch.delenv(name, raising=False)
        settings = FetchSettings.from_env()
        assert settings == FetchSettings()
        assert settings.api_base_url.startswith("https://ressources.data.sncf.com")

    def test_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TGVMAX_API_BASE", "https://mirror.test/api/")
        monkeypatch.setenv("TGVMAX_TIMEOUT", "12.5")
        monkeypatch.setenv("TGVMAX_RETRIES", "5")
        monkeypatch.setenv("TGVMAX_RETRY_DELAY", "0.25")
        settings = FetchSettings.from_env()
        assert settings.api_base_url == "https://mirror.test/api"
        assert settings.timeout == 12.5
        assert settings.retries == 5
        assert settings.retry_delay == 0.25

    def test_retries_at_least_one(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TGVMAX_RETRIES", "0")
        assert FetchSettings.from_env().retries == 1


class TestContracts:
    """Tests for record contracts."""

    def test_station_select_clause(self) -> None:
        assert STATION_CONTRACT.select_clause == (
            "nom,libellecourt,position_geographique,codeinsee,codes_uic,segment_drg"
        )

    def test_unselected_fields_omitted(self) -> None:
        assert "origine_uic" not in CONNECTION_CONTRACT.select_clause
        assert "origine" in CONNECTION_CONTRACT.select_clause.split(",")

    def test_required_fields(self) -> None:
        assert CONNECTION_CONTRACT.required_fields == frozenset(
            {"origine", "destination", "date"}
        )

    def test_missing_fields(self) -> None:
        record: dict[str, object] = {"origine": "PARIS", "destination": "  "}
        assert CONNECTION_CONTRACT.missing_fields(record) == ["date", "destination"]

    def test_nothing_missing(self) -> None:
        record: dict[str, object] = {
            "nom": "Lyon",
            "position_geographique": {"lat": 45.7, "lon": 4.8},
        }
        assert STATION_CONTRACT.missing_fields(record) == []

"""Dataset configuration registry for the TGV Max map.

Defines typed configuration for the two SNCF open-data datasets the map is
built from: passenger stations (gares de voyageurs) and TGV Max seat
availability. Configuration drives the paged fetch coordinator and the
load-cycle orchestrator.
"""

from __future__ import annotations

import datetime
import os
from dataclasses import dataclass
from typing import Final

from tgvmax.contracts import CONNECTION_CONTRACT, STATION_CONTRACT, RecordContract


@dataclass(frozen=True, slots=True)
class DatasetConfig:
    """Immutable configuration for a single upstream dataset.

    Attributes:
        name: Machine-readable dataset identifier (snake_case).
        dataset_id: Opendatasoft dataset identifier.
        contract: Upstream field contract used for ``select`` and parsing.
        base_where: Server-side filter applied to every request, if any.
        page_size: Records requested per page (API maximum is 100).
        max_pages: Completeness ceiling on the number of pages fetched.
        required: Whether a failure to load this dataset aborts the cycle.
    """

    name: str
    dataset_id: str
    contract: RecordContract
    base_where: str | None
    page_size: int
    max_pages: int
    required: bool

    def records_url(self, api_base_url: str) -> str:
        """Explore v2.1 records endpoint for this dataset."""
        return f"{api_base_url}/catalog/datasets/{self.dataset_id}/records"


@dataclass(frozen=True, slots=True)
class FetchSettings:
    """HTTP behavior shared by all dataset fetches.

    Attributes:
        api_base_url: Explore API root, without trailing slash.
        timeout: Per-request timeout in seconds.
        retries: Attempts per page before the page counts as failed.
        retry_delay: Fixed pause between attempts, in seconds.
    """

    api_base_url: str = "https://ressources.data.sncf.com/api/explore/v2.1"
    timeout: float = 30.0
    retries: int = 3
    retry_delay: float = 1.0

    @classmethod
    def from_env(cls) -> FetchSettings:
        """Build settings, letting TGVMAX_* environment variables override."""
        defaults = cls()
        return cls(
            api_base_url=os.environ.get(
                "TGVMAX_API_BASE", defaults.api_base_url
            ).rstrip("/"),
            timeout=float(os.environ.get("TGVMAX_TIMEOUT", defaults.timeout)),
            retries=max(1, int(os.environ.get("TGVMAX_RETRIES", defaults.retries))),
            retry_delay=float(
                os.environ.get("TGVMAX_RETRY_DELAY", defaults.retry_delay)
            ),
        )


# Explore v2.1 rejects limit > 100
_PAGE_SIZE: Final[int] = 100

# TGV Max seats are published about a month ahead
CONNECTION_WINDOW_DAYS: Final[int] = 30

STATIONS_DATASET: Final[DatasetConfig] = DatasetConfig(
    name="stations",
    dataset_id="gares-de-voyageurs",
    contract=STATION_CONTRACT,
    base_where="position_geographique IS NOT NULL",
    page_size=_PAGE_SIZE,
    max_pages=5,
    required=True,
)

CONNECTIONS_DATASET: Final[DatasetConfig] = DatasetConfig(
    name="connections",
    dataset_id="tgvmax",
    contract=CONNECTION_CONTRACT,
    base_where='od_happy_card = "OUI"',
    page_size=_PAGE_SIZE,
    max_pages=20,
    required=False,
)

DATASETS: Final[tuple[DatasetConfig, ...]] = (STATIONS_DATASET, CONNECTIONS_DATASET)


def get_dataset_by_name(name: str) -> DatasetConfig:
    """Look up a dataset configuration by its machine-readable name.

    Args:
        name: Dataset name matching DatasetConfig.name field.

    Returns:
        Matching DatasetConfig instance.

    Raises:
        KeyError: If no dataset matches the given name.
    """
    for dataset in DATASETS:
        if dataset.name == name:
            return dataset
    valid_names = ", ".join(d.name for d in DATASETS)
    raise KeyError(f"Unknown dataset '{name}'. Valid names: {valid_names}")


def connection_where_clause(
    today: datetime.date,
    window_days: int = CONNECTION_WINDOW_DAYS,
) -> str:
    """Server-side filter for eligible connections in the coming window.

    Args:
        today: First day of the window (inclusive).
        window_days: Length of the window in days.

    Returns:
        ODSQL ``where`` expression.
    """
    end = today + datetime.timedelta(days=window_days)
    date_clause = f'date >= "{today.isoformat()}" and date <= "{end.isoformat()}"'
    if CONNECTIONS_DATASET.base_where:
        return f"{date_clause} and {CONNECTIONS_DATASET.base_where}"
    return date_clause

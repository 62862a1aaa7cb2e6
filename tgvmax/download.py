"""Paged record retrieval from the SNCF Explore API.

Fetches dataset records page by page with ``limit``/``offset`` parameters.
Pages are requested sequentially. Pagination stops on an empty or short
page, or when the configured page ceiling is reached. A failure on the
first page is fatal for the dataset; a failure on a later page stops
pagination and keeps the records already collected.

Transport-level failures (connection resets, timeouts) are retried a
bounded number of times with a fixed delay before the page counts as failed.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Final

import httpx

if TYPE_CHECKING:
    from tgvmax.config import DatasetConfig, FetchSettings

logger: Final[logging.Logger] = logging.getLogger(__name__)

# Connection-level retries inside the transport, below the page retry loop
_TRANSPORT_RETRIES: Final[int] = 1


class DownloadError(Exception):
    """Raised when a page request fails.

    Attributes:
        url: Request URL, without query parameters.
        status_code: HTTP status, or 0 for transport and decoding failures.
        body: Response body excerpt or error description.
    """

    def __init__(self, url: str, status_code: int, body: str) -> None:
        self.url: Final[str] = url
        self.status_code: Final[int] = status_code
        self.body: Final[str] = body
        if status_code:
            message = f"HTTP {status_code} for {url}: {body[:200]}"
        else:
            message = f"Request to {url} failed: {body[:200]}"
        super().__init__(message)


def build_client(settings: FetchSettings) -> httpx.Client:
    """Construct an httpx client configured for Explore API requests."""
    transport: httpx.HTTPTransport = httpx.HTTPTransport(retries=_TRANSPORT_RETRIES)
    return httpx.Client(timeout=settings.timeout, transport=transport)


def _get_with_retry(
    client: httpx.Client,
    url: str,
    params: dict[str, str],
    settings: FetchSettings,
) -> httpx.Response:
    """Issue a GET, retrying transport failures with a fixed delay.

    Raises:
        DownloadError: When every attempt fails at the transport level.
    """
    attempts = max(1, settings.retries)
    last_error: httpx.TransportError | None = None
    for attempt in range(1, attempts + 1):
        try:
            return client.get(url, params=params)
        except httpx.TransportError as exc:
            last_error = exc
            logger.warning(
                "Attempt %d/%d for %s failed: %s", attempt, attempts, url, exc
            )
            if attempt < attempts:
                time.sleep(settings.retry_delay)
    raise DownloadError(url, 0, str(last_error))


def fetch_page(
    client: httpx.Client,
    url: str,
    params: dict[str, str],
    settings: FetchSettings,
) -> list[object]:
    """Fetch a single page and return its raw ``results`` list.

    Raises:
        DownloadError: On transport exhaustion, HTTP 4xx/5xx responses, or
            a body that is not an Explore records payload.
    """
    response = _get_with_retry(client, url, params, settings)
    if response.status_code >= 400:
        raise DownloadError(url, response.status_code, response.text)
    try:
        data: object = response.json()
    except ValueError as exc:
        raise DownloadError(url, response.status_code, f"invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise DownloadError(url, response.status_code, "unexpected payload shape")
    results: object = data.get("results") or []
    if not isinstance(results, list):
        raise DownloadError(url, response.status_code, "results is not a list")
    return results


def fetch_all_records(
    client: httpx.Client,
    config: DatasetConfig,
    settings: FetchSettings,
    *,
    where: str | None = None,
    page_size: int | None = None,
    max_pages: int | None = None,
) -> list[dict[str, object]]:
    """Collect records for a dataset across sequential pages.

    Args:
        client: Configured httpx.Client instance.
        config: Dataset configuration (endpoint, contract, limits).
        settings: Shared fetch settings (base URL, retries, delay).
        where: Server-side filter; defaults to the dataset's base filter.
        page_size: Records per page; defaults to config.page_size.
        max_pages: Page ceiling; defaults to config.max_pages.

    Returns:
        Raw records in page order.

    Raises:
        DownloadError: If the first page cannot be fetched.
    """
    url = config.records_url(settings.api_base_url)
    limit = page_size or config.page_size
    ceiling = max_pages or config.max_pages
    filter_clause = where if where is not None else config.base_where

    records: list[dict[str, object]] = []
    for page in range(ceiling):
        params: dict[str, str] = {
            "limit": str(limit),
            "offset": str(page * limit),
            "select": config.contract.select_clause,
        }
        if filter_clause:
            params["where"] = filter_clause

        logger.debug("Dataset '%s': requesting page %d", config.name, page + 1)
        try:
            raw_page = fetch_page(client, url, params, settings)
        except DownloadError:
            if page == 0:
                raise
            logger.warning(
                "Dataset '%s': page %d failed, keeping %d records",
                config.name,
                page + 1,
                len(records),
            )
            break

        if not raw_page:
            logger.info("Dataset '%s': page %d empty, stopping", config.name, page + 1)
            break

        page_records = [dict(r) for r in raw_page if isinstance(r, dict)]
        records.extend(page_records)
        logger.info(
            "Dataset '%s': page %d +%d records (total %d)",
            config.name,
            page + 1,
            len(page_records),
            len(records),
        )
        if len(raw_page) < limit:
            break
    else:
        logger.info(
            "Dataset '%s': reached page ceiling (%d pages)", config.name, ceiling
        )

    return records

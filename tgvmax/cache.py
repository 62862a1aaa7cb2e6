"""JSON-backed cache of raw upstream records, keyed by a cache-date tag.

A cache hit lets a load cycle skip both fetch stages. The cache is an
optional short-circuit, never a source of truth: a missing, stale or
unreadable file is simply a miss.
"""

from __future__ import annotations

import datetime
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final, TypeGuard

logger: Final[logging.Logger] = logging.getLogger(__name__)

_FILE_PREFIX: Final[str] = "tgvmax_"
_FILE_SUFFIX: Final[str] = ".json"


def _is_record_list(value: object) -> TypeGuard[list[dict[str, object]]]:
    return isinstance(value, list) and all(isinstance(r, dict) for r in value)


def cache_tag(today: datetime.date) -> str:
    """Cache-date tag for a load cycle started on ``today``."""
    return today.isoformat()


@dataclass(frozen=True, slots=True)
class CachedLoad:
    """Raw records saved after a cold load.

    Attributes:
        tag: Cache-date tag the records were saved under.
        saved_at: ISO-8601 timestamp of the write.
        stations: Raw station records.
        connections: Raw connection records.
    """

    tag: str
    saved_at: str
    stations: list[dict[str, object]] = field(default_factory=list)
    connections: list[dict[str, object]] = field(default_factory=list)


@dataclass
class LoadCache:
    """Directory of per-tag JSON cache files."""

    directory: Path

    def path_for(self, tag: str) -> Path:
        return self.directory / f"{_FILE_PREFIX}{tag}{_FILE_SUFFIX}"

    def load(self, tag: str) -> CachedLoad | None:
        """Read the cache entry for a tag, returning None on any miss."""
        path = self.path_for(tag)
        if not path.exists():
            return None
        try:
            data: object = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Ignoring unreadable cache file %s: %s", path, exc)
            return None

        if not isinstance(data, dict):
            logger.warning("Ignoring cache file %s with unexpected content", path)
            return None
        stations = data.get("stations")
        connections = data.get("connections")
        if (
            data.get("tag") != tag
            or not _is_record_list(stations)
            or not _is_record_list(connections)
        ):
            logger.warning("Ignoring cache file %s with unexpected content", path)
            return None

        logger.info(
            "Cache hit for %s: %d stations, %d connections",
            tag,
            len(stations),
            len(connections),
        )
        return CachedLoad(
            tag=tag,
            saved_at=str(data.get("saved_at", "")),
            stations=stations,
            connections=connections,
        )

    def save(
        self,
        tag: str,
        stations: list[dict[str, object]],
        connections: list[dict[str, object]],
    ) -> Path:
        """Persist raw records via atomic write (temp file + replace)."""
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(tag)
        tmp_path: Path = path.with_suffix(".tmp")
        payload: str = json.dumps(
            {
                "tag": tag,
                "saved_at": datetime.datetime.now(tz=datetime.UTC).isoformat(),
                "stations": stations,
                "connections": connections,
            },
            ensure_ascii=False,
        )
        tmp_path.write_text(payload, encoding="utf-8")
        os.replace(str(tmp_path), str(path))
        logger.info(
            "Cached %d stations and %d connections to %s",
            len(stations),
            len(connections),
            path,
        )
        return path

    def prune(self, keep_tag: str) -> int:
        """Remove cache files for every tag but ``keep_tag``.

        Returns:
            Number of files removed.
        """
        if not self.directory.exists():
            return 0
        keep = self.path_for(keep_tag)
        removed = 0
        for path in self.directory.glob(f"{_FILE_PREFIX}*{_FILE_SUFFIX}"):
            if path != keep:
                path.unlink()
                removed += 1
        if removed > 0:
            logger.info("Pruned %d stale cache files", removed)
        return removed

"""Station name normalization.

Reduces free-text station names to a comparable key: lower-cased, without
diacritics, single-spaced, and without the leading "gare de" style filler
that SNCF datasets prepend inconsistently.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Final

_WHITESPACE: Final[re.Pattern[str]] = re.compile(r"\s+")

# Longest first: "gare " must be tried last
_FILLER_PREFIXES: Final[tuple[str, ...]] = (
    "gare des ",
    "gare de ",
    "gare du ",
    "gare d'",
    "gare d’",
    "gare ",
)


def _strip_diacritics(value: str) -> str:
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _strip_prefixes(value: str) -> str:
    """Remove filler prefixes until none is left at the start."""
    stripped = True
    while stripped:
        stripped = False
        for prefix in _FILLER_PREFIXES:
            if value.startswith(prefix):
                value = value[len(prefix) :].strip()
                stripped = True
                break
    return value


def normalize_station_name(name: str | None) -> str:
    """Canonicalize a station name into a lookup key.

    Examples:
        >>> normalize_station_name("Gare de Lyon")
        'lyon'
        >>> normalize_station_name("  Besançon   Franche-Comté TGV ")
        'besancon franche-comte tgv'

    Args:
        name: Raw station name; None and empty strings are accepted.

    Returns:
        Normalized key, or an empty string for missing input.
    """
    if not name:
        return ""
    value = _strip_diacritics(name.lower())
    value = _WHITESPACE.sub(" ", value).strip()
    return _strip_prefixes(value)


def first_token(normalized: str) -> str:
    """Return the first whitespace-delimited token of a normalized name."""
    parts = normalized.split(" ", maxsplit=1)
    return parts[0] if parts else ""

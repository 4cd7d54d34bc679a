"""Country name normalization and the name -> centroid index."""

from __future__ import annotations

import unicodedata
from typing import Iterator

from .models import CountryEntry


DEFAULT_SUGGESTION_LIMIT = 10


def normalize_country_name(value: str | None) -> str:
    """Canonical lookup key: trimmed, casefolded, single-spaced, accent-free.

    Case folding is full Unicode folding rather than ``lower()``, so
    ``"Straße"`` and ``"STRASSE"`` share a key.
    """
    collapsed = " ".join(str(value or "").casefold().split())
    decomposed = unicodedata.normalize("NFD", collapsed)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


class CountryIndex:
    """Insertion-ordered lookup keyed by normalized country name.

    Writes are first-wins; the index is filled once by the ingestion pass and
    only read afterwards.
    """

    def __init__(self) -> None:
        self._entries: dict[str, CountryEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        return normalize_country_name(name) in self._entries

    def __iter__(self) -> Iterator[CountryEntry]:
        return iter(self._entries.values())

    def add(self, entry: CountryEntry) -> bool:
        key = normalize_country_name(entry.display_name)
        if not key or key in self._entries:
            return False
        self._entries[key] = entry
        return True

    def lookup(self, name: str | None) -> CountryEntry | None:
        return self._entries.get(normalize_country_name(name))

    def suggest(self, name: str | None, limit: int = DEFAULT_SUGGESTION_LIMIT) -> list[str]:
        """Prefix matches, then substring matches; first entries if nothing matches."""
        if limit <= 0:
            return []
        query = normalize_country_name(name)
        prefix = [key for key in self._entries if key.startswith(query)]
        contains = [key for key in self._entries if query in key]

        merged = list(dict.fromkeys([*prefix, *contains]))[:limit]
        if not merged:
            merged = list(self._entries)[:limit]
        return [self._entries[key].display_name for key in merged]

    def display_names(self) -> list[str]:
        """All display names sorted alphabetically, ignoring case and accents."""
        names = [entry.display_name for entry in self._entries.values() if entry.display_name]
        return sorted(names, key=lambda item: (normalize_country_name(item), item))

# src/cache/derived.py - v2
"""Derived result tiers: memoized filter and suggestion queries.

Each tier maps ``"<normalized query>:<limit>"`` to a ranked list of
TagCount computed from the resident primary snapshot. Entries expire after
the tier TTL and are rejected outright when they were computed from an
older snapshot generation than the one currently resident.
Expiry and the least-recently-used size cap come from ``cachetools.TTLCache``
driven by the injected clock.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from cachetools import TTLCache

from notetags.cache.clock import Clock, utc_now
from notetags.cache.fingerprint import estimate_size
from notetags.tags.models import GlobalTagsData, TagCount

logger = logging.getLogger(__name__)

_TAG_MARKERS = ("@", "#")


def normalize_query(query: str) -> str:
    """Trim, drop one leading tag marker, casefold."""
    q = query.strip()
    if q.startswith(_TAG_MARKERS):
        q = q[1:]
    return q.casefold()


def make_key(query: str, limit: int) -> str:
    return f"{normalize_query(query)}:{limit}"


def rank_tags(tags: Sequence[TagCount], query: str, limit: int) -> list[TagCount]:
    """Filter ``tags`` by case-insensitive substring and rank them.

    Prefix matches come first, then higher counts. Ties keep snapshot order.
    """
    if limit <= 0:
        return []
    needle = normalize_query(query)
    matches = [t for t in tags if needle in t.tag.casefold()]
    matches.sort(key=lambda t: (not t.tag.casefold().startswith(needle), -t.count))
    return matches[:limit]


@dataclass
class _Entry:
    value: list[TagCount]
    generation: int
    size: int


class DerivedResultCache:
    """One bounded, TTL-governed tier of memoized query results."""

    def __init__(
        self,
        name: str,
        ttl: float,
        max_entries: int,
        clock: Clock = utc_now,
    ) -> None:
        self.name = name
        self._ttl = ttl
        self._clock = clock
        self._entries: TTLCache[str, _Entry] = TTLCache(
            maxsize=max_entries, ttl=ttl, timer=lambda: self._clock().timestamp()
        )
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def __len__(self) -> int:
        self._entries.expire()
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    @property
    def ttl(self) -> float:
        return self._ttl

    def get(self, key: str, generation: int) -> list[TagCount] | None:
        """Return a live entry for ``key``, or None on miss/expiry/staleness."""
        entry = self._entries.get(key)
        if entry is None:
            self.misses += 1
            return None
        if entry.generation != generation:
            del self._entries[key]
            self.misses += 1
            return None
        self.hits += 1
        return list(entry.value)

    def put(self, key: str, value: list[TagCount], generation: int) -> None:
        """Store ``value``; the least recently used entry goes beyond the cap."""
        self._entries.expire()
        if key not in self._entries and len(self._entries) >= self._entries.maxsize:
            self.evictions += 1
        self._entries[key] = _Entry(
            value=list(value),
            generation=generation,
            size=estimate_size(value) + len(key),
        )

    def get_or_compute(
        self,
        query: str,
        limit: int,
        snapshot: GlobalTagsData | None,
        generation: int,
    ) -> list[TagCount]:
        """Serve ``(query, limit)`` from this tier or compute it from ``snapshot``.

        Never fetches: with no resident snapshot the result is empty and
        nothing is memoized.
        """
        key = make_key(query, limit)
        cached = self.get(key, generation)
        if cached is not None:
            return cached
        if snapshot is None:
            return []
        result = rank_tags(snapshot.top_tags, query, limit)
        self.put(key, result, generation)
        return list(result)

    def estimated_bytes(self) -> int:
        self._entries.expire()
        return sum(entry.size for entry in self._entries.values())

    def clear(self) -> tuple[int, int]:
        """Drop every entry. Returns ``(entries_cleared, bytes_freed)``."""
        cleared = len(self)
        freed = self.estimated_bytes()
        self._entries.clear()
        if cleared:
            logger.debug("Cleared %d %s cache entries", cleared, self.name)
        return cleared, freed

# src/cache/eviction.py - v1
"""Tiered eviction under memory pressure.

Order: suggestion tier, filter tier, then the primary snapshot. The primary
is only dropped once it is past its TTL.
"""

from __future__ import annotations

import logging

from notetags.cache.derived import DerivedResultCache
from notetags.cache.models import CleanupReport, MemoryPressure
from notetags.cache.snapshot_cache import PrimarySnapshotCache

logger = logging.getLogger(__name__)


class EvictionController:
    """Sheds cache tiers in value order."""

    def __init__(
        self,
        primary: PrimarySnapshotCache,
        filter_cache: DerivedResultCache,
        suggestion_cache: DerivedResultCache,
    ) -> None:
        self._primary = primary
        self._filter = filter_cache
        self._suggestion = suggestion_cache
        self.evictions = 0

    def perform_memory_cleanup(self) -> CleanupReport:
        """Clear both derived tiers and a stale primary snapshot."""
        return self._shed(MemoryPressure.CRITICAL)

    def handle_memory_pressure(self, level: MemoryPressure | str) -> CleanupReport:
        """Evict as deep as ``level`` calls for.

        LOW clears suggestions, MODERATE adds the filter tier, CRITICAL
        also drops a stale primary snapshot.
        """
        return self._shed(MemoryPressure(level))

    def _shed(self, level: MemoryPressure) -> CleanupReport:
        cleared, freed = self._suggestion.clear()

        if level in (MemoryPressure.MODERATE, MemoryPressure.CRITICAL):
            items, size = self._filter.clear()
            cleared += items
            freed += size

        if level is MemoryPressure.CRITICAL:
            size = self._primary.evict_if_stale()
            if size:
                cleared += 1
                freed += size

        self.evictions += cleared
        report = CleanupReport(cleared_items=cleared, freed_space_estimate=freed)
        logger.info(
            "Memory cleanup (%s): %d items, ~%d bytes freed",
            level.value,
            report.cleared_items,
            report.freed_space_estimate,
        )
        return report

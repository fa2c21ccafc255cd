# src/tags/service.py - v1
"""GlobalTagService: the application-wide tag cache.

One instance is created per process (create, use, close) and injected into
every consumer that needs tag data: editors for autocomplete, the CLI for
reports. Nothing on the read path raises: callers always get some valid,
possibly empty, snapshot or result list.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from notetags.cache.base_storage import BaseStorage
from notetags.cache.clock import Clock, utc_now
from notetags.cache.derived import DerivedResultCache
from notetags.cache.eviction import EvictionController
from notetags.cache.memory_store import InMemoryStorage
from notetags.cache.models import CacheStats, CleanupReport, MemoryPressure
from notetags.cache.notifier import ChangeNotifier, TagChangeListener
from notetags.cache.persistence import SnapshotPersistence
from notetags.cache.snapshot_cache import PrimarySnapshotCache, TagDataSource
from notetags.config.settings import Settings, TagCacheConfig
from notetags.logging.context import reset_operation_context, set_operation_context
from notetags.tags.models import GlobalTagsData, TagCount

logger = logging.getLogger(__name__)


class GlobalTagService:
    """Primary snapshot, filter and suggestion tiers behind one facade."""

    def __init__(
        self,
        source: TagDataSource,
        storage: BaseStorage | None = None,
        config: TagCacheConfig | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._config = config or TagCacheConfig()
        self._storage = storage if storage is not None else InMemoryStorage()
        self._persistence = SnapshotPersistence(
            self._storage,
            key=self._config.storage_key,
            fingerprint_top_n=self._config.fingerprint_top_n,
        )
        self._notifier = ChangeNotifier()
        self._filter_cache = DerivedResultCache(
            "filter", self._config.filter_ttl, self._config.max_filter_entries, clock
        )
        self._suggestion_cache = DerivedResultCache(
            "suggestion",
            self._config.suggestion_ttl,
            self._config.max_suggestion_entries,
            clock,
        )
        self._primary = PrimarySnapshotCache(
            source,
            self._persistence,
            self._notifier,
            derived=(self._filter_cache, self._suggestion_cache),
            ttl=self._config.primary_ttl,
            max_bytes=self._config.max_primary_bytes,
            fingerprint_top_n=self._config.fingerprint_top_n,
            clock=clock,
        )
        self._eviction = EvictionController(
            self._primary, self._filter_cache, self._suggestion_cache
        )
        self._background: set[asyncio.Task[Any]] = set()
        self._closed = False

    @classmethod
    def from_settings(
        cls, settings: Settings, source: TagDataSource | None = None
    ) -> GlobalTagService:
        """Build a service with the configured storage backend.

        Without an explicit ``source`` the notes folder is scanned.
        """
        from notetags.cache.storage_factory import create_storage
        from notetags.tags.source import MarkdownTagSource

        return cls(
            source=source or MarkdownTagSource(settings.notes_root),
            storage=create_storage(settings),
            config=TagCacheConfig.from_settings(settings),
        )

    @property
    def config(self) -> TagCacheConfig:
        return self._config

    # --- Lifecycle ---

    async def start(self) -> GlobalTagService:
        """Restore the persisted snapshot ahead of the first request."""
        await self._primary.restore()
        return self

    async def flush(self) -> bool:
        """Best-effort persistence of the resident snapshot (shutdown hook)."""
        return await self._primary.flush()

    async def close(self) -> None:
        """Flush, stop background work and release the storage backend."""
        if self._closed:
            return
        self._closed = True
        for task in list(self._background):
            task.cancel()
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        await self.flush()
        self._notifier.clear()
        self._storage.close()

    async def __aenter__(self) -> GlobalTagService:
        return await self.start()

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # --- Snapshot access ---

    async def get_global_tags(self, force_refresh: bool = False) -> GlobalTagsData:
        token = set_operation_context("refresh" if force_refresh else "get")
        try:
            return await self._primary.get(force_refresh)
        finally:
            reset_operation_context(token)

    async def refresh_global_tags(self) -> GlobalTagsData:
        return await self.get_global_tags(force_refresh=True)

    def preload_tags(self) -> asyncio.Task[GlobalTagsData] | None:
        """Warm the cache in the background. Failures are logged and dropped."""
        try:
            task = asyncio.get_running_loop().create_task(self.get_global_tags())
        except RuntimeError:
            logger.warning("Tag preload skipped: no running event loop")
            return None
        self._background.add(task)
        task.add_done_callback(self._on_preload_done)
        return task

    def _on_preload_done(self, task: asyncio.Task[Any]) -> None:
        self._background.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.warning("Tag preload failed: %s", task.exception())

    def cached_tag_names(self) -> list[str]:
        data = self._primary.peek()
        return [] if data is None else [t.tag for t in data.top_tags]

    def has_tag(self, name: str) -> bool:
        data = self._primary.peek()
        return data is not None and any(t.tag == name for t in data.top_tags)

    def get_tag_count(self, name: str) -> int:
        data = self._primary.peek()
        if data is None:
            return 0
        return next((t.count for t in data.top_tags if t.tag == name), 0)

    # --- Derived queries ---

    def filter_tags(self, query: str, limit: int = 10) -> list[TagCount]:
        """Tags containing ``query``, prefix matches first, then by count."""
        return self._filter_cache.get_or_compute(
            query, limit, self._primary.peek(), self._primary.generation
        )

    def suggest_tags(self, query: str, limit: int = 10) -> list[TagCount]:
        """Autocomplete candidates while typing; short-lived tier."""
        return self._suggestion_cache.get_or_compute(
            query, limit, self._primary.peek(), self._primary.generation
        )

    # --- Change notification ---

    def subscribe(self, listener: TagChangeListener) -> Callable[[], None]:
        return self._notifier.subscribe(listener)

    # --- Administration ---

    async def clear_cache(self) -> None:
        """Drop every tier and the persisted record."""
        self._suggestion_cache.clear()
        self._filter_cache.clear()
        self._primary.drop()
        await self._persistence.delete()
        logger.info("Tag cache cleared")

    def perform_memory_cleanup(self) -> CleanupReport:
        token = set_operation_context("cleanup")
        try:
            return self._eviction.perform_memory_cleanup()
        finally:
            reset_operation_context(token)

    def handle_memory_pressure(self, level: MemoryPressure | str) -> CleanupReport:
        token = set_operation_context("cleanup")
        try:
            return self._eviction.handle_memory_pressure(level)
        finally:
            reset_operation_context(token)

    def get_cache_stats(self) -> CacheStats:
        primary = self._primary
        return CacheStats(
            primary_entries=0 if primary.record is None else 1,
            filter_entries=len(self._filter_cache),
            suggestion_entries=len(self._suggestion_cache),
            primary_bytes=primary.record_bytes,
            primary_valid=primary.is_valid(),
            primary_over_budget=primary.is_over_budget(),
            primary_age_seconds=primary.age_seconds(),
            hits=primary.hits + self._filter_cache.hits + self._suggestion_cache.hits,
            misses=(
                primary.misses + self._filter_cache.misses + self._suggestion_cache.misses
            ),
            fetches=primary.fetches,
            evictions=(
                self._eviction.evictions
                + self._filter_cache.evictions
                + self._suggestion_cache.evictions
            ),
        )

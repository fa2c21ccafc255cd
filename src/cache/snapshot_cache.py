# src/cache/snapshot_cache.py - v1
"""Primary snapshot tier: one CacheRecord, TTL, single-flight refresh.

All state changes happen between suspension points of the event loop. The
only awaits are the tag data source call and the persistence I/O, so a
reader never observes a half-updated slot. Concurrent callers that arrive
while a fetch is in flight all await the same pending task.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from datetime import timezone
from typing import Any

from pydantic import ValidationError

from notetags.cache.clock import Clock, utc_now
from notetags.cache.derived import DerivedResultCache
from notetags.cache.fingerprint import DEFAULT_TOP_N, compute_fingerprint, estimate_size
from notetags.cache.models import CacheRecord
from notetags.cache.notifier import ChangeNotifier
from notetags.cache.persistence import SnapshotPersistence
from notetags.tags.models import GlobalTagsData, TagsResponse

logger = logging.getLogger(__name__)

TagDataSource = Callable[[], Awaitable[TagsResponse | Mapping[str, Any]]]


class PrimarySnapshotCache:
    """Holds the current GlobalTagsData snapshot and refreshes it on demand."""

    def __init__(
        self,
        source: TagDataSource,
        persistence: SnapshotPersistence,
        notifier: ChangeNotifier,
        derived: Sequence[DerivedResultCache] = (),
        ttl: float = 300.0,
        max_bytes: int = 5 * 1024 * 1024,
        fingerprint_top_n: int = DEFAULT_TOP_N,
        clock: Clock = utc_now,
    ) -> None:
        self._source = source
        self._persistence = persistence
        self._notifier = notifier
        self._derived = tuple(derived)
        self._ttl = ttl
        self._max_bytes = max_bytes
        self._top_n = fingerprint_top_n
        self._clock = clock

        self._record: CacheRecord | None = None
        self._record_bytes = 0
        self._generation = 0
        self._pending: asyncio.Task[GlobalTagsData] | None = None
        self._restoring: asyncio.Task[None] | None = None
        self._restored = False

        self.hits = 0
        self.misses = 0
        self.fetches = 0
        self.evictions = 0

    # --- Read side ---

    @property
    def generation(self) -> int:
        """Incremented on every new snapshot; derived entries carry it."""
        return self._generation

    @property
    def record(self) -> CacheRecord | None:
        return self._record

    @property
    def record_bytes(self) -> int:
        return self._record_bytes

    @property
    def ttl(self) -> float:
        return self._ttl

    @property
    def is_loading(self) -> bool:
        return self._pending is not None

    def peek(self) -> GlobalTagsData | None:
        """Resident snapshot, valid or stale, without ever fetching."""
        return None if self._record is None else self._record.data

    def age_seconds(self) -> float | None:
        if self._record is None:
            return None
        ts = self._record.timestamp
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        return (self._clock() - ts).total_seconds()

    def is_valid(self) -> bool:
        """True while the resident record is younger than the TTL."""
        age = self.age_seconds()
        # A timestamp from the future is not trusted.
        return age is not None and 0 <= age < self._ttl

    def is_over_budget(self) -> bool:
        return self._record_bytes > self._max_bytes

    # --- Population ---

    async def get(self, force_refresh: bool = False) -> GlobalTagsData:
        """Return a valid snapshot, fetching at most once across callers."""
        await self._ensure_restored()

        if not force_refresh and self.is_valid():
            self.hits += 1
            return self._record.data  # type: ignore[union-attr]

        self.misses += 1
        if self._pending is None:
            self._pending = asyncio.ensure_future(self._load())
        # Shielded: a cancelled waiter must not cancel the shared fetch.
        return await asyncio.shield(self._pending)

    async def refresh(self) -> GlobalTagsData:
        return await self.get(force_refresh=True)

    async def restore(self) -> bool:
        """Adopt the persisted record, if trustworthy. Runs once per instance."""
        if self._restored:
            return self._record is not None
        record = await self._persistence.load()
        self._restored = True
        if record is None or self._record is not None:
            return False
        self._install(record)
        logger.info(
            "Restored tag cache: %d tags, age %.0fs",
            len(record.data.top_tags),
            self.age_seconds() or 0.0,
        )
        return True

    async def _ensure_restored(self) -> None:
        if self._restored:
            return
        if self._restoring is None:
            self._restoring = asyncio.ensure_future(self.restore())
        await asyncio.shield(self._restoring)

    async def _load(self) -> GlobalTagsData:
        try:
            self.fetches += 1
            data = await self._fetch()
            record = CacheRecord(
                data=data,
                timestamp=self._clock(),
                fingerprint=compute_fingerprint(data, self._top_n),
            )
            self._install(record)
            await self._persistence.save(record)
            for tier in self._derived:
                tier.clear()
            self._notifier.notify(data)
            return data
        finally:
            self._pending = None

    async def _fetch(self) -> GlobalTagsData:
        """Call the data source; every failure degrades to an empty snapshot."""
        try:
            response = await self._source()
        except Exception as e:
            logger.warning("Tag data source failed: %s", e)
            return GlobalTagsData.empty()

        if not isinstance(response, TagsResponse):
            try:
                response = TagsResponse.model_validate(response)
            except ValidationError as e:
                logger.warning(
                    "Malformed tag data payload (%d errors)", e.error_count()
                )
                return GlobalTagsData.empty()

        if not response.success:
            logger.warning(
                "Tag data source reported failure: %s", response.error or "unknown error"
            )
            return GlobalTagsData.empty()
        if response.tags_data is None:
            logger.info("Tag data source returned no tags data")
            return GlobalTagsData.empty()
        return response.tags_data

    def _install(self, record: CacheRecord) -> None:
        self._record = record
        self._record_bytes = estimate_size(record)
        self._generation += 1
        if self.is_over_budget():
            logger.warning(
                "Tag snapshot is %d bytes, over the %d byte budget",
                self._record_bytes,
                self._max_bytes,
            )

    # --- Eviction / lifecycle ---

    def evict_if_stale(self) -> int:
        """Drop the record only when past its TTL. Returns bytes freed."""
        if self._record is None or self.is_valid():
            return 0
        freed = self._record_bytes
        self.drop()
        self.evictions += 1
        return freed

    def drop(self) -> None:
        """Forget the resident record. Persisted copy is untouched."""
        self._record = None
        self._record_bytes = 0
        self._generation += 1

    async def flush(self) -> bool:
        """Persist the resident record, if any. Never raises."""
        if self._record is None:
            return False
        return await self._persistence.save(self._record)

# tests/unit/cache/test_unit_snapshot_cache.py - v1
"""Tests for cache/snapshot_cache.py: restore edge cases, ordering, eviction hooks."""

from __future__ import annotations

from datetime import timedelta

import pytest

from notetags.cache.derived import DerivedResultCache
from notetags.cache.fingerprint import compute_fingerprint
from notetags.cache.memory_store import InMemoryStorage
from notetags.cache.models import CacheRecord
from notetags.cache.notifier import ChangeNotifier
from notetags.cache.persistence import SnapshotPersistence
from notetags.cache.snapshot_cache import PrimarySnapshotCache


@pytest.fixture
def persistence():
    return SnapshotPersistence(InMemoryStorage())


def _primary(source, persistence, clock, **kwargs):
    return PrimarySnapshotCache(
        source, persistence, kwargs.pop("notifier", ChangeNotifier()), clock=clock, **kwargs
    )


class TestRestore:
    @pytest.mark.asyncio
    async def test_future_timestamp_not_trusted(self, persistence, clock, rich_data, stub_source, ok_response):
        await persistence.save(
            CacheRecord(
                data=rich_data,
                timestamp=clock() + timedelta(days=1),
                fingerprint=compute_fingerprint(rich_data),
            )
        )
        source = stub_source(ok_response(rich_data))
        primary = _primary(source, persistence, clock)
        assert await primary.restore() is True
        assert primary.is_valid() is False
        await primary.get()
        assert source.calls == 1

    @pytest.mark.asyncio
    async def test_naive_timestamp_treated_as_utc(self, persistence, clock, rich_data, stub_source):
        await persistence.save(
            CacheRecord(
                data=rich_data,
                timestamp=clock().replace(tzinfo=None),
                fingerprint=compute_fingerprint(rich_data),
            )
        )
        source = stub_source()
        primary = _primary(source, persistence, clock)
        assert await primary.get() == rich_data
        assert source.calls == 0

    @pytest.mark.asyncio
    async def test_restore_runs_once(self, persistence, clock, stub_source):
        primary = _primary(stub_source(), persistence, clock)
        assert await primary.restore() is False
        assert await primary.restore() is False

    @pytest.mark.asyncio
    async def test_fingerprint_top_n_must_match(self, clock, rich_data, stub_source):
        storage = InMemoryStorage()
        await SnapshotPersistence(storage, fingerprint_top_n=1).save(
            CacheRecord(
                data=rich_data, timestamp=clock(), fingerprint=compute_fingerprint(rich_data, 1)
            )
        )
        primary = _primary(stub_source(), SnapshotPersistence(storage, fingerprint_top_n=2), clock)
        assert await primary.restore() is False


class TestRefreshOrdering:
    @pytest.mark.asyncio
    async def test_derived_cleared_and_generation_bumped(
        self, persistence, clock, project_data, stub_source, ok_response
    ):
        tier = DerivedResultCache("filter", ttl=120, max_entries=10, clock=clock)
        primary = _primary(stub_source(ok_response(project_data)), persistence, clock, derived=[tier])
        await primary.get()
        gen = primary.generation
        tier.get_or_compute("p", 10, primary.peek(), gen)
        assert len(tier) == 1

        await primary.refresh()
        assert primary.generation == gen + 1
        assert len(tier) == 0

    @pytest.mark.asyncio
    async def test_record_carries_fingerprint_and_clock_time(
        self, persistence, clock, rich_data, stub_source, ok_response
    ):
        primary = _primary(stub_source(ok_response(rich_data)), persistence, clock, fingerprint_top_n=3)
        await primary.get()
        assert primary.record.timestamp == clock()
        assert primary.record.fingerprint == compute_fingerprint(rich_data, 3)
        assert primary.is_loading is False


class TestEvictIfStale:
    @pytest.mark.asyncio
    async def test_valid_record_kept(self, persistence, clock, rich_data, stub_source, ok_response):
        primary = _primary(stub_source(ok_response(rich_data)), persistence, clock)
        await primary.get()
        assert primary.evict_if_stale() == 0
        assert primary.peek() is not None

    @pytest.mark.asyncio
    async def test_stale_record_dropped(self, persistence, clock, rich_data, stub_source, ok_response):
        primary = _primary(stub_source(ok_response(rich_data)), persistence, clock, ttl=10)
        await primary.get()
        size = primary.record_bytes
        clock.advance(10)
        assert primary.evict_if_stale() == size
        assert primary.peek() is None
        assert primary.evictions == 1

    def test_empty_slot(self, persistence, clock, stub_source):
        assert _primary(stub_source(), persistence, clock).evict_if_stale() == 0

    @pytest.mark.asyncio
    async def test_flush(self, persistence, clock, rich_data, stub_source, ok_response):
        primary = _primary(stub_source(ok_response(rich_data)), persistence, clock)
        assert await primary.flush() is False
        await primary.get()
        assert await primary.flush() is True

# tests/conftest.py - v2
"""Shared test fixtures: fake clock, scripted tag source, sample snapshots.

No external dependencies: storage is in-memory or under tmp_path.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from notetags.cache.memory_store import InMemoryStorage
from notetags.config.settings import TagCacheConfig
from notetags.tags.models import (
    DocumentTagIndex,
    GlobalTagsData,
    TagCount,
    TagRelation,
    TagsResponse,
)
from notetags.tags.service import GlobalTagService


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class StubSource:
    """Tag data source returning scripted responses and counting calls.

    When ``gate`` is set the call blocks until the test releases it, which
    keeps a fetch in flight.
    """

    def __init__(self, *responses: object, gate: asyncio.Event | None = None) -> None:
        self.responses = list(responses)
        self.calls = 0
        self.gate = gate

    async def __call__(self):
        self.calls += 1
        if self.gate is not None:
            await self.gate.wait()
        response = self.responses[min(self.calls, len(self.responses)) - 1]
        if isinstance(response, BaseException):
            raise response
        return response


def make_data(*tags: tuple[str, int]) -> GlobalTagsData:
    return GlobalTagsData(
        top_tags=[TagCount(tag=t, count=c) for t, c in tags],
        tag_relations=[],
        document_tags=[],
    )


def ok(data: GlobalTagsData) -> TagsResponse:
    return TagsResponse(success=True, tags_data=data)


# === FIXTURES ===


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def storage() -> InMemoryStorage:
    return InMemoryStorage()


@pytest.fixture
def config() -> TagCacheConfig:
    return TagCacheConfig(
        primary_ttl=300.0,
        filter_ttl=120.0,
        suggestion_ttl=30.0,
        max_filter_entries=50,
        max_suggestion_entries=20,
    )


@pytest.fixture
def project_data() -> GlobalTagsData:
    """Snapshot with two prefix matches for "proj" and one non-match."""
    return make_data(("project", 2), ("projectX", 9), ("abc", 1))


@pytest.fixture
def rich_data() -> GlobalTagsData:
    return GlobalTagsData(
        top_tags=[
            TagCount(tag="idea", count=5),
            TagCount(tag="todo", count=3),
            TagCount(tag="reading", count=2),
        ],
        tag_relations=[TagRelation(source="idea", target="todo", strength=0.5)],
        document_tags=[
            DocumentTagIndex(file_path="inbox.md", tags=["idea", "todo"]),
            DocumentTagIndex(file_path="books/dune.md", tags=["reading", "idea"]),
        ],
    )


@pytest.fixture
def make_service(storage, config, clock):
    """Factory: service over the shared storage/clock with a given source."""

    def _make(source, **overrides) -> GlobalTagService:
        return GlobalTagService(
            source=source,
            storage=overrides.get("storage", storage),
            config=overrides.get("config", config),
            clock=overrides.get("clock", clock),
        )

    return _make


@pytest.fixture
def stub_source():
    """Factory for StubSource."""
    return StubSource


@pytest.fixture
def tags_data():
    """Factory: ``tags_data(("idea", 5), ...)`` -> GlobalTagsData."""
    return make_data


@pytest.fixture
def ok_response():
    """Factory: wrap a snapshot in a successful TagsResponse."""
    return ok

# tests/unit/logging/test_unit_context.py - v2
"""Tests for logging/context.py."""

from __future__ import annotations

import asyncio

import pytest

from notetags.logging.context import (
    LogContext,
    clear_context,
    get_context,
    reset_operation_context,
    set_consumer_context,
    set_operation_context,
)


@pytest.fixture(autouse=True)
def _clean_context():
    clear_context()
    yield
    clear_context()


class TestLogContext:
    def test_empty_as_dict(self):
        assert LogContext().as_dict() == {}

    def test_as_dict_skips_none(self):
        assert LogContext(operation="get").as_dict() == {"operation": "get"}


class TestContextVars:
    def test_default_empty(self):
        ctx = get_context()
        assert ctx.operation is None
        assert ctx.consumer is None

    def test_operation_reset(self):
        token = set_operation_context("refresh")
        assert get_context().operation == "refresh"
        reset_operation_context(token)
        assert get_context().operation is None

    def test_nested_operations(self):
        outer = set_operation_context("cleanup")
        inner = set_operation_context("get")
        reset_operation_context(inner)
        assert get_context().operation == "cleanup"
        reset_operation_context(outer)

    def test_consumer(self):
        set_consumer_context("editor-2")
        assert get_context().consumer == "editor-2"

    def test_clear(self):
        set_consumer_context("cli")
        set_operation_context("get")
        clear_context()
        assert get_context().as_dict() == {}

    @pytest.mark.asyncio
    async def test_isolated_per_task(self):
        async def worker(name: str) -> str | None:
            set_consumer_context(name)
            await asyncio.sleep(0)
            return get_context().consumer

        results = await asyncio.gather(worker("a"), worker("b"))
        assert results == ["a", "b"]
        assert get_context().consumer is None

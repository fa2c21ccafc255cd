# src/cache/memory_store.py - v1
"""In-memory storage (STORAGE_BACKEND=memory), for tests and ephemeral runs."""

from __future__ import annotations

from notetags.cache.base_storage import BaseStorage


class InMemoryStorage(BaseStorage):
    """Dict-backed storage. Contents die with the process."""

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> str | None:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data

# src/cache/base_storage.py - v2
"""Abstract key-value storage used by the persistence adapter."""

from __future__ import annotations

from abc import ABC, abstractmethod


class BaseStorage(ABC):
    """Narrow string-keyed storage: one serialized value per key."""

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove ``key``. Deleting an absent key is a no-op."""

    def close(self) -> None:
        """Release backend resources. Default: nothing to release."""

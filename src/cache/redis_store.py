# src/cache/redis_store.py - v2
"""Redis-based storage (STORAGE_BACKEND=redis).

Requires 'redis' package: pip install notetags[redis].
Only a persistence target: the cache itself stays single-process.
"""

from __future__ import annotations

import logging

from notetags.cache.base_storage import BaseStorage

logger = logging.getLogger(__name__)

_KEY_PREFIX = "notetags:"


class RedisStorage(BaseStorage):
    """Redis-backed key-value storage."""

    def __init__(self, redis_url: str) -> None:
        try:
            import redis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install redis"
            ) from e

        self._client = redis.Redis.from_url(redis_url, decode_responses=True)

    async def get(self, key: str) -> str | None:
        """Retrieve value by key."""
        return self._client.get(f"{_KEY_PREFIX}{key}")

    async def set(self, key: str, value: str) -> None:
        """Store a value."""
        self._client.set(f"{_KEY_PREFIX}{key}", value)

    async def delete(self, key: str) -> None:
        """Remove a value."""
        self._client.delete(f"{_KEY_PREFIX}{key}")

    def close(self) -> None:
        """Close the Redis connection."""
        self._client.close()

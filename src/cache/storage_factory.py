# src/cache/storage_factory.py - v3
"""Factory for storage backend instantiation."""

from __future__ import annotations

from notetags.cache.base_storage import BaseStorage
from notetags.config.settings import Settings


def create_storage(settings: Settings | None = None) -> BaseStorage:
    """Instantiate the configured storage backend.

    Args:
        settings: Application settings. Defaults to JSON backend.

    Returns:
        Configured BaseStorage implementation.
    """
    backend = "json" if settings is None else settings.storage_backend
    storage_root = "~/.notetags/cache" if settings is None else str(settings.storage_root)

    if backend == "json":
        from notetags.cache.json_store import JsonFileStorage
        return JsonFileStorage(root=storage_root)

    if backend == "sqlite":
        from notetags.cache.sqlite_store import SqliteStorage
        return SqliteStorage(db_path=f"{storage_root}/notetags_cache.db")

    if backend == "redis":
        from notetags.cache.redis_store import RedisStorage
        if settings is None or not settings.storage_redis_url:
            raise ValueError(
                "STORAGE_REDIS_URL must be set when STORAGE_BACKEND=redis"
            )
        return RedisStorage(redis_url=settings.storage_redis_url)

    if backend == "memory":
        from notetags.cache.memory_store import InMemoryStorage
        return InMemoryStorage()

    raise ValueError(f"Unsupported storage backend: {backend!r}")

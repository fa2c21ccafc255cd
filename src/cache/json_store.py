# src/cache/json_store.py - v3
"""JSON file-based storage (default STORAGE_BACKEND=json).

Stores each key as its own file under STORAGE_ROOT. Writes go to a temporary
sibling first and are renamed into place so a crash never leaves a
half-written record behind.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from notetags.cache.base_storage import BaseStorage

logger = logging.getLogger(__name__)


class JsonFileStorage(BaseStorage):
    """File-based storage, one JSON document per key."""

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root).expanduser()
        self._root.mkdir(parents=True, exist_ok=True)

    async def get(self, key: str) -> str | None:
        """Read the file for ``key``.

        Raises:
            UnicodeDecodeError: If the stored bytes are not UTF-8.
        """
        path = self._entry_path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning("Failed to read storage entry %s: %s", key, e)
            return None

    async def set(self, key: str, value: str) -> None:
        """Atomically replace the file for ``key``."""
        path = self._entry_path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".json.tmp")
        tmp.write_text(value, encoding="utf-8")
        os.replace(tmp, path)

    async def delete(self, key: str) -> None:
        """Remove the file for ``key``."""
        path = self._entry_path(key)
        if path.exists():
            path.unlink()

    def _entry_path(self, key: str) -> Path:
        """Return file path for a storage key."""
        safe_key = key.replace("/", "_").replace("\\", "_")
        return self._root / f"{safe_key}.json"

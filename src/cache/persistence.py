# src/cache/persistence.py - v2
"""Durable save/load of the primary snapshot record.

A persisted record is trusted only when the raw JSON has the expected shape
(``data`` object, list-typed ``data.topTags``, non-null ``timestamp``),
validates as a CacheRecord and carries a matching fingerprint. Anything else,
including bytes that do not decode as text, reads as "no persisted cache" and
the bad entry is deleted. A backend that cannot be reached leaves the entry
in place.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import ValidationError

from notetags.cache.base_storage import BaseStorage
from notetags.cache.fingerprint import DEFAULT_TOP_N, verify_fingerprint
from notetags.cache.models import CacheRecord

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "global_tags_cache"


class CorruptRecordError(ValueError):
    """Persisted payload failed the structural or fingerprint check."""


class SnapshotPersistence:
    """Reads and writes the single CacheRecord under a fixed storage key."""

    def __init__(
        self,
        storage: BaseStorage,
        key: str = DEFAULT_STORAGE_KEY,
        fingerprint_top_n: int = DEFAULT_TOP_N,
    ) -> None:
        self._storage = storage
        self._key = key
        self._top_n = fingerprint_top_n

    @property
    def key(self) -> str:
        return self._key

    async def save(self, record: CacheRecord) -> bool:
        """Persist ``record``. Returns False (and logs) on storage failure."""
        try:
            await self._storage.set(self._key, record.model_dump_json(by_alias=True))
        except Exception as e:
            logger.warning("Failed to persist tag cache record: %s", e)
            return False
        return True

    async def load(self) -> CacheRecord | None:
        """Return the persisted record, or None when absent or corrupt."""
        try:
            return await self._read()
        except CorruptRecordError as e:
            logger.warning("Discarding corrupt persisted tag cache: %s", e)
            await self.delete()
            return None

    async def _read(self) -> CacheRecord | None:
        try:
            raw = await self._storage.get(self._key)
        except UnicodeDecodeError as e:
            raise CorruptRecordError(f"undecodable payload: {e}") from e
        except Exception as e:
            logger.warning("Failed to read persisted tag cache: %s", e)
            return None
        if raw is None:
            return None
        return self.parse(raw)

    async def delete(self) -> None:
        """Remove the persisted record. Failures are logged, never raised."""
        try:
            await self._storage.delete(self._key)
        except Exception as e:
            logger.warning("Failed to delete persisted tag cache: %s", e)

    def parse(self, raw: str) -> CacheRecord:
        """Decode and verify a serialized record.

        Raises:
            CorruptRecordError: If the payload cannot be trusted.
        """
        try:
            payload = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            raise CorruptRecordError(f"invalid JSON: {e}") from e

        _check_shape(payload)

        try:
            record = CacheRecord.model_validate(payload)
        except ValidationError as e:
            raise CorruptRecordError(
                f"schema mismatch ({e.error_count()} errors)"
            ) from e

        if not verify_fingerprint(record.data, record.fingerprint, self._top_n):
            raise CorruptRecordError("fingerprint mismatch")
        return record


def _check_shape(payload: Any) -> None:
    if not isinstance(payload, dict):
        raise CorruptRecordError("record is not an object")
    data = payload.get("data")
    if not isinstance(data, dict):
        raise CorruptRecordError("missing data")
    if not isinstance(data.get("topTags"), list):
        raise CorruptRecordError("topTags is not a list")
    if payload.get("timestamp") is None:
        raise CorruptRecordError("missing timestamp")

# src/cache/models.py - v2
"""Cache domain models: CacheRecord, CacheStats, CleanupReport, MemoryPressure."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel

from notetags.tags.models import GlobalTagsData, WireModel

RECORD_VERSION = 1


class CacheRecord(WireModel):
    """The single primary-tier slot: snapshot plus when and what was stored."""

    data: GlobalTagsData
    timestamp: datetime
    fingerprint: str
    version: int = RECORD_VERSION


class CacheStats(BaseModel):
    """Diagnostic view over all three tiers."""

    primary_entries: int = 0
    filter_entries: int = 0
    suggestion_entries: int = 0
    primary_bytes: int = 0
    primary_valid: bool = False
    primary_over_budget: bool = False
    primary_age_seconds: float | None = None
    hits: int = 0
    misses: int = 0
    fetches: int = 0
    evictions: int = 0


class CleanupReport(BaseModel):
    """Outcome of a memory cleanup pass."""

    cleared_items: int = 0
    freed_space_estimate: int = 0


class MemoryPressure(str, Enum):
    """Host-reported memory pressure, mapped to eviction depth."""

    LOW = "low"
    MODERATE = "moderate"
    CRITICAL = "critical"

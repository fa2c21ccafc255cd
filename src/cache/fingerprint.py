# src/cache/fingerprint.py - v3
"""Snapshot fingerprinting and size estimation.

The fingerprint summarises a snapshot by its three list sizes and its
leading top tags. It only detects structurally corrupt persisted records:
two different snapshots sharing the same sizes and leading tags collide, so
it must never be used for equality or deduplication.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

from notetags.tags.models import GlobalTagsData

DEFAULT_TOP_N = 10
FINGERPRINT_LENGTH = 16


def compute_fingerprint(data: GlobalTagsData, top_n: int = DEFAULT_TOP_N) -> str:
    """Compute the short deterministic digest of a snapshot.

    Args:
        data: Snapshot to summarise.
        top_n: Number of leading top tags included in the digest.

    Returns:
        Hex string of FINGERPRINT_LENGTH characters.
    """
    summary = {
        "topTags": len(data.top_tags),
        "tagRelations": len(data.tag_relations),
        "documentTags": len(data.document_tags),
        "head": [[t.tag, t.count] for t in data.top_tags[:top_n]],
    }
    canonical = json.dumps(summary, sort_keys=True, ensure_ascii=False)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def verify_fingerprint(
    data: GlobalTagsData, fingerprint: str, top_n: int = DEFAULT_TOP_N
) -> bool:
    """Return True when ``fingerprint`` matches a fresh computation."""
    return bool(fingerprint) and compute_fingerprint(data, top_n) == fingerprint


def estimate_size(value: Any) -> int:
    """Rough in-memory footprint: UTF-8 length of the JSON serialization."""
    try:
        if hasattr(value, "model_dump_json"):
            return len(value.model_dump_json(by_alias=True).encode("utf-8"))
        if isinstance(value, list):
            value = [
                item.model_dump(by_alias=True) if hasattr(item, "model_dump") else item
                for item in value
            ]
        return len(json.dumps(value, default=str).encode("utf-8"))
    except (TypeError, ValueError):
        return 1024  # unserializable

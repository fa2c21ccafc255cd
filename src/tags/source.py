# src/tags/source.py - v1
"""Tag data sources.

A tag data source is any zero-argument coroutine function returning a
``TagsResponse`` (or a mapping that validates as one). ``MarkdownTagSource``
builds the snapshot by scanning a notes folder for ``@tag`` mentions.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections import Counter
from itertools import combinations
from pathlib import Path

from notetags.tags.models import (
    DocumentTagIndex,
    GlobalTagsData,
    TagCount,
    TagRelation,
    TagsResponse,
)

logger = logging.getLogger(__name__)

NOTE_SUFFIXES = (".md", ".markdown")

# "@tag" not preceded by a word char, so e-mail addresses do not match.
_TAG_PATTERN = re.compile(r"(?<![\w@])@(\w[\w\-/]*)")
_FENCED_CODE = re.compile(r"^```.*?^```", re.MULTILINE | re.DOTALL)
_INLINE_CODE = re.compile(r"`[^`\n]*`")


def extract_tags(text: str) -> list[str]:
    """Return every @tag mention in ``text``, in order, code spans excluded."""
    text = _FENCED_CODE.sub("", text)
    text = _INLINE_CODE.sub("", text)
    tags = []
    for match in _TAG_PATTERN.finditer(text):
        tag = match.group(1).rstrip("-/")
        if tag:
            tags.append(tag)
    return tags


class MarkdownTagSource:
    """Aggregates @tag usage across every Markdown note under ``root``."""

    def __init__(self, root: Path | str, max_relations: int = 500) -> None:
        self._root = Path(root).expanduser()
        self._max_relations = max_relations

    @property
    def root(self) -> Path:
        return self._root

    async def __call__(self) -> TagsResponse:
        if not self._root.is_dir():
            return TagsResponse(
                success=False, error=f"Notes folder not found: {self._root}"
            )
        data = await asyncio.to_thread(self.scan)
        return TagsResponse(success=True, tags_data=data)

    def scan(self) -> GlobalTagsData:
        """Walk the notes folder and build a full snapshot."""
        counts: Counter[str] = Counter()
        doc_freq: Counter[str] = Counter()
        pair_freq: Counter[tuple[str, str]] = Counter()
        documents: list[DocumentTagIndex] = []

        for path in sorted(self._iter_notes()):
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Skipping unreadable note %s: %s", path, e)
                continue

            mentions = extract_tags(text)
            if not mentions:
                continue
            counts.update(mentions)
            unique = list(dict.fromkeys(mentions))
            doc_freq.update(unique)
            pair_freq.update(combinations(sorted(unique), 2))
            documents.append(
                DocumentTagIndex(
                    file_path=path.relative_to(self._root).as_posix(), tags=unique
                )
            )

        top_tags = [
            TagCount(tag=tag, count=count)
            for tag, count in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
        ]
        relations = [
            TagRelation(
                source=a,
                target=b,
                strength=round(together / min(doc_freq[a], doc_freq[b]), 3),
            )
            for (a, b), together in pair_freq.items()
        ]
        relations.sort(key=lambda r: (-r.strength, r.source, r.target))

        logger.debug(
            "Scanned %d notes: %d tags, %d relations",
            len(documents),
            len(top_tags),
            len(relations),
        )
        return GlobalTagsData(
            top_tags=top_tags,
            tag_relations=relations[: self._max_relations],
            document_tags=documents,
        )

    def _iter_notes(self):
        for path in self._root.rglob("*"):
            if path.suffix.lower() in NOTE_SUFFIXES and path.is_file():
                yield path

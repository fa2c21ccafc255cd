# src/tags/models.py - v2
"""Tag domain models: TagCount, TagRelation, DocumentTagIndex, GlobalTagsData.

Field names are snake_case in Python and camelCase on the wire, so payloads
from the note store (``topTags``, ``filePath``...) validate unchanged and
persisted records keep the same shape.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for models exchanged with the note store and persistence."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TagCount(WireModel):
    """Usage count of a single tag across the note corpus."""

    tag: str
    count: int = Field(ge=0)


class TagRelation(WireModel):
    """Edge of the implicit tag co-occurrence graph."""

    source: str
    target: str
    strength: float


class DocumentTagIndex(WireModel):
    """Ordered tag membership of one note."""

    file_path: str
    tags: list[str] = Field(default_factory=list)


class GlobalTagsData(WireModel):
    """Application-wide tag snapshot. Replaced wholesale, never patched."""

    top_tags: list[TagCount] = Field(default_factory=list)
    tag_relations: list[TagRelation] = Field(default_factory=list)
    document_tags: list[DocumentTagIndex] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_unique_keys(self) -> GlobalTagsData:
        """Tags are unique in ``top_tags``, paths unique in ``document_tags``."""
        _reject_duplicates("topTags.tag", [t.tag for t in self.top_tags])
        _reject_duplicates("documentTags.filePath", [d.file_path for d in self.document_tags])
        return self

    @classmethod
    def empty(cls) -> GlobalTagsData:
        return cls()

    def is_empty(self) -> bool:
        return not (self.top_tags or self.tag_relations or self.document_tags)


def _reject_duplicates(field: str, values: list[str]) -> None:
    seen: set[str] = set()
    for value in values:
        if value in seen:
            raise ValueError(f"duplicate {field}: {value!r}")
        seen.add(value)


class TagsResponse(WireModel):
    """Envelope returned by a tag data source."""

    success: bool
    tags_data: GlobalTagsData | None = None
    error: str | None = None

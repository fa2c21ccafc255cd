# src/config/settings.py - v1
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for every cache tunable. ``TagCacheConfig`` is the
immutable view of the cache-related fields handed to the cache components.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Tier expiry (seconds) ===
    primary_ttl_seconds: float = 300.0
    filter_ttl_seconds: float = 120.0
    suggestion_ttl_seconds: float = 30.0

    # === Tier size limits ===
    max_primary_bytes: int = 5 * 1024 * 1024
    max_filter_entries: int = 200
    max_suggestion_entries: int = 100

    # === Integrity ===
    fingerprint_top_n: int = 10

    # === Persistence ===
    storage_backend: Literal["json", "sqlite", "redis", "memory"] = "json"
    storage_root: Path = Path("~/.notetags/cache")
    storage_redis_url: str = ""
    storage_key: str = "global_tags_cache"

    # === Tag source ===
    notes_root: Path = Path("~/Notes")

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator(
        "primary_ttl_seconds", "filter_ttl_seconds", "suggestion_ttl_seconds"
    )
    @classmethod
    def validate_ttl(cls, v: float, info) -> float:  # noqa: N805
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @field_validator("max_filter_entries", "max_suggestion_entries", "fingerprint_top_n")
    @classmethod
    def validate_positive_count(cls, v: int, info) -> int:  # noqa: N805
        if v < 1:
            raise ValueError(f"{info.field_name} must be >= 1")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.suggestion_ttl_seconds > self.filter_ttl_seconds:
            errors.append("SUGGESTION_TTL_SECONDS must be <= FILTER_TTL_SECONDS")

        if self.filter_ttl_seconds > self.primary_ttl_seconds:
            errors.append("FILTER_TTL_SECONDS must be <= PRIMARY_TTL_SECONDS")

        if self.storage_backend == "redis" and not self.storage_redis_url:
            errors.append("STORAGE_REDIS_URL must be set when STORAGE_BACKEND=redis")

        if not self.storage_key.strip():
            errors.append("STORAGE_KEY must not be empty")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self


@dataclass(frozen=True)
class TagCacheConfig:
    """Every tunable of the tag cache, in one place."""

    primary_ttl: float = 300.0
    filter_ttl: float = 120.0
    suggestion_ttl: float = 30.0
    max_primary_bytes: int = 5 * 1024 * 1024
    max_filter_entries: int = 200
    max_suggestion_entries: int = 100
    fingerprint_top_n: int = 10
    storage_key: str = "global_tags_cache"

    @classmethod
    def from_settings(cls, settings: Settings) -> TagCacheConfig:
        return cls(
            primary_ttl=settings.primary_ttl_seconds,
            filter_ttl=settings.filter_ttl_seconds,
            suggestion_ttl=settings.suggestion_ttl_seconds,
            max_primary_bytes=settings.max_primary_bytes,
            max_filter_entries=settings.max_filter_entries,
            max_suggestion_entries=settings.max_suggestion_entries,
            fingerprint_top_n=settings.fingerprint_top_n,
            storage_key=settings.storage_key,
        )


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or CLI flags).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]

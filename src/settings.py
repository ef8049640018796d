#!/usr/bin/env python
"""
Validated settings for the song metadata cache.

Merges defaults from config.Config with optional runtime overrides.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from config import Config
from src.utils.cache import (
    DEFAULT_CLEANUP_INTERVAL_SECONDS,
    DEFAULT_MAX_ENTRIES,
    DEFAULT_TTL_SECONDS,
)


def _positive_int_or(value: object, default: int) -> int:
    try:
        number = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


class SongCacheSettings(BaseModel):
    """Sizing and expiry for the process-wide song cache."""

    model_config = ConfigDict(extra="ignore")

    ttl_seconds: int = DEFAULT_TTL_SECONDS
    cleanup_interval_seconds: int = DEFAULT_CLEANUP_INTERVAL_SECONDS
    max_entries: int = DEFAULT_MAX_ENTRIES

    @field_validator("ttl_seconds", mode="before")
    @classmethod
    def _coerce_ttl(cls, value: object) -> int:
        return _positive_int_or(value, DEFAULT_TTL_SECONDS)

    @field_validator("cleanup_interval_seconds", mode="before")
    @classmethod
    def _coerce_cleanup_interval(cls, value: object) -> int:
        return _positive_int_or(value, DEFAULT_CLEANUP_INTERVAL_SECONDS)

    @field_validator("max_entries", mode="before")
    @classmethod
    def _coerce_max_entries(cls, value: object) -> int:
        return _positive_int_or(value, DEFAULT_MAX_ENTRIES)


def load_song_cache_settings(overrides: Optional[Dict[str, Any]] = None) -> SongCacheSettings:
    """Load settings merging config defaults with optional runtime overrides."""
    data: Dict[str, Any] = {
        "ttl_seconds": Config.SONG_CACHE_TTL_SECONDS,
        "cleanup_interval_seconds": Config.SONG_CACHE_CLEANUP_INTERVAL_SECONDS,
        "max_entries": Config.SONG_CACHE_MAX_ENTRIES,
    }
    if overrides:
        data.update(overrides)
    return SongCacheSettings.model_validate(data)


__all__ = [
    "SongCacheSettings",
    "load_song_cache_settings",
]

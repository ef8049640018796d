"""Catalog domain services (song metadata cache)."""

from .song_cache import (
    ClearReport,
    InvalidSongKeyError,
    SongCache,
    SongKey,
    get_song_cache,
    reset_song_cache,
)

__all__ = [
    "ClearReport",
    "InvalidSongKeyError",
    "SongCache",
    "SongKey",
    "get_song_cache",
    "reset_song_cache",
]

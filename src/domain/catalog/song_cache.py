"""Process-wide song metadata cache keyed by ``(platform, id)``."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, NamedTuple, Optional, Tuple

from src.models.dto import SongInfo
from src.observability.metrics import (
    record_cache_evictions,
    record_cache_lookups,
    record_cache_writes,
    update_cache_size,
)
from src.settings import SongCacheSettings, load_song_cache_settings
from src.utils.cache import MISSING, CacheStats, CleanupReport, TTLCache

logger = logging.getLogger(__name__)

KEY_SEPARATOR = "+"


class InvalidSongKeyError(ValueError):
    """Raised for song keys that cannot be split into platform and id."""


class SongKey(NamedTuple):
    platform: str
    id: str

    @classmethod
    def of(cls, platform: str, song_id: str) -> "SongKey":
        platform = (platform or "").strip()
        song_id = (song_id or "").strip()
        if not platform or not song_id:
            raise InvalidSongKeyError("platform and id are required")
        if KEY_SEPARATOR in platform:
            raise InvalidSongKeyError(f"platform must not contain {KEY_SEPARATOR!r}")
        return cls(platform, song_id)

    @classmethod
    def parse(cls, text: str) -> "SongKey":
        """Split a ``platform+id`` key on its first separator."""
        platform, sep, song_id = (text or "").partition(KEY_SEPARATOR)
        if not sep:
            raise InvalidSongKeyError(f"song key {text!r} has no {KEY_SEPARATOR!r} separator")
        return cls.of(platform, song_id)

    @property
    def composite(self) -> str:
        return f"{self.platform}{KEY_SEPARATOR}{self.id}"


@dataclass(frozen=True)
class ClearReport:
    cleared_count: int


class SongCache:
    """Bounded TTL cache of :class:`SongInfo` records.

    Entries live for ``ttl_seconds`` after their last write. Reads never
    extend that lifetime. Writes sweep the cache at most once per
    ``cleanup_interval_seconds``; the sweep drops expired songs and then the
    songs written longest ago until at most ``max_entries`` remain.

    Keys go through :meth:`SongKey.of`, so every operation raises
    :class:`InvalidSongKeyError` for blank parts or a platform containing
    ``+``. A rejected ``set_many`` writes nothing.
    """

    def __init__(
        self,
        settings: Optional[SongCacheSettings] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self.settings = settings or load_song_cache_settings()
        cache_kwargs = {
            "ttl": self.settings.ttl_seconds,
            "cleanup_interval": self.settings.cleanup_interval_seconds,
            "max_entries": self.settings.max_entries,
            "on_cleanup": self._record_cleanup,
        }
        if clock is not None:
            cache_kwargs["clock"] = clock
        self._cache = TTLCache(**cache_kwargs)

    def get(self, platform: str, song_id: str) -> Optional[SongInfo]:
        song = self._cache.get(SongKey.of(platform, song_id))
        if song is MISSING:
            record_cache_lookups(hits=0, misses=1)
            return None
        record_cache_lookups(hits=1, misses=0)
        return song

    def set(self, platform: str, song_id: str, song: SongInfo) -> None:
        self._cache.set(SongKey.of(platform, song_id), song)
        record_cache_writes(1, len(self._cache))

    def get_many(self, keys: Iterable[Tuple[str, str]]) -> Dict[str, SongInfo]:
        """Return live songs for ``keys`` keyed by ``platform+id``; misses are omitted."""
        requested = [SongKey.of(platform, song_id) for platform, song_id in keys]
        found = self._cache.get_many(requested)
        record_cache_lookups(hits=len(found), misses=len(set(requested)) - len(found))
        return {key.composite: song for key, song in found.items()}

    def set_many(self, items: Iterable[Tuple[str, str, SongInfo]]) -> None:
        written = self._cache.set_many(
            [(SongKey.of(platform, song_id), song) for platform, song_id, song in items]
        )
        record_cache_writes(written, len(self._cache))

    def cleanup(self) -> CleanupReport:
        return self._cache.cleanup()

    def clear(self) -> ClearReport:
        cleared = self._cache.clear()
        record_cache_evictions(expired=0, size_limited=0, cleared=cleared)
        update_cache_size(0)
        logger.info("Song cache cleared: %s entries removed", cleared)
        return ClearReport(cleared_count=cleared)

    def stats(self) -> CacheStats:
        return self._cache.stats()

    def __len__(self) -> int:
        return len(self._cache)

    def _record_cleanup(self, report: CleanupReport) -> None:
        record_cache_evictions(report.expired_removed, report.size_limited_removed)
        update_cache_size(report.total_remaining)
        removed = report.expired_removed + report.size_limited_removed
        log = logger.info if removed else logger.debug
        log(
            "Song cache cleanup: expired=%s size_limited=%s remaining=%s",
            report.expired_removed,
            report.size_limited_removed,
            report.total_remaining,
        )


_default_cache: Optional[SongCache] = None
_default_cache_lock = threading.Lock()


def get_song_cache() -> SongCache:
    """Return the process-wide cache, building it from settings on first use."""
    global _default_cache
    if _default_cache is None:
        with _default_cache_lock:
            if _default_cache is None:
                _default_cache = SongCache()
                logger.info(
                    "Song cache initialized: ttl=%ss cleanup_interval=%ss max_entries=%s",
                    _default_cache.settings.ttl_seconds,
                    _default_cache.settings.cleanup_interval_seconds,
                    _default_cache.settings.max_entries,
                )
    return _default_cache


def reset_song_cache() -> None:
    global _default_cache
    with _default_cache_lock:
        _default_cache = None


__all__ = [
    "ClearReport",
    "InvalidSongKeyError",
    "KEY_SEPARATOR",
    "SongCache",
    "SongKey",
    "get_song_cache",
    "reset_song_cache",
]

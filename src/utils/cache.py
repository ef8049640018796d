"""In-memory TTL cache with lazy, write-triggered cleanup and a size ceiling."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from threading import RLock
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

MISSING = object()

DEFAULT_TTL_SECONDS = 24 * 60 * 60
DEFAULT_CLEANUP_INTERVAL_SECONDS = 60 * 60
DEFAULT_MAX_ENTRIES = 5000


@dataclass(frozen=True)
class CacheEntry:
    value: Any
    expires_at: float


@dataclass(frozen=True)
class CleanupReport:
    expired_removed: int
    size_limited_removed: int
    total_remaining: int


@dataclass(frozen=True)
class CacheStats:
    size: int
    max_size: int
    ttl: float


class TTLCache:
    """Thread-safe TTL cache bounded by ``max_entries``.

    Expired entries are never returned, but they are only physically removed
    on read of that key or by :meth:`cleanup`. Cleanup is not scheduled: a
    write runs it first when more than ``cleanup_interval`` seconds have
    passed since the previous one. When the cache is still over capacity
    after dropping expired entries, the entries closest to expiry (the least
    recently written ones) are evicted. ``on_cleanup`` receives the report of
    every sweep, including those triggered by writes, after the cache lock
    has been released.
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        cleanup_interval: float = DEFAULT_CLEANUP_INTERVAL_SECONDS,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.time,
        on_cleanup: Optional[Callable[[CleanupReport], None]] = None,
    ) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        if cleanup_interval <= 0:
            raise ValueError("cleanup_interval must be positive")
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self.ttl = ttl
        self.cleanup_interval = cleanup_interval
        self.max_entries = max_entries
        self._clock = clock
        self._on_cleanup = on_cleanup
        self._data: Dict[Hashable, CacheEntry] = {}
        self._last_cleanup_at = 0.0
        self._lock = RLock()

    @property
    def last_cleanup_at(self) -> float:
        return self._last_cleanup_at

    def _cleanup_due(self, now: float) -> bool:
        return now - self._last_cleanup_at > self.cleanup_interval

    def get(self, key: Hashable, default: Any = MISSING) -> Any:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return default
            if entry.expires_at <= self._clock():
                del self._data[key]
                return default
            return entry.value

    def set(self, key: Hashable, value: Any) -> None:
        report = None
        with self._lock:
            now = self._clock()
            if self._cleanup_due(now):
                report = self._sweep(now)
            self._data[key] = CacheEntry(value=value, expires_at=now + self.ttl)
        if report is not None:
            self._notify(report)

    def get_many(self, keys: Iterable[Hashable]) -> Dict[Hashable, Any]:
        """Return the live entries among ``keys``; misses are left out."""
        with self._lock:
            now = self._clock()
            found: Dict[Hashable, Any] = {}
            for key in keys:
                entry = self._data.get(key)
                if entry is not None and entry.expires_at > now:
                    found[key] = entry.value
            return found

    def set_many(self, items: Iterable[Tuple[Hashable, Any]]) -> int:
        """Store every ``(key, value)`` pair with one shared expiry.

        Returns the number of pairs written.
        """
        report = None
        with self._lock:
            now = self._clock()
            if self._cleanup_due(now):
                report = self._sweep(now)
            expires_at = now + self.ttl
            written = 0
            for key, value in items:
                self._data[key] = CacheEntry(value=value, expires_at=expires_at)
                written += 1
        if report is not None:
            self._notify(report)
        return written

    def cleanup(self) -> CleanupReport:
        with self._lock:
            report = self._sweep(self._clock())
        self._notify(report)
        return report

    def _sweep(self, now: float) -> CleanupReport:
        # Caller holds the lock
        expired = [key for key, entry in self._data.items() if entry.expires_at <= now]
        for key in expired:
            del self._data[key]

        size_limited = 0
        overflow = len(self._data) - self.max_entries
        if overflow > 0:
            oldest: List[Tuple[Hashable, CacheEntry]] = sorted(
                self._data.items(), key=lambda item: item[1].expires_at
            )[:overflow]
            for key, _ in oldest:
                del self._data[key]
            size_limited = len(oldest)

        self._last_cleanup_at = now
        return CleanupReport(
            expired_removed=len(expired),
            size_limited_removed=size_limited,
            total_remaining=len(self._data),
        )

    def _notify(self, report: CleanupReport) -> None:
        if self._on_cleanup is not None:
            try:
                self._on_cleanup(report)
            except Exception:
                logger.warning("Cache cleanup callback failed", exc_info=True)

    def clear(self) -> int:
        with self._lock:
            size = len(self._data)
            self._data.clear()
            return size

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(size=len(self._data), max_size=self.max_entries, ttl=self.ttl)

    def __len__(self) -> int:
        with self._lock:
            return len(self._data)

    def __contains__(self, key: Hashable) -> bool:
        with self._lock:
            entry = self._data.get(key)
            return entry is not None and entry.expires_at > self._clock()


__all__ = [
    "TTLCache",
    "CacheEntry",
    "CacheStats",
    "CleanupReport",
    "MISSING",
    "DEFAULT_TTL_SECONDS",
    "DEFAULT_CLEANUP_INTERVAL_SECONDS",
    "DEFAULT_MAX_ENTRIES",
]

from __future__ import annotations

from flask import Blueprint, Response
from prometheus_client import Counter, Gauge, generate_latest

metrics_blueprint = Blueprint("metrics_bp", __name__)

CONTENT_TYPE_LATEST = "text/plain; version=0.0.4; charset=utf-8"

SONG_CACHE_HITS = Counter(
    "songcache_hits_total",
    "Song cache lookups that returned live metadata.",
)
SONG_CACHE_MISSES = Counter(
    "songcache_misses_total",
    "Song cache lookups that found nothing or an expired entry.",
)
SONG_CACHE_WRITES = Counter(
    "songcache_writes_total",
    "Song metadata entries written to the cache.",
)
SONG_CACHE_EVICTIONS = Counter(
    "songcache_evictions_total",
    "Entries removed from the song cache, by reason.",
    ["reason"],
)
SONG_CACHE_SIZE = Gauge(
    "songcache_entries",
    "Current number of entries held by the song cache.",
)


def record_cache_lookups(hits: int, misses: int) -> None:
    if hits:
        SONG_CACHE_HITS.inc(hits)
    if misses:
        SONG_CACHE_MISSES.inc(misses)


def record_cache_writes(count: int, size: int) -> None:
    if count:
        SONG_CACHE_WRITES.inc(count)
    update_cache_size(size)


def record_cache_evictions(expired: int, size_limited: int, cleared: int = 0) -> None:
    if expired:
        SONG_CACHE_EVICTIONS.labels(reason="expired").inc(expired)
    if size_limited:
        SONG_CACHE_EVICTIONS.labels(reason="size_limit").inc(size_limited)
    if cleared:
        SONG_CACHE_EVICTIONS.labels(reason="cleared").inc(cleared)


def update_cache_size(size: int) -> None:
    SONG_CACHE_SIZE.set(max(0, size))


@metrics_blueprint.route("/metrics")
def metrics_endpoint() -> Response:
    return Response(generate_latest(), mimetype=CONTENT_TYPE_LATEST)

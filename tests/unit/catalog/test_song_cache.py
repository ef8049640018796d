import pytest
from hypothesis import given, settings as hyp_settings, strategies as st
from prometheus_client import REGISTRY

from src.domain.catalog import InvalidSongKeyError, SongCache, SongKey, get_song_cache, reset_song_cache
from src.models.dto import SongInfo
from src.settings import SongCacheSettings
from tests.support.stubs import FakeClock

HOUR = 60 * 60
DAY = 24 * HOUR


def _song(song_id="123", name="A", artist="B", **extra):
    return SongInfo(id=song_id, name=name, artist=artist, **extra)


def _small_cache(clock, max_entries=3):
    return SongCache(
        settings=SongCacheSettings(ttl_seconds=DAY, cleanup_interval_seconds=HOUR, max_entries=max_entries),
        clock=clock,
    )


@pytest.mark.unit
def test_song_round_trip_and_expiry(song_cache, fake_clock):
    song = _song()
    song_cache.set("netease", "123", song)
    assert song_cache.get("netease", "123") == song

    fake_clock.advance(DAY + 0.001)
    assert song_cache.get("netease", "123") is None

    song_cache.set("netease", "456", _song("456"))
    assert song_cache.stats().size == 1


@pytest.mark.unit
def test_get_unknown_song_has_no_side_effects(song_cache):
    assert song_cache.get("kuwo", "nope") is None
    assert song_cache.get("kuwo", "nope") is None
    assert song_cache.stats().size == 0


@pytest.mark.unit
def test_get_many_keys_hits_by_composite_and_omits_misses(song_cache):
    song_cache.set_many([
        ("netease", "1", _song("1")),
        ("qq", "3", _song("3", album="Album", pic="http://img/3.jpg")),
    ])

    result = song_cache.get_many([("netease", "1"), ("netease", "2"), ("qq", "3")])

    assert set(result) == {"netease+1", "qq+3"}
    assert result["qq+3"].pic == "http://img/3.jpg"


@pytest.mark.unit
def test_platform_and_id_cannot_collide_through_separator(song_cache):
    # ("a+b", "c") can never be stored; ("a", "b+c") is a distinct tuple key
    song_cache.set("a", "b+c", _song("b+c"))
    assert song_cache.get("a", "b+c").id == "b+c"
    assert SongKey.parse("a+b+c") == SongKey("a", "b+c")
    with pytest.raises(InvalidSongKeyError):
        SongKey.of("a+b", "c")


@pytest.mark.unit
def test_direct_calls_reject_platforms_containing_separator(song_cache):
    with pytest.raises(InvalidSongKeyError):
        song_cache.set("a+b", "c", _song("c", name="first"))
    with pytest.raises(InvalidSongKeyError):
        song_cache.get_many([("a+b", "c"), ("a", "b+c")])
    with pytest.raises(InvalidSongKeyError):
        song_cache.get("a+b", "c")

    song_cache.set("a", "b+c", _song("b+c", name="second"))
    assert song_cache.stats().size == 1
    assert song_cache.get_many([("a", "b+c")])["a+b+c"].name == "second"


@pytest.mark.unit
def test_set_many_with_bad_key_writes_nothing(song_cache):
    with pytest.raises(InvalidSongKeyError):
        song_cache.set_many([("netease", "1", _song("1")), (" ", "2", _song("2"))])
    assert song_cache.stats().size == 0


@pytest.mark.unit
def test_direct_calls_normalize_whitespace_like_routes(song_cache):
    song_cache.set(" netease ", " 7 ", _song("7"))
    assert song_cache.get("netease", "7").id == "7"
    assert set(song_cache.get_many([("netease", "7")])) == {"netease+7"}


@pytest.mark.unit
@pytest.mark.parametrize("raw", ["", "netease", "+123", "netease+", "   +  "])
def test_parse_rejects_malformed_keys(raw):
    with pytest.raises(InvalidSongKeyError):
        SongKey.parse(raw)


@pytest.mark.unit
def test_cleanup_and_clear_reports(fake_clock):
    cache = _small_cache(fake_clock, max_entries=2)
    for i in range(4):
        cache.set("netease", str(i), _song(str(i)))
        fake_clock.advance(1)

    report = cache.cleanup()
    assert (report.expired_removed, report.size_limited_removed, report.total_remaining) == (0, 2, 2)
    assert set(cache.get_many([("netease", str(i)) for i in range(4)])) == {"netease+2", "netease+3"}

    cleared = cache.clear()
    assert cleared.cleared_count == 2
    assert cache.stats().size == 0
    assert cache.get("netease", "3") is None


@pytest.mark.unit
def test_stats_exposes_configuration(song_cache):
    stats = song_cache.stats()
    assert stats.max_size == 5000
    assert stats.ttl == DAY


@pytest.mark.unit
def test_cleanup_records_eviction_metrics(fake_clock):
    before = REGISTRY.get_sample_value("songcache_evictions_total", {"reason": "size_limit"}) or 0
    cache = _small_cache(fake_clock, max_entries=1)
    cache.set_many([("qq", "1", _song("1")), ("qq", "2", _song("2"))])
    cache.cleanup()
    after = REGISTRY.get_sample_value("songcache_evictions_total", {"reason": "size_limit"})
    assert after - before == 1
    assert REGISTRY.get_sample_value("songcache_entries") == 1


@pytest.mark.unit
def test_default_cache_is_lazy_singleton(monkeypatch):
    import src.settings as settings_module

    monkeypatch.setattr(settings_module.Config, "SONG_CACHE_MAX_ENTRIES", 42)
    reset_song_cache()
    first = get_song_cache()
    assert first is get_song_cache()
    assert first.stats().max_size == 42

    reset_song_cache()
    assert get_song_cache() is not first


_ids = st.text(alphabet="abcdefghij0123456789", min_size=1, max_size=6)


@pytest.mark.unit
@hyp_settings(max_examples=50, deadline=None)
@given(
    ids=st.lists(_ids, min_size=1, max_size=40, unique=True),
    max_entries=st.integers(min_value=1, max_value=10),
)
def test_sweep_keeps_the_most_recently_written_songs(ids, max_entries):
    clock = FakeClock()
    cache = _small_cache(clock, max_entries=max_entries)
    for song_id in ids:
        cache.set("netease", song_id, _song(song_id))
        clock.advance(1)

    clock.advance(HOUR)
    cache.cleanup()

    kept = cache.get_many([("netease", song_id) for song_id in ids])
    assert len(cache) == min(len(ids), max_entries)
    assert set(kept) == {f"netease+{song_id}" for song_id in ids[-max_entries:]}


@pytest.mark.unit
@hyp_settings(max_examples=50, deadline=None)
@given(offsets=st.lists(st.floats(min_value=0, max_value=2 * DAY), min_size=1, max_size=20))
def test_entries_are_never_served_past_their_ttl(offsets):
    clock = FakeClock()
    cache = _small_cache(clock, max_entries=100)
    written = {}
    for idx, offset in enumerate(offsets):
        clock.advance(offset)
        cache.set("qq", str(idx), _song(str(idx)))
        written[str(idx)] = clock.now

    for song_id, written_at in written.items():
        hit = cache.get_many([("qq", song_id)])
        assert bool(hit) == (clock.now < written_at + DAY)

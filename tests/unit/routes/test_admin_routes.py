import pytest

from src.models.dto import SongInfo
from tests.support.factories import DEFAULT_PASSWORD

DAY = 24 * 60 * 60


def _fill(song_cache, count, platform='netease'):
    song_cache.set_many(
        (platform, str(i), SongInfo(id=str(i), name=f'S{i}', artist='A')) for i in range(count)
    )


@pytest.mark.unit
def test_admin_endpoints_reject_anonymous_and_regular_users(client, auth_client):
    anon = client.application.test_client()
    assert anon.get('/api/admin/song-cache').status_code == 401

    for method, path in [
        ('get', '/api/admin/song-cache'),
        ('post', '/api/admin/song-cache/cleanup'),
        ('delete', '/api/admin/song-cache'),
    ]:
        r = getattr(auth_client, method)(path)
        assert r.status_code == 403
        assert r.get_json() == {'error': 'forbidden'}


@pytest.mark.unit
def test_stats_for_site_owner(admin_client, song_cache):
    _fill(song_cache, 3)
    r = admin_client.get('/api/admin/song-cache')
    assert r.status_code == 200
    assert r.get_json() == {'size': 3, 'maxSize': 5000, 'ttlMs': DAY * 1000}


@pytest.mark.unit
def test_flagged_admin_can_clear(app, create_user, song_cache):
    admin = create_user(is_admin=True)
    c = app.test_client()
    assert c.post('/api/auth/login', json={'username': admin.username, 'password': DEFAULT_PASSWORD}).status_code == 200

    _fill(song_cache, 4)
    r = c.delete('/api/admin/song-cache')
    assert r.status_code == 200
    assert r.get_json() == {'clearedCount': 4}
    assert song_cache.stats().size == 0
    assert song_cache.get('netease', '0') is None


@pytest.mark.unit
def test_cleanup_drops_expired_entries(admin_client, song_cache, fake_clock):
    _fill(song_cache, 2, platform='qq')
    fake_clock.advance(DAY)
    _fill(song_cache, 1, platform='kuwo')

    r = admin_client.post('/api/admin/song-cache/cleanup')
    assert r.status_code == 200
    # The write-triggered sweep already removed the two expired qq songs
    assert r.get_json() == {'expiredRemoved': 0, 'sizeLimitedRemoved': 0, 'totalRemaining': 1}


@pytest.mark.unit
def test_cleanup_reports_expired_entries_between_sweeps(admin_client, song_cache, fake_clock):
    _fill(song_cache, 2)
    fake_clock.advance(DAY + 1)

    r = admin_client.post('/api/admin/song-cache/cleanup')
    assert r.get_json() == {'expiredRemoved': 2, 'sizeLimitedRemoved': 0, 'totalRemaining': 0}

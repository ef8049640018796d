import os
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

# Ensure project root is on sys.path so 'app', 'config', and 'src' import correctly
_TESTS_DIR = os.path.dirname(__file__)
_ROOT_DIR = os.path.abspath(os.path.join(_TESTS_DIR, os.pardir))
if _ROOT_DIR not in sys.path:
    sys.path.insert(0, _ROOT_DIR)

from src.domain.catalog import SongCache, reset_song_cache
from src.settings import SongCacheSettings
from tests.support import factories as test_factories
from tests.support.factories import ADMIN_USERNAME
from tests.support.stubs import FakeClock


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Keep the process-wide cache from leaking between tests."""
    monkeypatch.delenv("ADMIN_USERNAME", raising=False)
    reset_song_cache()
    yield
    reset_song_cache()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def song_cache(fake_clock):
    settings = SongCacheSettings(ttl_seconds=24 * 60 * 60, cleanup_interval_seconds=60 * 60, max_entries=5000)
    return SongCache(settings=settings, clock=fake_clock)


@pytest.fixture
def app(tmp_path_factory, song_cache):
    import app as app_module

    db_path = Path(tmp_path_factory.mktemp("db")) / "test.sqlite"
    application = app_module.create_app(
        song_cache=song_cache,
        config_overrides={
            "TESTING": True,
            "SECRET_KEY": "test-secret",
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{db_path.as_posix()}",
            "ADMIN_USERNAME": ADMIN_USERNAME,
        },
    )
    yield application


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def create_user(app):
    """Persist a user and return a detached ``SimpleNamespace(id, username)``."""
    from src.database.db_manager import db

    def _create(**kwargs):
        with app.app_context():
            test_factories.set_session(db.session)
            try:
                user = test_factories.UserFactory(**kwargs)
                return SimpleNamespace(id=user.id, username=user.username)
            finally:
                test_factories.reset_session()
                db.session.remove()

    return _create


@pytest.fixture
def create_play_record(app):
    from src.database.db_manager import db

    def _create(user_id, **kwargs):
        with app.app_context():
            test_factories.set_session(db.session)
            try:
                record = test_factories.MusicPlayRecordFactory(user_id=user_id, **kwargs)
                return record.key
            finally:
                test_factories.reset_session()
                db.session.remove()

    return _create


def _login(client, username):
    resp = client.post(
        "/api/auth/login",
        json={"username": username, "password": test_factories.DEFAULT_PASSWORD},
    )
    assert resp.status_code == 200, resp.get_json()
    return client


@pytest.fixture
def user(create_user):
    return create_user()


@pytest.fixture
def auth_client(client, user):
    return _login(client, user.username)


@pytest.fixture
def admin_client(app, create_user):
    owner = create_user(username=ADMIN_USERNAME)
    return _login(app.test_client(), owner.username)

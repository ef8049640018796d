#!/usr/bin/env python
# config.py
import os
from typing import List

# This assumes config.py is at the root of your project
basedir = os.path.abspath(os.path.dirname(__file__))


def _get_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _get_csv_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name)
    source = raw if raw is not None else default
    return [token.strip() for token in source.split(",") if token and token.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'change-me-in-production'

    # Database (play records and accounts)
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'src', 'database', 'instance', 'songcache.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Site owner; always treated as an administrator
    ADMIN_USERNAME = os.getenv('ADMIN_USERNAME')

    # Song metadata cache
    SONG_CACHE_TTL_SECONDS = _get_int('SONG_CACHE_TTL_SECONDS', 24 * 60 * 60)
    SONG_CACHE_CLEANUP_INTERVAL_SECONDS = _get_int('SONG_CACHE_CLEANUP_INTERVAL_SECONDS', 60 * 60)
    SONG_CACHE_MAX_ENTRIES = _get_int('SONG_CACHE_MAX_ENTRIES', 5000)

    # Play record batches larger than this are rejected
    PLAYRECORD_BATCH_LIMIT = max(1, _get_int('PLAYRECORD_BATCH_LIMIT', 500))

    # Runtime behavior
    DEBUG = _get_bool('DEBUG', False)
    # Control console logging; when disabled, logs go only to file
    ENABLE_CONSOLE_LOGS = _get_bool('ENABLE_CONSOLE_LOGS', False)

    CORS_ALLOWED_ORIGINS = _get_csv_list('CORS_ALLOWED_ORIGINS', 'http://localhost:3000')

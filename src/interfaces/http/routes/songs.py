"""Song metadata cache lookups and writes."""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required
from pydantic import ValidationError

from src.domain.catalog import InvalidSongKeyError, SongCache, SongKey
from src.models.dto import SongInfo

logger = logging.getLogger(__name__)

songs_bp = Blueprint('songs_bp', __name__, url_prefix='/api/music/songs')


def _song_cache() -> SongCache:
    return current_app.extensions['song_cache']


@songs_bp.route('/<platform>/<path:song_id>', methods=['GET'])
@login_required
def get_song(platform: str, song_id: str):
    try:
        key = SongKey.of(platform, song_id)
    except InvalidSongKeyError as exc:
        return jsonify({'error': 'invalid_key', 'message': str(exc)}), 400

    song = _song_cache().get(*key)
    if song is None:
        return jsonify({'error': 'not_found'}), 404
    return jsonify(song.model_dump(exclude_none=True)), 200


@songs_bp.route('/<platform>/<path:song_id>', methods=['PUT'])
@login_required
def put_song(platform: str, song_id: str):
    try:
        key = SongKey.of(platform, song_id)
    except InvalidSongKeyError as exc:
        return jsonify({'error': 'invalid_key', 'message': str(exc)}), 400

    payload = request.get_json(silent=True) or {}
    try:
        song = SongInfo.model_validate(payload)
    except ValidationError as exc:
        return jsonify({'error': 'invalid_song', 'details': exc.errors(include_url=False)}), 400

    _song_cache().set(key.platform, key.id, song)
    return jsonify({'success': True}), 200


@songs_bp.route('/lookup', methods=['POST'])
@login_required
def lookup_songs():
    """Batch read: ``{"keys": [{"platform", "id"}, ...]}`` -> hits keyed by ``platform+id``."""
    payload = request.get_json(silent=True) or {}
    raw_keys = payload.get('keys')
    if not isinstance(raw_keys, list):
        return jsonify({'error': 'invalid_parameters', 'message': "'keys' must be a list"}), 400

    keys = []
    for item in raw_keys:
        if not isinstance(item, dict):
            return jsonify({'error': 'invalid_parameters', 'message': 'each key must be an object'}), 400
        try:
            keys.append(SongKey.of(str(item.get('platform') or ''), str(item.get('id') or '')))
        except InvalidSongKeyError as exc:
            return jsonify({'error': 'invalid_key', 'message': str(exc)}), 400

    songs = _song_cache().get_many(keys)
    logger.debug("Song lookup: %s requested, %s cached", len(keys), len(songs))
    return jsonify({
        'songs': {key: song.model_dump(exclude_none=True) for key, song in songs.items()},
    }), 200


__all__ = ['songs_bp']

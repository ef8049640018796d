"""Per-user music play records, enriched from the song metadata cache."""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from flask import Blueprint, current_app, jsonify, request
from flask_login import current_user, login_required
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from src.database.db_manager import MusicPlayRecord, current_millis, db
from src.domain.catalog import InvalidSongKeyError, SongCache, SongKey
from src.models.dto import PlayRecordDTO

logger = logging.getLogger(__name__)

playrecords_bp = Blueprint('playrecords_bp', __name__, url_prefix='/api/music/playrecords')

_ENRICHED_FIELDS = ('name', 'artist', 'album', 'pic')


class PlayRecordPayloadError(ValueError):
    """A submitted play record or its key failed validation."""


def _song_cache() -> SongCache:
    return current_app.extensions['song_cache']


def _parse_item(item: object, *, batch: bool) -> Tuple[SongKey, PlayRecordDTO]:
    suffix = ' in batch item' if batch else ''
    if not isinstance(item, dict) or not item.get('key') or not item.get('record'):
        raise PlayRecordPayloadError(f'Missing key or record{suffix}')
    try:
        record = PlayRecordDTO.model_validate(item['record'])
    except ValidationError as exc:
        raise PlayRecordPayloadError(f'Invalid record data{suffix}') from exc
    try:
        key = SongKey.parse(str(item['key']))
    except InvalidSongKeyError as exc:
        raise PlayRecordPayloadError(f'Invalid key format{suffix}') from exc
    return key, record


def _apply(row: MusicPlayRecord, record: PlayRecordDTO) -> None:
    row.name = record.name
    row.artist = record.artist
    row.album = record.album
    row.pic = record.pic
    row.play_time = record.play_time
    row.duration = record.duration
    row.save_time = record.save_time or current_millis()


def _upsert(user_id: int, items: List[Tuple[SongKey, PlayRecordDTO]]) -> None:
    existing: Dict[Tuple[str, str], MusicPlayRecord] = {
        (row.platform, row.song_id): row
        for row in MusicPlayRecord.query.filter_by(user_id=user_id).all()
    }
    for key, record in items:
        row = existing.get((key.platform, key.id))
        if row is None:
            row = MusicPlayRecord(user_id=user_id, platform=key.platform, song_id=key.id)
            db.session.add(row)
            existing[(key.platform, key.id)] = row
        _apply(row, record)
    db.session.commit()


@playrecords_bp.route('', methods=['GET'])
@login_required
def list_play_records():
    rows = MusicPlayRecord.query.filter_by(user_id=current_user.id).all()
    cached = _song_cache().get_many((row.platform, row.song_id) for row in rows)

    records = {}
    for row in rows:
        data = row.to_dict()
        song = cached.get(row.key)
        if song is not None:
            for field in _ENRICHED_FIELDS:
                data[field] = getattr(song, field) or data[field]
        records[row.key] = data
    return jsonify(records), 200


@playrecords_bp.route('', methods=['POST'])
@login_required
def save_play_records():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({'error': 'Invalid JSON body'}), 400

    batch = isinstance(payload.get('records'), list)
    raw_items = payload['records'] if batch else [payload]
    limit = int(current_app.config.get('PLAYRECORD_BATCH_LIMIT', 500))
    if len(raw_items) > limit:
        return jsonify({'error': f'At most {limit} records per batch'}), 400

    try:
        items = [_parse_item(item, batch=batch) for item in raw_items]
    except PlayRecordPayloadError as exc:
        return jsonify({'error': str(exc)}), 400

    try:
        _upsert(current_user.id, items)
    except SQLAlchemyError:
        db.session.rollback()
        logger.error('Failed to save play records for user %s', current_user.id, exc_info=True)
        return jsonify({'error': 'Internal Server Error'}), 500

    songs = [(key.platform, key.id, record.song_info()) for key, record in items]
    if batch:
        _song_cache().set_many(songs)
        return jsonify({'success': True, 'count': len(items)}), 200

    _song_cache().set(*songs[0])
    return jsonify({'success': True}), 200


@playrecords_bp.route('', methods=['DELETE'])
@login_required
def delete_play_records():
    raw_key: Optional[str] = request.args.get('key')
    query = MusicPlayRecord.query.filter_by(user_id=current_user.id)
    if raw_key:
        try:
            key = SongKey.parse(raw_key)
        except InvalidSongKeyError:
            return jsonify({'error': 'Invalid key format'}), 400
        query = query.filter_by(platform=key.platform, song_id=key.id)

    try:
        deleted = query.delete(synchronize_session=False)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.error('Failed to delete play records for user %s', current_user.id, exc_info=True)
        return jsonify({'error': 'Internal Server Error'}), 500

    logger.info('Deleted %s play record(s) for user %s', deleted, current_user.id)
    return jsonify({'success': True}), 200


__all__ = ['playrecords_bp']

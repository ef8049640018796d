"""Administrative controls for the song metadata cache."""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify
from flask_login import current_user

from src.auth import admin_required

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin_bp', __name__, url_prefix='/api/admin')


@admin_bp.route('/song-cache', methods=['GET'])
@admin_required
def song_cache_stats():
    stats = current_app.extensions['song_cache'].stats()
    return jsonify({
        'size': stats.size,
        'maxSize': stats.max_size,
        'ttlMs': int(stats.ttl * 1000),
    }), 200


@admin_bp.route('/song-cache/cleanup', methods=['POST'])
@admin_required
def song_cache_cleanup():
    report = current_app.extensions['song_cache'].cleanup()
    logger.info('Song cache cleanup requested by %s', current_user.username)
    return jsonify({
        'expiredRemoved': report.expired_removed,
        'sizeLimitedRemoved': report.size_limited_removed,
        'totalRemaining': report.total_remaining,
    }), 200


@admin_bp.route('/song-cache', methods=['DELETE'])
@admin_required
def song_cache_clear():
    report = current_app.extensions['song_cache'].clear()
    logger.warning('Song cache cleared by %s', current_user.username)
    return jsonify({'clearedCount': report.cleared_count}), 200


__all__ = ['admin_bp']

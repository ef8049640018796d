from __future__ import annotations

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from src.database.db_manager import db
from src.observability.metrics import update_cache_size

health_bp = Blueprint("health_bp", __name__)


@health_bp.route("/healthz")
def healthz():
    status = 200
    checks = {}

    try:
        db.session.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except SQLAlchemyError as exc:
        status = 503
        checks["database"] = f"error: {exc}"

    song_cache = current_app.extensions.get("song_cache")
    if song_cache is not None:
        stats = song_cache.stats()
        update_cache_size(stats.size)
        checks["song_cache"] = {"size": stats.size, "max_size": stats.max_size}
    else:
        checks["song_cache"] = "unavailable"

    overall = "ok" if status == 200 else "degraded"
    return jsonify({"status": overall, "checks": checks}), status

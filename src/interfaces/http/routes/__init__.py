"""Route blueprints exposed via Flask."""

from .admin import admin_bp
from .auth import auth_bp
from .health import health_bp
from .playrecords import playrecords_bp
from .songs import songs_bp

__all__ = [
    "admin_bp",
    "auth_bp",
    "health_bp",
    "playrecords_bp",
    "songs_bp",
]

#!/usr/bin/env python
"""Authentication utilities and Flask-Login integration."""

from __future__ import annotations

from functools import wraps

from flask import current_app, jsonify
from flask_login import LoginManager, current_user

login_manager = LoginManager()
login_manager.session_protection = "strong"
login_manager.login_message = None


def is_admin(user) -> bool:
    """Site owner (``ADMIN_USERNAME``) or any user flagged as admin."""
    if not getattr(user, "is_authenticated", False):
        return False
    owner = current_app.config.get("ADMIN_USERNAME")
    if owner and user.username == owner:
        return True
    return bool(getattr(user, "is_admin", False))


def admin_required(view):
    """Reject anonymous callers with 401 and non-admins with 403."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        if not current_user.is_authenticated:
            return login_manager.unauthorized()
        if not is_admin(current_user):
            return jsonify({"error": "forbidden"}), 403
        return view(*args, **kwargs)

    return wrapper


def init_auth(app):
    """Attach Flask-Login to the Flask app and register auth blueprints."""
    from src.database.db_manager import User, db
    from src.interfaces.http.routes.auth import auth_bp

    login_manager.init_app(app)
    login_manager.login_view = "auth.login"

    @login_manager.user_loader
    def load_user(user_id: str) -> User | None:
        try:
            user = db.session.get(User, int(user_id))
        except (TypeError, ValueError):
            return None
        # Banned or disabled accounts lose their session on the next request
        if user is None or not user.can_sign_in:
            return None
        return user

    @login_manager.unauthorized_handler
    def _unauthorized():
        return jsonify({"error": "authentication_required"}), 401

    app.register_blueprint(auth_bp)

    return login_manager


__all__ = ["login_manager", "init_auth", "admin_required", "is_admin"]

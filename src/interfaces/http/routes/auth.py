#!/usr/bin/env python
"""Authentication API endpoints for registration and login."""

from __future__ import annotations

import re
from typing import Dict, Tuple

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_user, logout_user

from src.auth import is_admin
from src.database.db_manager import User, db


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")
_USERNAME_RE = re.compile(r"^[A-Za-z0-9_.-]{3,64}$")


def _validate_credentials(payload: Dict[str, str]) -> Tuple[str, str, Dict[str, str]]:
    username = (payload.get("username") or "").strip()
    password = (payload.get("password") or "").strip()
    errors: Dict[str, str] = {}
    if not _USERNAME_RE.match(username):
        errors["username"] = "Username must be 3-64 letters, digits, '.', '_' or '-'."
    if len(password) < 8:
        errors["password"] = "Password must be at least 8 characters long."
    return username, password, errors


def _session_payload(user: User) -> dict:
    data = user.to_dict()
    data["is_admin"] = is_admin(user)
    return data


@auth_bp.route("/register", methods=["POST"])
def register_user():
    data = request.get_json(silent=True) or {}
    username, password, errors = _validate_credentials(data)
    if errors:
        return jsonify({"errors": errors}), 400

    existing = User.query.filter_by(username=username).first()
    if existing:
        return jsonify({"errors": {"username": "An account with this username already exists."}}), 409

    user = User(username=username)
    user.set_password(password)
    db.session.add(user)
    db.session.commit()

    login_user(user)
    return jsonify({"user": _session_payload(user)}), 201


@auth_bp.route("/login", methods=["POST"])
def login():
    data = request.get_json(silent=True) or {}
    username = (data.get("username") or "").strip()
    password = (data.get("password") or "").strip()

    if not username or not password:
        return jsonify({"errors": {"form": "Username and password are required."}}), 400

    user = User.query.filter_by(username=username).first()
    if user is None or not user.check_password(password):
        return jsonify({"errors": {"form": "Invalid username or password."}}), 401

    if user.banned:
        return jsonify({"errors": {"form": "Account is banned."}}), 403
    if not user.is_active:
        return jsonify({"errors": {"form": "Account is disabled."}}), 403

    login_user(user)
    return jsonify({"user": _session_payload(user)}), 200


@auth_bp.route("/logout", methods=["POST"])
def logout():
    if current_user.is_authenticated:
        logout_user()
    return jsonify({"success": True}), 200


@auth_bp.route("/session", methods=["GET"])
def session_info():
    if current_user.is_authenticated:
        return jsonify({"user": _session_payload(current_user)}), 200
    return jsonify({"user": None}), 200


__all__ = ["auth_bp"]

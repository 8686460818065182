from __future__ import annotations

import logging
from functools import wraps

from flask import current_app, jsonify, session

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    StoreError,
    ValidationError,
)
from ..users.model import ActingUser

logger = logging.getLogger(__name__)


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"error": "Unauthorized"}), 401
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"error": "Unauthorized"}), 401
        if session.get("role") != Role.ADMIN.value:
            return jsonify({"error": "Forbidden"}), 403
        return view(*args, **kwargs)

    return wrapper


def editor_required(view):
    """Logged in with a role that may write passes (admin or editor)."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"error": "Unauthorized"}), 401
        if session.get("role") not in (Role.ADMIN.value, Role.EDITOR.value):
            return jsonify({"error": "Forbidden"}), 403
        return view(*args, **kwargs)

    return wrapper


def current_actor() -> ActingUser:
    return ActingUser(user_id=int(session["user_id"]), role=Role(session.get("role", Role.VIEWER.value)))


def error_response(exc: Exception):
    """Map a domain/store exception onto a JSON error body and status code."""
    if isinstance(exc, ValidationError):
        body = {"error": str(exc)}
        if exc.errors:
            body["details"] = exc.errors
        return jsonify(body), 400
    if isinstance(exc, AuthenticationError):
        return jsonify({"error": str(exc)}), 401
    if isinstance(exc, AuthorizationError):
        return jsonify({"error": str(exc)}), 403
    if isinstance(exc, NotFoundError):
        return jsonify({"error": str(exc)}), 404
    if isinstance(exc, ConflictError):
        return jsonify({"error": str(exc)}), 409
    if isinstance(exc, StoreError):
        logger.error("Store failure: %s", exc)
        return jsonify({"error": "Failed to reach the database.", "details": str(exc)}), 500

    logger.exception("Unhandled error")
    if bool(current_app.config.get("DEBUG", False)):
        return jsonify({"error": f"Internal server error: {exc}"}), 500
    return jsonify({"error": "Internal server error"}), 500

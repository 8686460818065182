from __future__ import annotations

from datetime import timedelta

from flask import Flask, jsonify, request, session

from ..common.web import admin_required, current_actor, error_response, login_required
from ..container import Container
from ..core.constants import DEFAULT_SESSION_DAYS
from ..core.enums import Role
from ..core.exceptions import DomainError, StoreError, ValidationError


def _parse_role(value) -> Role:
    try:
        return Role(str(value or "").strip().lower())
    except ValueError:
        raise ValidationError("Role must be admin, editor or viewer", field="role")


def register(app: Flask, container: Container) -> None:
    @app.route("/api/login", methods=["POST"], endpoint="login")
    def login():
        payload = request.get_json(silent=True) or request.form
        try:
            s_user = container.auth_service.authenticate(payload.get("username", ""), payload.get("password", ""))
        except (DomainError, StoreError) as e:
            return error_response(e)

        session.clear()
        session.permanent = bool(payload.get("remember_me"))
        app.permanent_session_lifetime = timedelta(days=DEFAULT_SESSION_DAYS)
        session["user_id"] = s_user.user_id
        session["name"] = s_user.name
        session["role"] = s_user.role.value

        return jsonify({"user": {"id": s_user.user_id, "name": s_user.name, "role": s_user.role.value}})

    @app.route("/api/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"success": True})

    @app.route("/api/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        return jsonify({"id": session["user_id"], "name": session.get("name"), "role": session.get("role")})

    @app.route("/api/admin/users", methods=["GET"], endpoint="admin_users")
    @admin_required
    def admin_users():
        try:
            return jsonify(container.user_service.list_users())
        except (DomainError, StoreError) as e:
            return error_response(e)

    @app.route("/api/admin/users", methods=["POST"], endpoint="create_user")
    @admin_required
    def create_user():
        payload = request.get_json(silent=True) or {}
        try:
            user_id = container.user_service.create_account(
                actor=current_actor(),
                name=payload.get("name", ""),
                username=payload.get("username", ""),
                password=payload.get("password", ""),
                role=_parse_role(payload.get("role", Role.VIEWER.value)),
            )
        except (DomainError, StoreError) as e:
            return error_response(e)
        return jsonify({"message": "User created successfully.", "id": user_id}), 201

    @app.route("/api/admin/users/<int:user_id>/role", methods=["PATCH"], endpoint="update_user_role")
    @admin_required
    def update_user_role(user_id: int):
        payload = request.get_json(silent=True) or {}
        try:
            container.user_service.change_role(
                actor=current_actor(), user_id=user_id, role=_parse_role(payload.get("role"))
            )
        except (DomainError, StoreError) as e:
            return error_response(e)
        return jsonify({"message": "Role updated."})

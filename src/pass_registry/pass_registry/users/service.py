from __future__ import annotations

import logging
from dataclasses import dataclass

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.validators import require_min_length, require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, NotFoundError, ValidationError
from .model import ActingUser
from .repository import UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionUser:
    """What we store into the Flask session after login."""

    user_id: int
    name: str
    username: str
    role: Role


class AuthService:
    """Use case: authenticate user (login)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, username: str, password: str) -> SessionUser:
        user = self._users.get_by_username((username or "").strip())
        if not user or not user.is_active:
            raise AuthenticationError("Invalid username or password")

        try:
            ok = check_password_hash(user.password_hash, password or "")
        except ValueError:
            # placeholder or corrupted hashes
            ok = False

        if not ok:
            logger.info("Failed login for '%s'", user.username)
            raise AuthenticationError("Invalid username or password")

        return SessionUser(user_id=user.user_id, name=user.name, username=user.username, role=user.role)


class UserService:
    """Use case: manage staff accounts (admin)."""

    def __init__(self, users: UserRepository):
        self._users = users

    def create_account(self, *, actor: ActingUser, name: str, username: str, password: str, role: Role) -> int:
        if not actor.is_admin:
            raise AuthorizationError("Only administrators can create accounts")

        name = require_non_empty(name, "name", "Name is required")
        username = require_non_empty(username, "username", "Username is required")
        require_min_length(password, "password", 6, "Password must be at least 6 characters")

        if self._users.get_by_username(username):
            raise ValidationError("Username already exists", field="username")

        user_id = self._users.create_user(
            name=name,
            username=username,
            password_hash=generate_password_hash(password),
            role=role,
        )
        logger.info("User '%s' created with role %s by user %s", username, role.value, actor.user_id)
        return user_id

    def change_role(self, *, actor: ActingUser, user_id: int, role: Role) -> None:
        if not actor.is_admin:
            raise AuthorizationError("Only administrators can change roles")
        if int(user_id) == int(actor.user_id) and role != Role.ADMIN:
            raise ValidationError("You cannot remove your own admin role", field="role")

        if not self._users.get_by_id(user_id):
            raise NotFoundError("User not found")
        self._users.update_role(user_id, role=role)
        logger.info("User %s role changed to %s by user %s", user_id, role.value, actor.user_id)

    def list_users(self):
        return [
            {"user_id": u.user_id, "name": u.name, "username": u.username, "role": u.role.value}
            for u in self._users.list_all()
        ]

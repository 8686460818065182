from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: a staff account.

    Plain data object, no DB access.
    """

    user_id: int
    name: str
    username: str
    password_hash: str
    role: Role
    is_active: bool = True


@dataclass(frozen=True)
class ActingUser:
    """The logged-in user a mutation is performed on behalf of."""

    user_id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def can_modify(self, author_id: Optional[int]) -> bool:
        return self.is_admin or (author_id is not None and int(author_id) == int(self.user_id))

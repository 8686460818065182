from __future__ import annotations

from typing import Mapping, Optional, Sequence


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        errors: Optional[Mapping[str, Sequence[str]]] = None,
    ):
        super().__init__(message)
        self.field = field
        self.errors = dict(errors or ({field: [message]} if field else {}))


class ConflictError(DomainError):
    """Raised when a CNIC or (category, pass ID) is already taken."""

    def __init__(self, message: str, *, value: object = None):
        super().__init__(message)
        self.value = value


class NotFoundError(DomainError):
    """Raised when the addressed record does not exist."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class StoreError(Exception):
    """Raised when the database rejects or fails a read/write."""


class DuplicateKeyError(StoreError):
    """A unique index rejected a write. `key` is 'cnic' or 'pass_id'."""

    def __init__(self, message: str, *, key: str):
        super().__init__(message)
        self.key = key

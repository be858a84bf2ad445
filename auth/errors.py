"""
auth/errors.py -- Workflow exceptions.

AuthService raises these to express why a call failed. The HTTP layer maps
each class to a status code (see api/main.py); nothing in auth/ knows about
status codes.

Store and signing failures are deliberately NOT wrapped here. They propagate
unchanged and the API turns them into a generic 500.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass


@dataclass(frozen=True)
class FieldError:
    """One rejected input field. message is safe to show to the caller."""

    field: str
    message: str

    def to_dict(self) -> dict:
        return asdict(self)


class AuthError(Exception):
    """Base class for all workflow errors."""

    code = "auth_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AuthError):
    """Malformed input, rejected before any store access."""

    code = "validation_error"

    def __init__(self, errors: list[FieldError]) -> None:
        super().__init__("Request validation failed.")
        self.errors = list(errors)


class ConflictError(AuthError):
    """The resource already exists (email already registered)."""

    code = "conflict"


class UnauthorizedError(AuthError):
    """Bad credentials, or the identity no longer resolves to an account.

    Messages stay generic: a caller must not be able to tell an unknown email
    from a wrong password.
    """

    code = "unauthorized"

"""
core/errors.py -- Error taxonomy shared by the auth and task layers.

Core operations raise these; api/main.py translates them into HTTP responses
with a {"message": ...} body. Each class carries the status code it maps to so
the translation stays a single exception handler.

Messages are written for end users. Anything that could reveal whether an
email is registered or whether a task belongs to someone else must use the
same generic text for every failure branch.

Layer rule: core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations


class TaskVaultError(Exception):
    """Base class for all expected, user-facing failures."""

    status_code: int = 500
    default_message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(TaskVaultError):
    """Missing or malformed input."""

    status_code = 400
    default_message = "Please provide all required fields."


class Conflict(TaskVaultError):
    """Duplicate account. Reported as 400, like every other bad signup."""

    status_code = 400
    default_message = "User already exists."


class Unauthorized(TaskVaultError):
    """No credential presented, or credentials that do not check out."""

    status_code = 401
    default_message = "Invalid credentials."


class Forbidden(TaskVaultError):
    """A credential was presented but failed verification."""

    status_code = 403
    default_message = "Forbidden."


class NotFound(TaskVaultError):
    status_code = 404
    default_message = "Not found."


class InternalError(TaskVaultError):
    """Unexpected store or hashing failure."""

    status_code = 500

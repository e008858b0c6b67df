"""
core/errors.py -- Error taxonomy shared by the stores, auth, and API layers.

Every failure a request can end in has a class here. ApiError subclasses carry
the HTTP status and the human message; api/main.py renders them into the
response envelope. ConflictError is raised below the HTTP layer (auth/) and
translated by the route that knows which field it belongs to.

Layer rule: core/ is the kernel. No imports from api/, auth/, or catalog/.
"""

from __future__ import annotations


class ApiError(Exception):
    """Base class for failures that map directly onto an error envelope."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class Unauthenticated(ApiError):
    """Missing, malformed, or revoked bearer token."""

    status_code = 401


class AuthenticationFailed(ApiError):
    """Login rejected. Same message for unknown email and wrong password."""

    status_code = 401


class ValidationFailed(ApiError):
    """One or more fields violated their rule set.

    errors maps each offending field to its ordered list of messages.
    """

    status_code = 422

    def __init__(self, message: str, errors: dict[str, list[str]]) -> None:
        super().__init__(message)
        self.errors = errors


class NotFound(ApiError):
    status_code = 404


class StoreError(ApiError):
    """Unexpected persistence failure. detail holds the driver's diagnostic text."""

    status_code = 500

    def __init__(self, message: str, detail: str | None = None) -> None:
        super().__init__(message)
        self.detail = detail


class ConflictError(Exception):
    """A unique constraint rejected the write (e.g. duplicate email)."""

    def __init__(self, field: str) -> None:
        super().__init__(f"duplicate value for {field}")
        self.field = field

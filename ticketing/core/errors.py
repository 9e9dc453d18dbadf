"""
Application error taxonomy.

Every error carries the HTTP status it maps to and a user-safe message.
`details` holds internal information that is only returned outside
production (see `ticketing.api.errors`).

Expected guard outcomes (not enough tickets, already voted) are results,
not exceptions, and never appear here.
"""

from typing import Any, Optional


class AppError(Exception):
    status_code: int = 400

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class ValidationError(AppError):
    """Malformed identifiers or missing required fields."""

    status_code = 400


class AuthError(AppError):
    """Missing or invalid bearer credential."""

    status_code = 401


class ForbiddenError(AppError):
    status_code = 403


class NotFoundError(AppError):
    """Entity absent, or not owned by the caller."""

    status_code = 404


class ConflictError(AppError):
    """Operation not allowed in the entity's current state."""

    status_code = 409


class StoreError(AppError):
    """Persistence call failed or timed out."""

    status_code = 500

    def __init__(self, message: str, details: Optional[Any] = None, retryable: bool = False):
        super().__init__(message, details)
        self.retryable = retryable
        if retryable:
            self.status_code = 503

"""Domain error taxonomy.

Services raise these; the global handlers in ``middleware.error_handler``
render them as ``{"error": ..., "details": ...}`` with the matching status.
"""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = 500

    def __init__(self, message: str, details: Any = None) -> None:  # noqa: ANN401
        super().__init__(message)
        self.message = message
        self.details = details


class UnauthorizedError(AppError):
    """No session, or the session token is invalid."""

    status_code = 401


class ForbiddenError(AppError):
    """Authenticated, but lacking the role or ownership."""

    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ValidationFailedError(AppError):
    status_code = 400


class ConflictError(AppError):
    """Duplicate entity or unique-constraint violation."""

    status_code = 409


class MediaHostUnavailableError(AppError):
    status_code = 503

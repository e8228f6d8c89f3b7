# src/common/errors.py
"""
Application error taxonomy.

Every error that may reach a client carries a stable machine-readable
``error_code`` and the HTTP status it maps to. Anything that is not an
``AppError`` is reported to clients as ``INTERNAL_ERROR``.
"""

from __future__ import annotations

from typing import Any


class AppError(Exception):
    """Base class for errors surfaced to API clients."""

    error_code: str = "APP_ERROR"
    status_code: int = 400
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None, details: dict[str, Any] | None = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationError(AppError):
    """Malformed or out-of-range input. Raised before any mutation."""
    error_code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "Invalid input"


class Conflict(AppError):
    """Duplicate active booking or trip."""
    error_code = "CONFLICT"
    status_code = 409
    default_message = "Conflicting request"


class InvalidStateTransition(AppError):
    """Action attempted from the wrong booking or trip status."""
    error_code = "INVALID_STATE_TRANSITION"
    status_code = 400
    default_message = "Action not allowed in the current state"


class NotFound(AppError):
    error_code = "NOT_FOUND"
    status_code = 404
    default_message = "Not found"


class NoActiveTrip(NotFound):
    """No trip or booking in an end-eligible state for the caller."""
    error_code = "NO_ACTIVE_TRIP"
    status_code = 400
    default_message = "You have no active trip"


class ConfigMissing(AppError):
    """Fee configuration absent; the trip cannot be priced."""
    error_code = "CONFIG_MISSING"
    status_code = 500
    default_message = "Fee configuration not found"


class ConfigError(ConfigMissing):
    """Fee configuration present but unusable."""
    error_code = "CONFIG_ERROR"
    default_message = "Fee configuration error"


class AlreadySettled(Conflict):
    error_code = "ALREADY_SETTLED"
    default_message = "Trip is already settled"


class DuplicateKey(Conflict):
    """Unique constraint collision (phone, business driver id)."""
    error_code = "DUPLICATE_KEY"
    default_message = "Record already exists"


class Unauthorized(AppError):
    error_code = "UNAUTHORIZED"
    status_code = 401
    default_message = "Authentication required"


class InvalidToken(Unauthorized):
    error_code = "INVALID_TOKEN"
    default_message = "Invalid or expired token"


class Forbidden(AppError):
    error_code = "FORBIDDEN"
    status_code = 403
    default_message = "Access denied"


class RateLimited(AppError):
    error_code = "RATE_LIMIT_EXCEEDED"
    status_code = 429
    default_message = "Too many authentication attempts, please try again later"

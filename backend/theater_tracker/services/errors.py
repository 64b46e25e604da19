"""
Service-layer error taxonomy.

Each service module subclasses these for its own failure modes; the API
layer maps the base classes to HTTP status codes.
"""
from sqlalchemy.exc import IntegrityError


class TheaterError(Exception):
    """Base for every expected service failure."""

    code = "ERROR"


class ValidationFailedError(TheaterError):
    """A required field is missing or a length/range rule is violated."""

    code = "VALIDATION_FAILED"


class DuplicateError(TheaterError):
    """A unique constraint was violated."""

    code = "DUPLICATE"


class AuthRequiredError(TheaterError):
    """A mutating action was attempted without a session."""

    code = "AUTH_REQUIRED"


class NotFoundError(TheaterError):
    """A referenced show, entry, activity, edge or user does not exist."""

    code = "NOT_FOUND"


class PermissionDeniedError(TheaterError):
    """The caller is authenticated but may not act on this record."""

    code = "FORBIDDEN"


class InvalidTransitionError(TheaterError):
    """The record is not in a state that allows the requested transition."""

    code = "INVALID_TRANSITION"


class TransientStoreError(TheaterError):
    """Any other store failure. Never retried."""

    code = "STORE_ERROR"


def is_unique_violation(exc: IntegrityError) -> bool:
    """True when *exc* came from a unique constraint (Postgres 23505 or SQLite)."""
    if getattr(exc.orig, "pgcode", None) == "23505":
        return True
    message = str(exc.orig).lower()
    return "unique" in message or "duplicate key" in message

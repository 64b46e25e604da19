"""
Service error → HTTP mapping, shared by all routers.
"""
import logging

from fastapi import HTTPException, status

from theater_tracker.services.errors import (
    AuthRequiredError,
    DuplicateError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    TheaterError,
    TransientStoreError,
    ValidationFailedError,
)

logger = logging.getLogger(__name__)

_STATUS_BY_ERROR: list[tuple[type[TheaterError], int]] = [
    (ValidationFailedError, status.HTTP_400_BAD_REQUEST),
    (DuplicateError, status.HTTP_409_CONFLICT),
    (AuthRequiredError, status.HTTP_401_UNAUTHORIZED),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (TransientStoreError, status.HTTP_503_SERVICE_UNAVAILABLE),
]

GENERIC_FAILURE_MESSAGE = "Something went wrong. Please try again."


def error_body(code: str, message: str) -> dict:
    """Standard error envelope."""
    return {"error": {"code": code, "message": message}}


def to_http(exc: TheaterError) -> HTTPException:
    """Translate a service error into the HTTPException a route should raise."""
    for error_cls, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            break
    else:
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    if isinstance(exc, TransientStoreError):
        logger.error("Store failure: %s", exc)
        return HTTPException(
            status_code=status_code,
            detail=error_body(exc.code, GENERIC_FAILURE_MESSAGE),
        )

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthRequiredError) else None
    return HTTPException(
        status_code=status_code,
        detail=error_body(exc.code, str(exc)),
        headers=headers,
    )

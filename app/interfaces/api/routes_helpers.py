"""Helper utilities shared across API route handlers."""

from fastapi import HTTPException, status

from app.domain.errors import (
    ConflictError,
    MessageNotFoundError,
    NotAuthenticatedError,
    NotificationNotFoundError,
    PermissionDeniedError,
    PersistenceError,
    StudyBuddyError,
)

_STATUS_BY_ERROR: tuple[tuple[type[StudyBuddyError], int], ...] = (
    (NotAuthenticatedError, status.HTTP_401_UNAUTHORIZED),
    (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
    (NotificationNotFoundError, status.HTTP_404_NOT_FOUND),
    (MessageNotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (PersistenceError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def http_error_from(exc: StudyBuddyError) -> HTTPException:
    """Return the HTTP error describing a domain exception."""

    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            if status_code >= 500:
                return HTTPException(status_code=status_code, detail="Storage error")
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

"""Tests for helper utilities shared by the API routes."""

import pytest

from app.domain.errors import (
    ConflictError,
    MessageNotFoundError,
    NotAuthenticatedError,
    NotificationNotFoundError,
    PermissionDeniedError,
    PersistenceError,
    StudyBuddyError,
)
from app.interfaces.api.routes_helpers import http_error_from


@pytest.mark.parametrize(
    ("error", "expected_status"),
    [
        (NotAuthenticatedError("no session"), 401),
        (PermissionDeniedError("not yours"), 403),
        (NotificationNotFoundError("missing"), 404),
        (MessageNotFoundError("missing"), 404),
        (ConflictError("duplicate"), 409),
        (PersistenceError("db down"), 500),
        (StudyBuddyError("other"), 400),
    ],
)
def test_http_error_from(error, expected_status):
    """Domain errors map to stable HTTP statuses."""

    assert http_error_from(error).status_code == expected_status


def test_storage_details_are_not_leaked():
    assert http_error_from(PersistenceError("constraint xyz")).detail == "Storage error"

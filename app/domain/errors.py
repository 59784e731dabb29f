"""Domain level exceptions shared by repositories and use cases."""

from __future__ import annotations


class StudyBuddyError(Exception):
    """Base class for errors raised by the notification core."""


class NotAuthenticatedError(StudyBuddyError):
    """Raised when an operation requires a session and none is present."""


class ConflictError(StudyBuddyError):
    """Raised when a strict insert collides with an existing row.

    For message statuses the caller should switch to the upsert path. For
    notifications it signals that a batched row changed under a merge.
    """


class PersistenceError(StudyBuddyError):
    """Raised when the underlying store rejects a read or a write."""


class NotificationNotFoundError(StudyBuddyError):
    """Raised when a notification does not exist or belongs to someone else."""


class MessageNotFoundError(StudyBuddyError):
    """Raised when a group message does not exist."""


class PermissionDeniedError(StudyBuddyError):
    """Raised when the current profile may not change a resource."""


__all__ = [
    "StudyBuddyError",
    "NotAuthenticatedError",
    "ConflictError",
    "PersistenceError",
    "NotificationNotFoundError",
    "MessageNotFoundError",
    "PermissionDeniedError",
]

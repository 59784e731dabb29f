"""Repository implementations for infrastructure layer."""

from .group_message_repository import (
    GroupMessageRepository,
    message_from_row,
    message_to_row,
)
from .message_status_repository import (
    MessageStatusRepository,
    status_from_row,
    status_to_row,
)
from .notification_preferences_repository import NotificationPreferencesRepository
from .notification_repository import NotificationRepository
from .profile_repository import ProfileRepository

__all__ = [
    "GroupMessageRepository",
    "MessageStatusRepository",
    "NotificationPreferencesRepository",
    "NotificationRepository",
    "ProfileRepository",
    "message_from_row",
    "message_to_row",
    "status_from_row",
    "status_to_row",
]

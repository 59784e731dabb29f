"""ORM models used by the application infrastructure."""

from .profile import ProfileModel
from .group_message import GroupMessageModel
from .message_status import MessageStatusModel
from .notification import NotificationModel
from .notification_preferences import NotificationPreferencesModel

__all__ = [
    "ProfileModel",
    "GroupMessageModel",
    "MessageStatusModel",
    "NotificationModel",
    "NotificationPreferencesModel",
]

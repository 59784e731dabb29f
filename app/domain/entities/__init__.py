"""Domain entities exposed by the application."""

from .message import (
    GroupMessage,
    MessageStatus,
    MessageStatusReceipt,
    MessageStatusValue,
)
from .notification import Notification, render_message
from .notification_action import (
    ACTION_POLICIES,
    ActionPolicy,
    NotificationAction,
    NotificationCategory,
    NotificationPriority,
    PreferenceField,
)
from .notification_preferences import NotificationPreferences
from .profile import Profile

__all__ = [
    "ACTION_POLICIES",
    "ActionPolicy",
    "GroupMessage",
    "MessageStatus",
    "MessageStatusReceipt",
    "MessageStatusValue",
    "Notification",
    "NotificationAction",
    "NotificationCategory",
    "NotificationPreferences",
    "NotificationPriority",
    "PreferenceField",
    "Profile",
    "render_message",
]

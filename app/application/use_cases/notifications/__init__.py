"""Notification content, preferences, batching, dispatch and triggers."""

from .batching import batched_actor_label, derive_group_key, merge_event
from .content import NotificationContent, generate_content
from .dispatcher import DispatchResult, create_notification
from .inbox import (
    archive_notification,
    get_unread_count,
    list_high_priority,
    list_notifications,
    mark_all_as_read,
    mark_as_read,
)
from .preferences import filter_by_preferences, get_preferences, update_preferences
from .triggers import (
    notify_comment_liked,
    notify_comment_replied,
    notify_group_invite,
    notify_group_joined,
    notify_group_left,
    notify_member_joined,
    notify_message_replied,
    notify_message_sent,
    notify_new_note,
    notify_note_commented,
    notify_note_liked,
    notify_note_shared,
    send_invite_email,
    send_system_announcement,
    send_welcome_notification,
)

__all__ = [
    "DispatchResult",
    "NotificationContent",
    "archive_notification",
    "batched_actor_label",
    "create_notification",
    "derive_group_key",
    "filter_by_preferences",
    "generate_content",
    "get_preferences",
    "get_unread_count",
    "list_high_priority",
    "list_notifications",
    "mark_all_as_read",
    "mark_as_read",
    "merge_event",
    "notify_comment_liked",
    "notify_comment_replied",
    "notify_group_invite",
    "notify_group_joined",
    "notify_group_left",
    "notify_member_joined",
    "notify_message_replied",
    "notify_message_sent",
    "notify_new_note",
    "notify_note_commented",
    "notify_note_liked",
    "notify_note_shared",
    "send_invite_email",
    "send_system_announcement",
    "send_welcome_notification",
    "update_preferences",
]

"""Closed set of notification actions and their routing policy."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping


class NotificationCategory(str, Enum):
    SOCIAL = "social"
    GROUP = "group"
    INVITE = "invite"
    CONTENT = "content"
    SYSTEM = "system"


class NotificationPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"


class PreferenceField(str, Enum):
    """Boolean preference flags that can silence an action."""

    SOCIAL = "social_enabled"
    GROUP = "group_enabled"
    INVITE = "invite_enabled"
    CONTENT = "content_enabled"
    NOTE_LIKES = "note_likes_enabled"
    NOTE_COMMENTS = "note_comments_enabled"
    MESSAGE_REPLIES = "message_replies_enabled"
    NEW_NOTES = "new_notes_enabled"
    MEMBER_JOINS = "member_joins_enabled"


@dataclass(frozen=True)
class ActionPolicy:
    """Category, batching key template and governing preference of an action.

    ``key_field`` names the metadata entry appended to ``key_prefix`` when a
    group key is derived; ``None`` means the key is always ``<prefix>-general``.
    ``preference_field`` is ``None`` for actions that cannot be silenced.
    """

    category: NotificationCategory
    key_prefix: str
    key_field: str | None
    preference_field: PreferenceField | None


class NotificationAction(str, Enum):
    NOTE_LIKED = "note_liked"
    NOTE_COMMENTED = "note_commented"
    COMMENT_LIKED = "comment_liked"
    COMMENT_REPLIED = "comment_replied"
    MESSAGE_REPLIED = "message_replied"
    GROUP_JOINED = "group_joined"
    GROUP_LEFT = "group_left"
    MEMBER_JOINED = "member_joined"
    GROUP_INVITED = "group_invited"
    NOTE_CREATED = "note_created"
    NOTE_SHARED = "note_shared"
    MESSAGE_SENT = "message_sent"
    WELCOME = "welcome"
    SYSTEM_ANNOUNCEMENT = "system_announcement"

    @property
    def policy(self) -> ActionPolicy:
        return ACTION_POLICIES[self]

    @property
    def category(self) -> NotificationCategory:
        return self.policy.category

    @property
    def preference_field(self) -> PreferenceField | None:
        return self.policy.preference_field

    def derive_group_key(self, metadata: Mapping[str, Any]) -> str:
        """Return the deterministic batching key for this action and ``metadata``."""

        policy = self.policy
        suffix = None
        if policy.key_field is not None:
            suffix = metadata.get(policy.key_field)
        if suffix in (None, ""):
            suffix = "general"
        return f"{policy.key_prefix}-{suffix}"


_Category = NotificationCategory
_Pref = PreferenceField

ACTION_POLICIES: dict[NotificationAction, ActionPolicy] = {
    NotificationAction.NOTE_LIKED: ActionPolicy(
        _Category.SOCIAL, "note-like", "target_id", _Pref.NOTE_LIKES
    ),
    NotificationAction.NOTE_COMMENTED: ActionPolicy(
        _Category.SOCIAL, "note-comment", "target_id", _Pref.NOTE_COMMENTS
    ),
    NotificationAction.COMMENT_LIKED: ActionPolicy(
        _Category.SOCIAL, "comment-like", "target_id", _Pref.NOTE_COMMENTS
    ),
    NotificationAction.COMMENT_REPLIED: ActionPolicy(
        _Category.SOCIAL, "comment_replied", "target_id", _Pref.NOTE_COMMENTS
    ),
    NotificationAction.MESSAGE_REPLIED: ActionPolicy(
        _Category.SOCIAL, "message_replied", "target_id", _Pref.MESSAGE_REPLIES
    ),
    NotificationAction.GROUP_JOINED: ActionPolicy(
        _Category.GROUP, "group_joined", "group_id", _Pref.GROUP
    ),
    NotificationAction.GROUP_LEFT: ActionPolicy(
        _Category.GROUP, "group_left", "group_id", _Pref.GROUP
    ),
    NotificationAction.MEMBER_JOINED: ActionPolicy(
        _Category.GROUP, "member-join", "group_id", _Pref.MEMBER_JOINS
    ),
    NotificationAction.GROUP_INVITED: ActionPolicy(
        _Category.INVITE, "group_invited", "target_id", _Pref.INVITE
    ),
    NotificationAction.NOTE_CREATED: ActionPolicy(
        _Category.CONTENT, "note-create", "group_id", _Pref.NEW_NOTES
    ),
    NotificationAction.NOTE_SHARED: ActionPolicy(
        _Category.CONTENT, "note_shared", "group_id", _Pref.CONTENT
    ),
    NotificationAction.MESSAGE_SENT: ActionPolicy(
        _Category.CONTENT, "message_sent", "group_id", _Pref.CONTENT
    ),
    NotificationAction.WELCOME: ActionPolicy(_Category.SYSTEM, "welcome", None, None),
    NotificationAction.SYSTEM_ANNOUNCEMENT: ActionPolicy(
        _Category.SYSTEM, "system_announcement", None, None
    ),
}


__all__ = [
    "ACTION_POLICIES",
    "ActionPolicy",
    "NotificationAction",
    "NotificationCategory",
    "NotificationPriority",
    "PreferenceField",
]

"""Static templates turning a notification action into user-facing text."""

from __future__ import annotations

from dataclasses import dataclass
from string import Formatter
from typing import Any, Mapping

from app.domain.entities import NotificationAction, NotificationCategory, render_message

DEFAULT_ACTOR_NAME = "Someone"
DEFAULT_TARGET_TITLE = "your content"
DEFAULT_GROUP_NAME = "a group"
DEFAULT_ANNOUNCEMENT_TITLE = "Announcement"
DEFAULT_ANNOUNCEMENT_TEXT = "Check out what's new"

_NOTE_URL = "/groups/{group_id}?tab=notes&n={target_id}&m=view"
_COMMENT_NOTE_URL = "/groups/{group_id}?tab=notes&n={note_id}&m=view"
_CHAT_URL = "/groups/{group_id}?tab=chat"
_GROUP_NOTES_URL = "/groups/{group_id}?tab=notes"


@dataclass(frozen=True)
class NotificationContent:
    """Rendered pieces of a notification.

    ``actor`` is the actor slot of the sentence (``None`` for sentences that
    do not start with an actor) and ``body`` the remainder.
    """

    title: str
    actor: str | None
    body: str
    category: NotificationCategory
    action_url: str | None = None

    @property
    def message(self) -> str:
        return render_message(self.actor, self.body)


@dataclass(frozen=True)
class _Template:
    title: str
    body: str
    url: str | None
    with_actor: bool = True


_TEMPLATES: dict[NotificationAction, _Template] = {
    NotificationAction.NOTE_LIKED: _Template(
        "New like", 'liked your note "{target_title}"', _NOTE_URL
    ),
    NotificationAction.NOTE_COMMENTED: _Template(
        "New comment", 'commented on "{target_title}"', _NOTE_URL
    ),
    NotificationAction.COMMENT_LIKED: _Template(
        "New like", 'liked your comment: "{target_title}"', _COMMENT_NOTE_URL
    ),
    NotificationAction.COMMENT_REPLIED: _Template(
        "New reply", "replied to your comment", _COMMENT_NOTE_URL
    ),
    NotificationAction.MESSAGE_REPLIED: _Template(
        "New reply", "replied to your message in {group_name}", _CHAT_URL
    ),
    NotificationAction.GROUP_JOINED: _Template(
        "Welcome!",
        "You joined {group_name}. Start collaborating!",
        _GROUP_NOTES_URL,
        with_actor=False,
    ),
    NotificationAction.GROUP_LEFT: _Template(
        "Group left",
        "You left {group_name}. You can rejoin if it's public.",
        "/groups",
        with_actor=False,
    ),
    NotificationAction.MEMBER_JOINED: _Template(
        "New member", "joined {group_name}", _GROUP_NOTES_URL
    ),
    NotificationAction.GROUP_INVITED: _Template(
        "Group invitation", "invited you to join {group_name}", "/dashboard/notifications"
    ),
    NotificationAction.NOTE_CREATED: _Template(
        "New note", 'posted "{target_title}" in {group_name}', _NOTE_URL
    ),
    NotificationAction.NOTE_SHARED: _Template(
        "Note shared", "shared a note in {group_name}", _CHAT_URL
    ),
    NotificationAction.MESSAGE_SENT: _Template(
        "New message", "sent a message in {group_name}", _CHAT_URL
    ),
    NotificationAction.WELCOME: _Template(
        "Welcome to StudyBuddy!",
        "Join groups, share notes, and collaborate with peers.",
        "/groups",
        with_actor=False,
    ),
    NotificationAction.SYSTEM_ANNOUNCEMENT: _Template(
        "{announcement_title}", "{announcement_text}", "{action_url}", with_actor=False
    ),
}


def generate_content(
    action: NotificationAction | str, metadata: Mapping[str, Any] | None = None
) -> NotificationContent:
    """Render title, message, category and deep link for ``action``.

    Pure function: the same action and metadata always yield the same content.
    """

    action = NotificationAction(action)
    metadata = metadata or {}
    template = _TEMPLATES[action]
    context = {
        "actor_name": _text(metadata.get("actor_name"), DEFAULT_ACTOR_NAME),
        "target_title": _text(metadata.get("target_title"), DEFAULT_TARGET_TITLE),
        "group_name": _text(metadata.get("group_name"), DEFAULT_GROUP_NAME),
        "announcement_title": _text(
            metadata.get("target_title"), DEFAULT_ANNOUNCEMENT_TITLE
        ),
        "announcement_text": _text(
            metadata.get("preview_text"), DEFAULT_ANNOUNCEMENT_TEXT
        ),
    }
    return NotificationContent(
        title=template.title.format_map(context),
        actor=context["actor_name"] if template.with_actor else None,
        body=template.body.format_map(context),
        category=action.category,
        action_url=_render_url(template.url, metadata),
    )


def _text(value: Any, default: str) -> str:
    if value is None:
        return default
    text = str(value).strip()
    return text or default


def _render_url(template: str | None, metadata: Mapping[str, Any]) -> str | None:
    """Fill ``template`` from ``metadata``; ``None`` when a referenced id is missing."""

    if template is None:
        return None
    values: dict[str, str] = {}
    for _, field_name, _, _ in Formatter().parse(template):
        if field_name is None:
            continue
        value = metadata.get(field_name)
        if value in (None, ""):
            return None
        values[field_name] = str(value)
    return template.format_map(values)


def supported_actions() -> tuple[NotificationAction, ...]:
    return tuple(_TEMPLATES)


__all__ = ["NotificationContent", "generate_content", "supported_actions"]

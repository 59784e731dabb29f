"""One helper per domain event that should notify somebody.

Callers invoke these after their primary write succeeded. Every helper is
fire-and-forget: a failure is logged, the session is rolled back and ``None``
is returned so that liking a note or posting a comment never fails because a
notification could not be written.
"""

from __future__ import annotations

import logging
from datetime import datetime
from functools import wraps
from typing import Any, Callable, Iterable, TypeVar

from sqlalchemy.orm import Session

from app.domain.entities import NotificationAction, NotificationPriority
from app.infrastructure.email import build_invite_link, send_group_invite_email

from .batching import derive_group_key
from .dispatcher import DispatchResult, create_notification

logger = logging.getLogger(__name__)

_F = TypeVar("_F", bound=Callable[..., Any])


def _fire_and_forget(func: _F) -> _F:
    @wraps(func)
    def wrapper(session: Session, *args: Any, **kwargs: Any) -> Any:
        try:
            return func(session, *args, **kwargs)
        except Exception:
            session.rollback()
            logger.exception("Notification trigger %s failed", func.__name__)
            return None

    return wrapper  # type: ignore[return-value]


def _other_recipients(user_ids: Iterable[int], actor_id: int) -> list[int]:
    return [user_id for user_id in user_ids if user_id != actor_id]


def _actor(actor_id: int, actor_name: str, actor_avatar: str | None) -> dict[str, Any]:
    return {"actor_id": actor_id, "actor_name": actor_name, "actor_avatar": actor_avatar}


def _batched(
    session: Session,
    user_ids: int | Iterable[int],
    action: NotificationAction,
    metadata: dict[str, Any],
    *,
    priority: NotificationPriority,
    now: datetime | None,
) -> DispatchResult:
    return create_notification(
        session,
        user_ids,
        action,
        metadata,
        priority=priority,
        group_key=derive_group_key(action, metadata),
        now=now,
    )


# Social


@_fire_and_forget
def notify_note_liked(
    session: Session,
    note_owner_id: int,
    actor_id: int,
    *,
    note_id: int,
    note_title: str,
    actor_name: str,
    actor_avatar: str | None = None,
    group_id: int | None = None,
    now: datetime | None = None,
) -> DispatchResult | None:
    if note_owner_id == actor_id:
        return None
    metadata = {
        **_actor(actor_id, actor_name, actor_avatar),
        "target_id": note_id,
        "target_type": "note",
        "target_title": note_title,
        "group_id": group_id,
    }
    return _batched(
        session,
        note_owner_id,
        NotificationAction.NOTE_LIKED,
        metadata,
        priority=NotificationPriority.LOW,
        now=now,
    )


@_fire_and_forget
def notify_comment_liked(
    session: Session,
    comment_owner_id: int,
    actor_id: int,
    *,
    comment_id: int,
    note_id: int,
    comment_preview: str,
    actor_name: str,
    note_title: str | None = None,
    actor_avatar: str | None = None,
    group_id: int | None = None,
    now: datetime | None = None,
) -> DispatchResult | None:
    if comment_owner_id == actor_id:
        return None
    metadata = {
        **_actor(actor_id, actor_name, actor_avatar),
        "target_id": comment_id,
        "target_type": "comment",
        "target_title": comment_preview,
        "note_id": note_id,
        "note_title": note_title,
        "group_id": group_id,
    }
    return _batched(
        session,
        comment_owner_id,
        NotificationAction.COMMENT_LIKED,
        metadata,
        priority=NotificationPriority.LOW,
        now=now,
    )


@_fire_and_forget
def notify_note_commented(
    session: Session,
    note_owner_id: int,
    actor_id: int,
    *,
    note_id: int,
    note_title: str,
    comment_id: int,
    comment_preview: str,
    actor_name: str,
    actor_avatar: str | None = None,
    group_id: int | None = None,
) -> DispatchResult | None:
    if note_owner_id == actor_id:
        return None
    metadata = {
        **_actor(actor_id, actor_name, actor_avatar),
        "target_id": note_id,
        "target_type": "note",
        "target_title": note_title,
        "comment_id": comment_id,
        "preview_text": comment_preview,
        "group_id": group_id,
    }
    return create_notification(
        session, note_owner_id, NotificationAction.NOTE_COMMENTED, metadata
    )


@_fire_and_forget
def notify_comment_replied(
    session: Session,
    comment_owner_id: int,
    actor_id: int,
    *,
    note_id: int,
    comment_id: int,
    reply_preview: str,
    actor_name: str,
    actor_avatar: str | None = None,
    group_id: int | None = None,
) -> DispatchResult | None:
    if comment_owner_id == actor_id:
        return None
    metadata = {
        **_actor(actor_id, actor_name, actor_avatar),
        "target_id": comment_id,
        "target_type": "comment",
        "note_id": note_id,
        "preview_text": reply_preview,
        "group_id": group_id,
    }
    return create_notification(
        session, comment_owner_id, NotificationAction.COMMENT_REPLIED, metadata
    )


@_fire_and_forget
def notify_message_replied(
    session: Session,
    message_owner_id: int,
    actor_id: int,
    *,
    group_id: int,
    group_name: str,
    message_id: int,
    reply_preview: str,
    actor_name: str,
    actor_avatar: str | None = None,
) -> DispatchResult | None:
    if message_owner_id == actor_id:
        return None
    metadata = {
        **_actor(actor_id, actor_name, actor_avatar),
        "group_id": group_id,
        "group_name": group_name,
        "target_id": message_id,
        "target_type": "message",
        "preview_text": reply_preview,
    }
    return create_notification(
        session, message_owner_id, NotificationAction.MESSAGE_REPLIED, metadata
    )


# Group


@_fire_and_forget
def notify_group_joined(
    session: Session, user_id: int, *, group_id: int, group_name: str
) -> DispatchResult | None:
    metadata = {"group_id": group_id, "group_name": group_name}
    return create_notification(session, user_id, NotificationAction.GROUP_JOINED, metadata)


@_fire_and_forget
def notify_group_left(
    session: Session, user_id: int, *, group_id: int, group_name: str, is_public: bool
) -> DispatchResult | None:
    metadata = {"group_id": group_id, "group_name": group_name, "is_public": is_public}
    return create_notification(
        session,
        user_id,
        NotificationAction.GROUP_LEFT,
        metadata,
        priority=NotificationPriority.LOW,
    )


@_fire_and_forget
def notify_member_joined(
    session: Session,
    admin_user_ids: Iterable[int],
    actor_id: int,
    *,
    group_id: int,
    group_name: str,
    member_name: str,
    member_avatar: str | None = None,
    now: datetime | None = None,
) -> DispatchResult | None:
    """Tell the group admins, except the new member, that someone joined."""

    recipients = _other_recipients(admin_user_ids, actor_id)
    if not recipients:
        return None
    metadata = {
        **_actor(actor_id, member_name, member_avatar),
        "group_id": group_id,
        "group_name": group_name,
    }
    return _batched(
        session,
        recipients,
        NotificationAction.MEMBER_JOINED,
        metadata,
        priority=NotificationPriority.LOW,
        now=now,
    )


@_fire_and_forget
def notify_group_invite(
    session: Session,
    invitee_id: int,
    inviter_id: int,
    *,
    group_id: int,
    inviter_name: str,
    invite_token: str,
    group_name: str | None = None,
    inviter_avatar: str | None = None,
    invite_id: int | None = None,
    alert: bool = True,
) -> DispatchResult | None:
    """Invites are high priority and never batched."""

    if invitee_id == inviter_id:
        return None
    metadata = {
        **_actor(inviter_id, inviter_name, inviter_avatar),
        "group_id": group_id,
        "group_name": group_name,
        "target_id": invite_id,
        "target_type": "invite",
        "invite_token": invite_token,
    }
    return create_notification(
        session,
        invitee_id,
        NotificationAction.GROUP_INVITED,
        metadata,
        priority=NotificationPriority.HIGH,
        alert=alert,
    )


# Content


@_fire_and_forget
def notify_new_note(
    session: Session,
    group_member_ids: Iterable[int],
    actor_id: int,
    *,
    group_id: int,
    group_name: str,
    note_id: int,
    note_title: str,
    actor_name: str,
    note_preview: str | None = None,
    actor_avatar: str | None = None,
    now: datetime | None = None,
) -> DispatchResult | None:
    recipients = _other_recipients(group_member_ids, actor_id)
    if not recipients:
        return None
    metadata = {
        **_actor(actor_id, actor_name, actor_avatar),
        "group_id": group_id,
        "group_name": group_name,
        "target_id": note_id,
        "target_type": "note",
        "target_title": note_title,
        "preview_text": note_preview,
    }
    return _batched(
        session,
        recipients,
        NotificationAction.NOTE_CREATED,
        metadata,
        priority=NotificationPriority.LOW,
        now=now,
    )


@_fire_and_forget
def notify_note_shared(
    session: Session,
    group_member_ids: Iterable[int],
    actor_id: int,
    *,
    group_id: int,
    group_name: str,
    note_id: int,
    actor_name: str,
    note_title: str | None = None,
    actor_avatar: str | None = None,
) -> DispatchResult | None:
    recipients = _other_recipients(group_member_ids, actor_id)
    if not recipients:
        return None
    metadata = {
        **_actor(actor_id, actor_name, actor_avatar),
        "group_id": group_id,
        "group_name": group_name,
        "target_id": note_id,
        "target_type": "note",
        "target_title": note_title,
    }
    return create_notification(
        session,
        recipients,
        NotificationAction.NOTE_SHARED,
        metadata,
        priority=NotificationPriority.LOW,
    )


@_fire_and_forget
def notify_message_sent(
    session: Session,
    group_member_ids: Iterable[int],
    actor_id: int,
    *,
    group_id: int,
    group_name: str,
    message_id: int,
    actor_name: str,
    message_preview: str | None = None,
    actor_avatar: str | None = None,
) -> DispatchResult | None:
    recipients = _other_recipients(group_member_ids, actor_id)
    if not recipients:
        return None
    metadata = {
        **_actor(actor_id, actor_name, actor_avatar),
        "group_id": group_id,
        "group_name": group_name,
        "target_id": message_id,
        "target_type": "message",
        "preview_text": message_preview,
    }
    return create_notification(
        session,
        recipients,
        NotificationAction.MESSAGE_SENT,
        metadata,
        priority=NotificationPriority.LOW,
    )


# System


@_fire_and_forget
def send_welcome_notification(session: Session, user_id: int) -> DispatchResult | None:
    return create_notification(session, user_id, NotificationAction.WELCOME)


@_fire_and_forget
def send_system_announcement(
    session: Session,
    user_ids: Iterable[int],
    *,
    title: str,
    message: str,
    action_url: str | None = None,
    alert: bool = False,
) -> DispatchResult | None:
    metadata = {"target_title": title, "preview_text": message, "action_url": action_url}
    return create_notification(
        session,
        user_ids,
        NotificationAction.SYSTEM_ANNOUNCEMENT,
        metadata,
        priority=NotificationPriority.HIGH,
        alert=alert,
    )


def send_invite_email(
    *,
    to: str,
    group_name: str,
    inviter_name: str,
    invite_token: str,
    expires_at: datetime,
) -> bool:
    """Email an invite to someone without an account; ``False`` on any failure."""

    try:
        return send_group_invite_email(
            to=to,
            group_name=group_name,
            inviter_name=inviter_name,
            invite_link=build_invite_link(invite_token),
            expires_at=expires_at,
        )
    except Exception:
        logger.exception("Failed to send group invite email")
        return False


__all__ = [
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
]

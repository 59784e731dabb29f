"""Use cases backing the notification inbox."""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from sqlalchemy.orm import Session

from app.domain.entities import Notification, NotificationCategory
from app.infrastructure.notifications import dispatch_realtime_event
from app.infrastructure.repositories import NotificationRepository


def list_notifications(
    session: Session,
    user_id: int,
    *,
    limit: int = 20,
    offset: int = 0,
    unread_only: bool = False,
    category: NotificationCategory | str | None = None,
) -> tuple[Sequence[Notification], int]:
    """Return a newest-first page of the user's inbox and the total row count."""

    if category is not None:
        category = NotificationCategory(category)
    return NotificationRepository(session).list_for_user(
        user_id,
        limit=limit,
        offset=offset,
        unread_only=unread_only,
        category=category,
    )


def get_unread_count(session: Session, user_id: int) -> int:
    return NotificationRepository(session).count_unread(user_id)


def list_high_priority(session: Session, user_id: int, *, limit: int = 10) -> Sequence[Notification]:
    return NotificationRepository(session).list_high_priority(user_id, limit=limit)


def mark_as_read(session: Session, user_id: int, notification_ids: Iterable[int]) -> int:
    """Mark the user's ``notification_ids`` read and tell their other tabs."""

    ids = list(notification_ids)
    updated = NotificationRepository(session).mark_as_read(ids, user_id=user_id)
    if updated:
        dispatch_realtime_event(
            [user_id], event_type="notifications.read", payload={"ids": ids}
        )
    return updated


def mark_all_as_read(session: Session, user_id: int) -> int:
    updated = NotificationRepository(session).mark_all_as_read(user_id)
    if updated:
        dispatch_realtime_event(
            [user_id], event_type="notifications.read", payload={"all": True}
        )
    return updated


def archive_notification(session: Session, user_id: int, notification_id: int) -> Notification:
    """Hide a notification from the inbox; raises if it is not the user's."""

    return NotificationRepository(session).archive(notification_id, user_id=user_id)


__all__ = [
    "archive_notification",
    "get_unread_count",
    "list_high_priority",
    "list_notifications",
    "mark_all_as_read",
    "mark_as_read",
]

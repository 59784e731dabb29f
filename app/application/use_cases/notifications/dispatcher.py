"""Single entry point creating notification rows for a set of recipients."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable, Mapping

from sqlalchemy.orm import Session

from app.domain.entities import (
    Notification,
    NotificationAction,
    NotificationPreferences,
    NotificationPriority,
)
from app.infrastructure.notifications import (
    AlertSender,
    dispatch_notification,
    realtime_alert_sender,
)
from app.infrastructure.repositories import (
    NotificationPreferencesRepository,
    NotificationRepository,
)
from app.utils import ensure_app_timezone, now_in_app_timezone

from .batching import derive_group_key, save_batched
from .content import NotificationContent, generate_content
from .preferences import filter_by_preferences

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    """Rows written by one :func:`create_notification` call."""

    created: list[Notification] = field(default_factory=list)
    merged: list[Notification] = field(default_factory=list)
    alerted: list[Notification] = field(default_factory=list)

    @property
    def notifications(self) -> list[Notification]:
        return [*self.created, *self.merged]

    def __bool__(self) -> bool:
        return bool(self.created or self.merged)


def create_notification(
    session: Session,
    user_ids: int | Iterable[int],
    action: NotificationAction | str,
    metadata: Mapping[str, Any] | None = None,
    *,
    priority: NotificationPriority | str = NotificationPriority.NORMAL,
    group_key: str | None = None,
    alert: bool = False,
    now: datetime | None = None,
    alert_sender: AlertSender | None = None,
) -> DispatchResult:
    """Create (or batch) ``action`` notifications for ``user_ids``.

    Every row stores a group key: ``group_key`` when given, otherwise the one
    derived from ``action`` and ``metadata``. Only an explicit ``group_key``
    enables batching. Recipients that opted out of the action are skipped.
    When batching, each remaining recipient's unread row with the same key inside
    the batch window absorbs the event instead of a new row being inserted.
    Every saved row is pushed to the recipient's open websockets. With
    ``alert`` set, newly created high priority rows are also signalled through
    ``alert_sender`` unless the recipient is inside their quiet hours.

    Persistence errors propagate to the caller.
    """

    action = NotificationAction(action)
    priority = NotificationPriority(priority)
    metadata = dict(metadata or {})
    recipients = _normalize_recipients(user_ids)
    result = DispatchResult()
    if not recipients:
        return result

    preferences = {
        item.user_id: item
        for item in NotificationPreferencesRepository(session).list_for_users(recipients)
    }
    recipients = filter_by_preferences(recipients, action, preferences)
    if not recipients:
        logger.debug("No recipient accepts %s notifications", action.value)
        return result

    content = generate_content(action, metadata)
    moment = ensure_app_timezone(now) if now is not None else now_in_app_timezone()
    repository = NotificationRepository(session)
    stored_key = group_key or derive_group_key(action, metadata)

    if group_key:
        for user_id in recipients:
            saved, merged = save_batched(
                repository,
                user_id=user_id,
                group_key=group_key,
                metadata=metadata,
                now=moment,
                build=lambda user_id=user_id: _build(
                    user_id, action, priority, content, metadata, stored_key, moment
                ),
            )
            (result.merged if merged else result.created).append(saved)
    else:
        result.created.extend(
            repository.create_many(
                [
                    _build(user_id, action, priority, content, metadata, stored_key, moment)
                    for user_id in recipients
                ]
            )
        )

    for notification in result.created:
        dispatch_notification(notification, change_type="INSERT")
    for notification in result.merged:
        dispatch_notification(notification, change_type="UPDATE")

    if alert and priority is NotificationPriority.HIGH:
        sender = alert_sender or realtime_alert_sender
        for notification in result.created:
            if _in_quiet_hours(preferences.get(notification.user_id), moment):
                logger.info(
                    "Suppressing alert for notification %s during quiet hours of user %s",
                    notification.id,
                    notification.user_id,
                )
                continue
            try:
                sender.send(notification)
            except Exception:
                logger.exception("Failed to signal alert for notification %s", notification.id)
                continue
            result.alerted.append(notification)

    logger.info(
        "Dispatched %s notification: %s created, %s merged",
        action.value,
        len(result.created),
        len(result.merged),
    )
    return result


def _normalize_recipients(user_ids: int | Iterable[int]) -> list[int]:
    if isinstance(user_ids, int):
        user_ids = [user_ids]
    recipients: list[int] = []
    seen: set[int] = set()
    for user_id in user_ids:
        if user_id is None or user_id in seen:
            continue
        seen.add(user_id)
        recipients.append(user_id)
    return recipients


def _build(
    user_id: int,
    action: NotificationAction,
    priority: NotificationPriority,
    content: NotificationContent,
    metadata: Mapping[str, Any],
    group_key: str,
    moment: datetime,
) -> Notification:
    return Notification(
        id=None,
        user_id=user_id,
        category=content.category,
        action=action,
        priority=priority,
        title=content.title,
        actor_label=content.actor,
        message_body=content.body,
        metadata=dict(metadata),
        action_url=content.action_url,
        group_key=group_key,
        created_at=moment,
    )


def _in_quiet_hours(preferences: NotificationPreferences | None, moment: datetime) -> bool:
    return preferences is not None and preferences.in_quiet_hours(moment)


__all__ = ["DispatchResult", "create_notification"]

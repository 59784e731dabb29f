"""Push saved notifications to their recipient's open inbox sockets."""

from __future__ import annotations

from typing import Any

from app.domain.entities import Notification

from .realtime import RealtimeEventPublisher, realtime_event_publisher

NOTIFICATION_EVENT = "notification"


def _isoformat(value) -> str | None:
    return value.isoformat() if value is not None else None


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the websocket payload representation for ``notification``."""

    return {
        "id": notification.id,
        "user_id": notification.user_id,
        "category": notification.category.value,
        "action": notification.action.value,
        "priority": notification.priority.value,
        "title": notification.title,
        "message": notification.message,
        "metadata": dict(notification.metadata or {}),
        "action_url": notification.action_url,
        "group_key": notification.group_key,
        "read": notification.read,
        "archived": notification.archived,
        "created_at": _isoformat(notification.created_at),
        "read_at": _isoformat(notification.read_at),
    }


class NotificationPublisher:
    """Send ``notification`` frames tagged with the row change that produced them.

    ``INSERT`` announces a new row; ``UPDATE`` a batched row that absorbed
    another event and must replace the client's copy.
    """

    def __init__(self, events: RealtimeEventPublisher) -> None:
        self._events = events

    def dispatch(self, notification: Notification, *, change_type: str = "INSERT") -> None:
        payload = serialize_notification(notification)
        payload["change_type"] = change_type
        self._events.publish_to(
            notification.user_id, event_type=NOTIFICATION_EVENT, payload=payload
        )


notification_publisher = NotificationPublisher(realtime_event_publisher)


def dispatch_notification(notification: Notification, *, change_type: str = "INSERT") -> None:
    notification_publisher.dispatch(notification, change_type=change_type)


__all__ = [
    "NOTIFICATION_EVENT",
    "NotificationPublisher",
    "dispatch_notification",
    "notification_publisher",
    "serialize_notification",
]

"""Attention-grabbing alerts for high priority notifications."""

from __future__ import annotations

import logging
from typing import Protocol

from app.domain.entities import Notification, NotificationPriority

from .realtime import RealtimeEventPublisher, realtime_event_publisher

logger = logging.getLogger(__name__)

ALERT_ICON = "/favicon.ico"
ALERT_BADGE = "/badge-icon.png"


class AlertSender(Protocol):
    """Collaborator able to surface a notification outside the inbox."""

    def send(self, notification: Notification) -> None:
        ...


class RealtimeAlertSender:
    """Ask connected clients to show a browser notification.

    The client handles the permission prompt and click-to-navigate; the frame
    carries everything it needs to build the native notification.
    """

    def __init__(self, events: RealtimeEventPublisher) -> None:
        self._events = events

    def send(self, notification: Notification) -> None:
        payload = {
            "notification_id": notification.id,
            "title": notification.title,
            "body": notification.message,
            "icon": ALERT_ICON,
            "badge": ALERT_BADGE,
            "tag": str(notification.id),
            "require_interaction": notification.priority is NotificationPriority.HIGH,
            "action_url": notification.action_url,
        }
        logger.debug(
            "Signalling alert for notification %s to user %s",
            notification.id,
            notification.user_id,
        )
        self._events.publish_to(notification.user_id, event_type="alert", payload=payload)


realtime_alert_sender = RealtimeAlertSender(realtime_event_publisher)


__all__ = ["AlertSender", "RealtimeAlertSender", "realtime_alert_sender"]

"""Realtime notification helpers for the infrastructure layer."""

from .alerts import AlertSender, RealtimeAlertSender, realtime_alert_sender
from .change_feed import (
    MESSAGE_STATUSES_TABLE,
    MESSAGES_TABLE,
    ChangeEvent,
    ChangeFeed,
    ChangeSubscription,
    ChangeType,
    change_feed,
)
from .manager import RealtimeConnectionManager, connection_manager
from .publisher import (
    NOTIFICATION_EVENT,
    NotificationPublisher,
    dispatch_notification,
    notification_publisher,
    serialize_notification,
)
from .realtime import (
    RealtimeEventPublisher,
    build_frame,
    dispatch_realtime_event,
    realtime_event_publisher,
)

__all__ = [
    "AlertSender",
    "RealtimeAlertSender",
    "realtime_alert_sender",
    "MESSAGES_TABLE",
    "MESSAGE_STATUSES_TABLE",
    "ChangeEvent",
    "ChangeFeed",
    "ChangeSubscription",
    "ChangeType",
    "change_feed",
    "RealtimeConnectionManager",
    "connection_manager",
    "NOTIFICATION_EVENT",
    "NotificationPublisher",
    "notification_publisher",
    "dispatch_notification",
    "serialize_notification",
    "RealtimeEventPublisher",
    "build_frame",
    "realtime_event_publisher",
    "dispatch_realtime_event",
]

"""Use cases for group chat messages and their delivery state."""

from .edit_message import delete_message, edit_message
from .get_message_receipts import get_message_receipts
from .list_group_messages import list_group_messages
from .mark_group_seen import mark_group_seen
from .reconciler import (
    CacheChange,
    CacheChangeKind,
    GroupSubscriptionHandle,
    MessageCache,
    MessageDeliveryReconciler,
)
from .send_message import send_message

__all__ = [
    "CacheChange",
    "CacheChangeKind",
    "GroupSubscriptionHandle",
    "MessageCache",
    "MessageDeliveryReconciler",
    "delete_message",
    "edit_message",
    "get_message_receipts",
    "list_group_messages",
    "mark_group_seen",
    "send_message",
]

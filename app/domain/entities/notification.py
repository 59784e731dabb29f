"""Domain entity representing a user notification."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from .notification_action import (
    NotificationAction,
    NotificationCategory,
    NotificationPriority,
)


def render_message(actor_label: str | None, message_body: str) -> str:
    """Flatten the actor slot and the body into the displayed sentence."""

    if actor_label:
        return f"{actor_label} {message_body}".strip()
    return message_body


@dataclass
class Notification:
    """Information message delivered to a specific user.

    The sentence shown to the user is kept as templated data: ``actor_label``
    holds the actor slot ("Alice", "Alice and 2 others") and ``message_body``
    the rest of the sentence. ``message`` flattens both at read time so batching
    can rewrite the actor slot without parsing rendered text.
    """

    id: int | None
    user_id: int
    category: NotificationCategory
    action: NotificationAction
    priority: NotificationPriority
    title: str
    message_body: str
    actor_label: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    action_url: str | None = None
    group_key: str | None = None
    read: bool = False
    read_at: datetime | None = None
    archived: bool = False
    created_at: datetime | None = None
    version: int = 1

    @property
    def message(self) -> str:
        return render_message(self.actor_label, self.message_body)

    @property
    def batch_count(self) -> int:
        """Number of events folded into this row (``1`` when never merged)."""

        try:
            return max(int(self.metadata.get("count") or 1), 1)
        except (TypeError, ValueError):
            return 1


__all__ = ["Notification", "render_message"]

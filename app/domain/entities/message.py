"""Domain entities for group chat messages and their delivery state."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class MessageStatusValue(str, Enum):
    """Delivery state of a message for one recipient."""

    SENT = "sent"
    DELIVERED = "delivered"
    SEEN = "seen"

    @property
    def rank(self) -> int:
        """Display order: ``sent`` < ``delivered`` < ``seen``."""

        return _STATUS_RANK[self]


_STATUS_RANK = {
    MessageStatusValue.SENT: 0,
    MessageStatusValue.DELIVERED: 1,
    MessageStatusValue.SEEN: 2,
}


@dataclass(frozen=True)
class MessageStatus:
    """Delivery state row, unique per ``(message_id, user_id)``."""

    id: int | None
    message_id: int
    user_id: int
    status: MessageStatusValue
    created_at: datetime | None = None


@dataclass(frozen=True)
class MessageStatusReceipt:
    """Status row enriched with the recipient's profile for read receipts."""

    status: MessageStatus
    full_name: str | None
    avatar_url: str | None


@dataclass(frozen=True)
class GroupMessage:
    """Chat message posted in a study group."""

    id: int | None
    group_id: int
    sender_id: int
    content: str
    created_at: datetime | None = None
    statuses: tuple[MessageStatus, ...] = field(default_factory=tuple)

    def status_for(self, user_id: int) -> MessageStatus | None:
        for status in self.statuses:
            if status.user_id == user_id:
                return status
        return None


__all__ = [
    "GroupMessage",
    "MessageStatus",
    "MessageStatusReceipt",
    "MessageStatusValue",
]

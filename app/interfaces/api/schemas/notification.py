"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from app.domain.entities import Notification


class NotificationMarkReadRequest(BaseModel):
    """Payload used to mark a batch of notifications as read."""

    ids: list[int] = Field(..., min_length=1, description="Notification identifiers")

    def unique_ids(self) -> list[int]:
        """Return the list of identifiers without duplicates preserving order."""

        unique: list[int] = []
        seen: set[int] = set()
        for notification_id in self.ids:
            if notification_id in seen:
                continue
            seen.add(notification_id)
            unique.append(notification_id)
        return unique


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    id: int
    user_id: int
    category: str
    action: str
    priority: str
    title: str
    message: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    action_url: str | None = None
    group_key: str | None = None
    read: bool
    read_at: datetime | None = None
    archived: bool = False
    created_at: datetime | None = None

    @classmethod
    def from_entity(cls, notification: Notification) -> "NotificationRead":
        return cls(
            id=notification.id or 0,
            user_id=notification.user_id,
            category=notification.category.value,
            action=notification.action.value,
            priority=notification.priority.value,
            title=notification.title,
            message=notification.message,
            metadata=dict(notification.metadata or {}),
            action_url=notification.action_url,
            group_key=notification.group_key,
            read=notification.read,
            read_at=notification.read_at,
            archived=notification.archived,
            created_at=notification.created_at,
        )


class NotificationPage(BaseModel):
    items: list[NotificationRead]
    total: int
    limit: int
    offset: int


class UnreadCountRead(BaseModel):
    unread: int


class MarkReadResponse(BaseModel):
    updated: int


__all__ = [
    "MarkReadResponse",
    "NotificationMarkReadRequest",
    "NotificationPage",
    "NotificationRead",
    "UnreadCountRead",
]

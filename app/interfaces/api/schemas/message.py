"""Schemas for group chat messages and read receipts."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.domain.entities import GroupMessage, MessageStatus, MessageStatusReceipt


class MessageCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=4000)


class MessageUpdate(BaseModel):
    content: str = Field(..., min_length=1, max_length=4000)

    model_config = ConfigDict(extra="forbid")


class MessageStatusRead(BaseModel):
    id: int | None
    message_id: int
    user_id: int
    status: str
    created_at: datetime | None = None

    @classmethod
    def from_entity(cls, status: MessageStatus) -> "MessageStatusRead":
        return cls(
            id=status.id,
            message_id=status.message_id,
            user_id=status.user_id,
            status=status.status.value,
            created_at=status.created_at,
        )


class MessageRead(BaseModel):
    id: int
    group_id: int
    sender_id: int
    content: str
    created_at: datetime | None = None
    statuses: list[MessageStatusRead] = Field(default_factory=list)

    @classmethod
    def from_entity(cls, message: GroupMessage) -> "MessageRead":
        return cls(
            id=message.id or 0,
            group_id=message.group_id,
            sender_id=message.sender_id,
            content=message.content,
            created_at=message.created_at,
            statuses=[MessageStatusRead.from_entity(item) for item in message.statuses],
        )


class MessageReceiptRead(BaseModel):
    """One recipient's delivery state with their profile details."""

    user_id: int
    status: str
    created_at: datetime | None = None
    full_name: str | None = None
    avatar_url: str | None = None

    @classmethod
    def from_entity(cls, receipt: MessageStatusReceipt) -> "MessageReceiptRead":
        return cls(
            user_id=receipt.status.user_id,
            status=receipt.status.status.value,
            created_at=receipt.status.created_at,
            full_name=receipt.full_name,
            avatar_url=receipt.avatar_url,
        )


__all__ = [
    "MessageCreate",
    "MessageRead",
    "MessageReceiptRead",
    "MessageStatusRead",
    "MessageUpdate",
]

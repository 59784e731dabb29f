"""Use case for posting a chat message in a group."""

from __future__ import annotations

from dataclasses import replace

from sqlalchemy.orm import Session

from app.domain.entities import GroupMessage, MessageStatusValue
from app.infrastructure.notifications import ChangeFeed
from app.infrastructure.repositories import GroupMessageRepository, MessageStatusRepository


def send_message(
    session: Session,
    *,
    group_id: int,
    sender_id: int,
    content: str,
    feed: ChangeFeed | None = None,
) -> GroupMessage:
    """Persist the message and the sender's own ``sent`` status row."""

    content = (content or "").strip()
    if not content:
        raise ValueError("Message content cannot be empty")

    message = GroupMessageRepository(session, feed=feed).create(
        GroupMessage(id=None, group_id=group_id, sender_id=sender_id, content=content)
    )
    status = MessageStatusRepository(session, feed=feed).update_status(
        message.id, sender_id, MessageStatusValue.SENT
    )
    return replace(message, statuses=(*message.statuses, status))

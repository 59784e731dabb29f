"""Use cases for changing or removing a message after it was posted."""

from __future__ import annotations

from sqlalchemy.orm import Session

from app.domain.entities import GroupMessage
from app.domain.errors import MessageNotFoundError, PermissionDeniedError
from app.infrastructure.notifications import ChangeFeed
from app.infrastructure.repositories import GroupMessageRepository


def _own_message(repository: GroupMessageRepository, message_id: int, user_id: int) -> GroupMessage:
    message = repository.get(message_id)
    if message is None:
        raise MessageNotFoundError(f"Message with id {message_id} not found")
    if message.sender_id != user_id:
        raise PermissionDeniedError("Only the sender can change a message")
    return message


def edit_message(
    session: Session,
    *,
    message_id: int,
    editor_id: int,
    content: str,
    feed: ChangeFeed | None = None,
) -> GroupMessage:
    content = (content or "").strip()
    if not content:
        raise ValueError("Message content cannot be empty")
    repository = GroupMessageRepository(session, feed=feed)
    _own_message(repository, message_id, editor_id)
    return repository.update_content(message_id, content)


def delete_message(
    session: Session, *, message_id: int, user_id: int, feed: ChangeFeed | None = None
) -> GroupMessage:
    repository = GroupMessageRepository(session, feed=feed)
    _own_message(repository, message_id, user_id)
    return repository.delete(message_id)

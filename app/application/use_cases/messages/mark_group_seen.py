"""Use case for marking a group's messages as seen by a user."""

from collections.abc import Sequence

from sqlalchemy.orm import Session

from app.domain.entities import MessageStatus
from app.infrastructure.notifications import ChangeFeed
from app.infrastructure.repositories import MessageStatusRepository


def mark_group_seen(
    session: Session, *, group_id: int, user_id: int, feed: ChangeFeed | None = None
) -> Sequence[MessageStatus]:
    return MessageStatusRepository(session, feed=feed).mark_group_as_seen(group_id, user_id)

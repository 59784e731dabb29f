"""Use case for loading a page of group messages."""

from __future__ import annotations

import logging
from dataclasses import replace

from sqlalchemy.orm import Session

from app.domain.entities import GroupMessage, MessageStatusValue
from app.domain.errors import PersistenceError
from app.infrastructure.notifications import ChangeFeed
from app.infrastructure.repositories import GroupMessageRepository, MessageStatusRepository

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 50


def list_group_messages(
    session: Session,
    *,
    group_id: int,
    viewer_id: int,
    limit: int | None = DEFAULT_PAGE_SIZE,
    feed: ChangeFeed | None = None,
) -> list[GroupMessage]:
    """Return the latest messages and mark the fetched ones delivered to the viewer.

    Only messages written by somebody else and without a row for the viewer
    get a ``delivered`` row; existing ``seen`` rows are never lowered.
    """

    messages = GroupMessageRepository(session, feed=feed).list_for_group(group_id, limit=limit)
    statuses = MessageStatusRepository(session, feed=feed)

    result = []
    for message in messages:
        if message.sender_id != viewer_id and message.status_for(viewer_id) is None:
            try:
                status = statuses.update_status(
                    message.id, viewer_id, MessageStatusValue.DELIVERED
                )
            except PersistenceError:
                logger.warning(
                    "Could not mark message %s delivered for user %s",
                    message.id,
                    viewer_id,
                    exc_info=True,
                )
            else:
                message = replace(message, statuses=(*message.statuses, status))
        result.append(message)
    return result

"""Fold repeated events sharing a group key into one unread notification."""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Any, Callable, Mapping

from app.config import get_settings
from app.domain.entities import Notification, NotificationAction
from app.domain.errors import ConflictError
from app.infrastructure.repositories import NotificationRepository

logger = logging.getLogger(__name__)

MERGE_ATTEMPTS = 3


def derive_group_key(action: NotificationAction | str, metadata: Mapping[str, Any]) -> str:
    """Return the batching key of ``action``; missing ids fall back to ``general``."""

    return NotificationAction(action).derive_group_key(metadata or {})


def batch_window() -> timedelta:
    return timedelta(minutes=get_settings().notification_batch_window_minutes)


def batched_actor_label(actor_name: str, count: int) -> str:
    """Actor slot for a row that folds ``count`` events, latest actor first."""

    others = count - 1
    if others <= 0:
        return actor_name
    if others == 1:
        return f"{actor_name} and 1 other"
    return f"{actor_name} and {others} others"


def merge_event(
    existing: Notification, metadata: Mapping[str, Any], now: datetime
) -> Notification:
    """Return ``existing`` with one more event folded in.

    The count goes from 1 to 2 on the first merge. Only the actor slot is
    rewritten; the body of the sentence is kept as is.
    """

    count = existing.batch_count + 1
    merged_metadata = dict(existing.metadata or {})
    actor_name = (
        metadata.get("actor_name")
        or merged_metadata.get("latest_actor")
        or merged_metadata.get("actor_name")
        or "Someone"
    )
    merged_metadata.update(
        count=count,
        latest_actor=actor_name,
        latest_at=now.isoformat(),
    )
    return replace(
        existing,
        actor_label=batched_actor_label(str(actor_name), count),
        metadata=merged_metadata,
        read=False,
        created_at=now,
    )


def save_batched(
    repository: NotificationRepository,
    *,
    user_id: int,
    group_key: str,
    metadata: Mapping[str, Any],
    now: datetime,
    build: Callable[[], Notification],
) -> tuple[Notification, bool]:
    """Merge into the recipient's batch head or insert a new row.

    Each recipient has its own batch head; a shared event merges into every
    recipient's head rather than a single match across all of them.

    Returns the saved row and whether it was a merge. A head changed by
    someone else between the read and the write is re-read and merged again.
    """

    since = now - batch_window()
    for attempt in range(1, MERGE_ATTEMPTS + 1):
        head = repository.find_batch_head(user_id=user_id, group_key=group_key, since=since)
        if head is None:
            return repository.create(build()), False
        try:
            return repository.update_batched(merge_event(head, metadata, now)), True
        except ConflictError:
            logger.info(
                "Batch head %s for %s changed during merge (attempt %s/%s)",
                head.id,
                group_key,
                attempt,
                MERGE_ATTEMPTS,
            )

    logger.warning(
        "Could not merge into batch %s for user %s; inserting a new row", group_key, user_id
    )
    return repository.create(build()), False


__all__ = [
    "MERGE_ATTEMPTS",
    "batch_window",
    "batched_actor_label",
    "derive_group_key",
    "merge_event",
    "save_batched",
]

"""Keep one group's message cache in step with the change feed.

A :class:`MessageDeliveryReconciler` belongs to one viewer. Subscribing to a
group returns a :class:`GroupSubscriptionHandle` owning the group's
:class:`MessageCache` and both feed subscriptions: messages of the group and
status rows of every message. Only one group is open at a time; subscribing to
another group closes the previous handle.

When a message written by somebody else arrives, the viewer's ``delivered``
row is written through a fresh session. Status events for messages that are
not in the cache are dropped.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.entities import GroupMessage, MessageStatus, MessageStatusValue
from app.domain.errors import StudyBuddyError
from app.infrastructure.database import SessionLocal
from app.infrastructure.notifications import (
    MESSAGE_STATUSES_TABLE,
    MESSAGES_TABLE,
    ChangeEvent,
    ChangeFeed,
    ChangeSubscription,
    ChangeType,
    change_feed,
)
from app.infrastructure.repositories import (
    MessageStatusRepository,
    message_from_row,
    status_from_row,
)

logger = logging.getLogger(__name__)


class CacheChangeKind(str, Enum):
    MESSAGE_ADDED = "message_added"
    MESSAGE_UPDATED = "message_updated"
    MESSAGE_REMOVED = "message_removed"
    STATUS_CHANGED = "status_changed"


@dataclass(frozen=True)
class CacheChange:
    kind: CacheChangeKind
    message: GroupMessage


class MessageCache:
    """Ordered messages of one group.

    Entries are immutable; every change replaces or appends a whole message,
    matched by id.
    """

    def __init__(self, group_id: int, messages: Iterable[GroupMessage] = ()) -> None:
        self.group_id = group_id
        self._messages: list[GroupMessage] = []
        self._lock = threading.RLock()
        for message in messages:
            self.upsert_message(message)

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)

    def __contains__(self, message_id: object) -> bool:
        return self.get(message_id) is not None  # type: ignore[arg-type]

    def snapshot(self) -> tuple[GroupMessage, ...]:
        with self._lock:
            return tuple(self._messages)

    def get(self, message_id: int) -> GroupMessage | None:
        with self._lock:
            index = self._index(message_id)
            return None if index is None else self._messages[index]

    def upsert_message(self, message: GroupMessage) -> tuple[GroupMessage, bool]:
        """Replace the cached message with the same id or append it.

        Returns the stored message and whether it was appended. A replacement
        without status rows keeps the statuses already cached.
        """

        with self._lock:
            index = self._index(message.id)
            if index is None:
                self._messages.append(message)
                return message, True
            current = self._messages[index]
            if not message.statuses and current.statuses:
                message = replace(message, statuses=current.statuses)
            self._messages[index] = message
            return message, False

    def remove_message(self, message_id: int) -> GroupMessage | None:
        with self._lock:
            index = self._index(message_id)
            if index is None:
                return None
            return self._messages.pop(index)

    def upsert_status(self, status: MessageStatus) -> GroupMessage | None:
        """Store ``status`` on its message; ``None`` when the message is not cached."""

        with self._lock:
            index = self._index(status.message_id)
            if index is None:
                return None
            message = self._messages[index]
            statuses = list(message.statuses)
            for position, current in enumerate(statuses):
                if current.user_id == status.user_id:
                    statuses[position] = status
                    break
            else:
                statuses.append(status)
            message = replace(message, statuses=tuple(statuses))
            self._messages[index] = message
            return message

    def _index(self, message_id: int | None) -> int | None:
        for index, message in enumerate(self._messages):
            if message.id == message_id:
                return index
        return None


class GroupSubscriptionHandle:
    """Open subscription to one group; close it on every exit path.

    Usable as a context manager. ``close`` is idempotent.
    """

    def __init__(self, group_id: int, cache: MessageCache) -> None:
        self.group_id = group_id
        self.cache = cache
        self._subscriptions: list[ChangeSubscription] = []
        self._closed = False
        self._lock = threading.Lock()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def messages(self) -> tuple[GroupMessage, ...]:
        return self.cache.snapshot()

    def track(self, subscription: ChangeSubscription) -> None:
        with self._lock:
            if self._closed:
                subscription.unsubscribe()
                return
            self._subscriptions.append(subscription)

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            subscription.unsubscribe()
        logger.debug("Closed realtime subscription for group %s", self.group_id)

    def __enter__(self) -> "GroupSubscriptionHandle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class MessageDeliveryReconciler:
    """Apply realtime message and status events for ``current_user_id``."""

    def __init__(
        self,
        current_user_id: int,
        *,
        feed: ChangeFeed | None = None,
        session_factory: Callable[[], Session] = SessionLocal,
        on_change: Callable[[CacheChange], None] | None = None,
    ) -> None:
        self.current_user_id = current_user_id
        self._feed = feed if feed is not None else change_feed
        self._session_factory = session_factory
        self._on_change = on_change
        self._handle: GroupSubscriptionHandle | None = None

    @property
    def handle(self) -> GroupSubscriptionHandle | None:
        return self._handle

    def subscribe(
        self, group_id: int, messages: Iterable[GroupMessage] = ()
    ) -> GroupSubscriptionHandle:
        """Open ``group_id`` seeded with ``messages``, closing the previous group."""

        self.close()
        handle = GroupSubscriptionHandle(group_id, MessageCache(group_id, messages))
        handle.track(
            self._feed.subscribe(
                MESSAGES_TABLE,
                lambda event: self._on_message_event(handle, event),
                row_filter={"group_id": group_id},
            )
        )
        handle.track(
            self._feed.subscribe(
                MESSAGE_STATUSES_TABLE,
                lambda event: self._on_status_event(handle, event),
                change_types=(ChangeType.INSERT, ChangeType.UPDATE),
            )
        )
        self._handle = handle
        logger.debug(
            "User %s subscribed to realtime messages of group %s",
            self.current_user_id,
            group_id,
        )
        return handle

    def close(self) -> None:
        handle, self._handle = self._handle, None
        if handle is not None:
            handle.close()

    def _on_message_event(self, handle: GroupSubscriptionHandle, event: ChangeEvent) -> None:
        if handle.closed:
            return
        message = message_from_row(event.row)

        if event.change_type is ChangeType.DELETE:
            removed = handle.cache.remove_message(message.id)
            if removed is not None:
                self._notify(CacheChange(CacheChangeKind.MESSAGE_REMOVED, removed))
            return

        if event.change_type is ChangeType.UPDATE:
            if handle.cache.get(message.id) is None:
                return
            stored, _ = handle.cache.upsert_message(message)
            self._notify(CacheChange(CacheChangeKind.MESSAGE_UPDATED, stored))
            return

        # The message is cached before the status write so that the status
        # event it triggers finds it.
        stored, appended = handle.cache.upsert_message(message)
        self._notify(
            CacheChange(
                CacheChangeKind.MESSAGE_ADDED if appended else CacheChangeKind.MESSAGE_UPDATED,
                stored,
            )
        )
        if message.sender_id != self.current_user_id:
            self._mark_delivered(message)

    def _on_status_event(self, handle: GroupSubscriptionHandle, event: ChangeEvent) -> None:
        if handle.closed:
            return
        status = status_from_row(event.row)
        message = handle.cache.upsert_status(status)
        if message is None:
            return
        self._notify(CacheChange(CacheChangeKind.STATUS_CHANGED, message))

    def _mark_delivered(self, message: GroupMessage) -> None:
        session = self._session_factory()
        try:
            MessageStatusRepository(session, feed=self._feed).update_status(
                message.id, self.current_user_id, MessageStatusValue.DELIVERED
            )
        except (StudyBuddyError, SQLAlchemyError):
            logger.warning(
                "Could not mark message %s delivered for user %s",
                message.id,
                self.current_user_id,
                exc_info=True,
            )
        finally:
            session.close()

    def _notify(self, change: CacheChange) -> None:
        if self._on_change is not None:
            self._on_change(change)


__all__ = [
    "CacheChange",
    "CacheChangeKind",
    "GroupSubscriptionHandle",
    "MessageCache",
    "MessageDeliveryReconciler",
]

"""In-process row change feed used to fan out realtime database events."""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, DefaultDict, Iterable, Mapping

logger = logging.getLogger(__name__)

MESSAGES_TABLE = "group_message"
MESSAGE_STATUSES_TABLE = "message_status"


class ChangeType(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


@dataclass(frozen=True)
class ChangeEvent:
    """A committed row change.

    ``new`` carries the row after the change and ``old`` the row before it
    (only populated for deletes).
    """

    table: str
    change_type: ChangeType
    new: Mapping[str, Any]
    old: Mapping[str, Any] | None = None

    @property
    def row(self) -> Mapping[str, Any]:
        if self.change_type is ChangeType.DELETE and self.old is not None:
            return self.old
        return self.new


ChangeCallback = Callable[[ChangeEvent], None]


class ChangeSubscription:
    """Registration of one callback on one table of a :class:`ChangeFeed`."""

    def __init__(
        self,
        feed: "ChangeFeed",
        table: str,
        callback: ChangeCallback,
        *,
        change_types: frozenset[ChangeType],
        row_filter: Mapping[str, Any] | None,
    ) -> None:
        self._feed = feed
        self.table = table
        self.callback = callback
        self.change_types = change_types
        self.row_filter = dict(row_filter or {})
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def matches(self, event: ChangeEvent) -> bool:
        if not self._active or event.change_type not in self.change_types:
            return False
        row = event.row
        return all(row.get(key) == value for key, value in self.row_filter.items())

    def unsubscribe(self) -> None:
        """Stop receiving events; calling it more than once is harmless."""

        if not self._active:
            return
        self._active = False
        self._feed._remove(self)


class ChangeFeed:
    """Deliver committed row changes to subscribers filtered by table and row."""

    def __init__(self) -> None:
        self._subscriptions: DefaultDict[str, list[ChangeSubscription]] = defaultdict(list)
        self._lock = threading.RLock()

    def subscribe(
        self,
        table: str,
        callback: ChangeCallback,
        *,
        change_types: Iterable[ChangeType] | None = None,
        row_filter: Mapping[str, Any] | None = None,
    ) -> ChangeSubscription:
        """Register ``callback`` for changes on ``table`` matching ``row_filter``."""

        types = frozenset(change_types or ChangeType)
        subscription = ChangeSubscription(
            self, table, callback, change_types=types, row_filter=row_filter
        )
        with self._lock:
            self._subscriptions[table].append(subscription)
        return subscription

    def publish(
        self,
        table: str,
        change_type: ChangeType,
        new: Mapping[str, Any],
        old: Mapping[str, Any] | None = None,
    ) -> int:
        """Deliver a change to every matching subscriber and return how many got it.

        Subscribers run synchronously in the publishing thread, in registration
        order. A failing subscriber is logged and does not affect the others or
        the publisher.
        """

        event = ChangeEvent(table=table, change_type=change_type, new=dict(new), old=old)
        with self._lock:
            subscriptions = list(self._subscriptions.get(table, ()))

        delivered = 0
        for subscription in subscriptions:
            if not subscription.matches(event):
                continue
            try:
                subscription.callback(event)
            except Exception:
                logger.exception(
                    "Change feed subscriber failed for %s %s", change_type.value, table
                )
                continue
            delivered += 1
        return delivered

    def subscriber_count(self, table: str | None = None) -> int:
        with self._lock:
            if table is not None:
                return len(self._subscriptions.get(table, ()))
            return sum(len(items) for items in self._subscriptions.values())

    def _remove(self, subscription: ChangeSubscription) -> None:
        with self._lock:
            subscriptions = self._subscriptions.get(subscription.table)
            if not subscriptions:
                return
            try:
                subscriptions.remove(subscription)
            except ValueError:
                return
            if not subscriptions:
                self._subscriptions.pop(subscription.table, None)


change_feed = ChangeFeed()


__all__ = [
    "MESSAGES_TABLE",
    "MESSAGE_STATUSES_TABLE",
    "ChangeCallback",
    "ChangeEvent",
    "ChangeFeed",
    "ChangeSubscription",
    "ChangeType",
    "change_feed",
]

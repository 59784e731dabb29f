"""Tests for the realtime message delivery reconciler."""

from __future__ import annotations

import logging

from app.application.use_cases.messages import (
    CacheChangeKind,
    MessageCache,
    MessageDeliveryReconciler,
    delete_message,
    edit_message,
    mark_group_seen,
    send_message,
)
from app.domain.entities import GroupMessage, MessageStatus, MessageStatusValue
from app.domain.errors import PersistenceError
from app.infrastructure import database
from app.infrastructure.models import MessageStatusModel
from app.infrastructure.notifications import MESSAGE_STATUSES_TABLE, ChangeType
from app.infrastructure.repositories import (
    GroupMessageRepository,
    MessageStatusRepository,
    status_to_row,
)

ALICE_ID = 1
BOB_ID = 2
GROUP_ID = 10
OTHER_GROUP_ID = 11


def _reconciler(feed, user_id=ALICE_ID):
    changes = []
    reconciler = MessageDeliveryReconciler(
        user_id,
        feed=feed,
        session_factory=database.SessionLocal,
        on_change=changes.append,
    )
    return reconciler, changes


def test_incoming_message_is_delivered_then_seen(session, feed, profiles) -> None:
    reconciler, changes = _reconciler(feed)
    handle = reconciler.subscribe(GROUP_ID)

    message = send_message(
        session, group_id=GROUP_ID, sender_id=BOB_ID, content="Anyone up for revision?", feed=feed
    )

    statuses = MessageStatusRepository(session, feed=feed)
    assert statuses.get_status(message.id, ALICE_ID).status is MessageStatusValue.DELIVERED
    cached = handle.cache.get(message.id)
    assert cached.status_for(ALICE_ID).status is MessageStatusValue.DELIVERED
    assert cached.status_for(BOB_ID).status is MessageStatusValue.SENT
    assert changes[0].kind is CacheChangeKind.MESSAGE_ADDED

    mark_group_seen(session, group_id=GROUP_ID, user_id=ALICE_ID, feed=feed)

    assert statuses.get_status(message.id, ALICE_ID).status is MessageStatusValue.SEEN
    assert handle.cache.get(message.id).status_for(ALICE_ID).status is MessageStatusValue.SEEN
    handle.close()


def test_own_messages_are_never_marked_delivered(session, feed, profiles) -> None:
    reconciler, _ = _reconciler(feed)
    with reconciler.subscribe(GROUP_ID) as handle:
        message = send_message(
            session, group_id=GROUP_ID, sender_id=ALICE_ID, content="My own note", feed=feed
        )

        rows = session.query(MessageStatusModel).filter_by(message_id=message.id).all()
        assert [(row.user_id, row.status) for row in rows] == [(ALICE_ID, "sent")]
        assert handle.cache.get(message.id).status_for(ALICE_ID).status is MessageStatusValue.SENT


def test_messages_of_other_groups_are_ignored(session, feed, profiles) -> None:
    reconciler, changes = _reconciler(feed)
    with reconciler.subscribe(GROUP_ID) as handle:
        message = send_message(
            session, group_id=OTHER_GROUP_ID, sender_id=BOB_ID, content="Elsewhere", feed=feed
        )

        assert len(handle.cache) == 0
        assert changes == []
        assert MessageStatusRepository(session).get_status(message.id, ALICE_ID) is None


def test_status_events_for_untracked_messages_are_dropped(feed) -> None:
    reconciler, changes = _reconciler(feed)
    with reconciler.subscribe(GROUP_ID) as handle:
        status = MessageStatus(
            id=1, message_id=999, user_id=BOB_ID, status=MessageStatusValue.SEEN
        )
        feed.publish(MESSAGE_STATUSES_TABLE, ChangeType.INSERT, status_to_row(status))

        assert len(handle.cache) == 0
        assert changes == []


def test_closing_the_handle_stops_processing(session, feed, profiles) -> None:
    reconciler, changes = _reconciler(feed)
    handle = reconciler.subscribe(GROUP_ID)
    assert feed.subscriber_count() == 2

    handle.close()
    handle.close()

    assert handle.closed
    assert feed.subscriber_count() == 0
    message = send_message(
        session, group_id=GROUP_ID, sender_id=BOB_ID, content="Too late", feed=feed
    )
    assert changes == []
    assert MessageStatusRepository(session).get_status(message.id, ALICE_ID) is None


def test_subscribing_to_another_group_closes_the_previous_one(feed) -> None:
    reconciler, _ = _reconciler(feed)
    first = reconciler.subscribe(GROUP_ID)
    second = reconciler.subscribe(OTHER_GROUP_ID)

    assert first.closed
    assert not second.closed
    assert reconciler.handle is second
    assert feed.subscriber_count() == 2

    reconciler.close()
    assert second.closed
    assert feed.subscriber_count() == 0


def test_delivered_write_failure_is_logged(session, feed, profiles, monkeypatch, caplog) -> None:
    def failing_update(self, message_id, user_id, status):
        raise PersistenceError("Could not update message status")

    monkeypatch.setattr(MessageStatusRepository, "update_status", failing_update)
    reconciler, changes = _reconciler(feed)

    with reconciler.subscribe(GROUP_ID) as handle, caplog.at_level(logging.WARNING):
        message = GroupMessageRepository(session, feed=feed).create(
            GroupMessage(id=None, group_id=GROUP_ID, sender_id=BOB_ID, content="hi")
        )

        assert handle.cache.get(message.id) is not None
        assert [change.kind for change in changes] == [CacheChangeKind.MESSAGE_ADDED]
    assert "Could not mark message" in caplog.text


def test_edits_and_deletes_reach_the_cache(session, feed, profiles) -> None:
    reconciler, changes = _reconciler(feed)
    with reconciler.subscribe(GROUP_ID) as handle:
        message = send_message(
            session, group_id=GROUP_ID, sender_id=BOB_ID, content="Draft", feed=feed
        )

        edit_message(
            session, message_id=message.id, editor_id=BOB_ID, content="Final", feed=feed
        )
        edited = handle.cache.get(message.id)
        assert edited.content == "Final"
        assert edited.status_for(ALICE_ID) is not None

        delete_message(session, message_id=message.id, user_id=BOB_ID, feed=feed)
        assert handle.cache.get(message.id) is None

    kinds = [change.kind for change in changes]
    assert CacheChangeKind.MESSAGE_UPDATED in kinds
    assert kinds[-1] is CacheChangeKind.MESSAGE_REMOVED


def test_cache_merges_by_id() -> None:
    status = MessageStatus(id=1, message_id=5, user_id=BOB_ID, status=MessageStatusValue.SENT)
    cache = MessageCache(
        GROUP_ID,
        [GroupMessage(id=5, group_id=GROUP_ID, sender_id=BOB_ID, content="a", statuses=(status,))],
    )

    _, appended = cache.upsert_message(
        GroupMessage(id=5, group_id=GROUP_ID, sender_id=BOB_ID, content="b")
    )
    updated = cache.upsert_status(
        MessageStatus(id=1, message_id=5, user_id=BOB_ID, status=MessageStatusValue.SEEN)
    )

    assert not appended
    assert len(cache) == 1
    assert updated.content == "b"
    assert [item.status for item in updated.statuses] == [MessageStatusValue.SEEN]
    assert cache.upsert_status(
        MessageStatus(id=2, message_id=6, user_id=BOB_ID, status=MessageStatusValue.SEEN)
    ) is None

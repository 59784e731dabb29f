"""Tests for the delivery status store."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from app.domain.entities import GroupMessage, MessageStatusValue
from app.domain.errors import ConflictError, PersistenceError
from app.infrastructure.models import MessageStatusModel
from app.infrastructure.notifications import MESSAGE_STATUSES_TABLE, ChangeType
from app.infrastructure.repositories import GroupMessageRepository, MessageStatusRepository

ALICE_ID = 1
BOB_ID = 2
CAROL_ID = 3
GROUP_ID = 10


def _post(session, feed, sender_id=BOB_ID, group_id=GROUP_ID, content="hello") -> GroupMessage:
    return GroupMessageRepository(session, feed=feed).create(
        GroupMessage(id=None, group_id=group_id, sender_id=sender_id, content=content)
    )


def test_update_status_twice_keeps_a_single_row(session, feed, profiles) -> None:
    message = _post(session, feed)
    repository = MessageStatusRepository(session, feed=feed)

    repository.update_status(message.id, ALICE_ID, MessageStatusValue.DELIVERED)
    repository.update_status(message.id, ALICE_ID, "delivered")

    rows = (
        session.query(MessageStatusModel)
        .filter_by(message_id=message.id, user_id=ALICE_ID)
        .all()
    )
    assert len(rows) == 1
    assert rows[0].status == "delivered"


def test_update_status_last_writer_wins(session, feed, profiles) -> None:
    message = _post(session, feed)
    repository = MessageStatusRepository(session, feed=feed)

    repository.update_status(message.id, ALICE_ID, "seen")
    status = repository.update_status(message.id, ALICE_ID, "delivered")

    assert status.status is MessageStatusValue.DELIVERED
    assert repository.get_status(message.id, ALICE_ID).status is MessageStatusValue.DELIVERED


def test_create_status_rejects_duplicates(session, feed, profiles) -> None:
    message = _post(session, feed)
    repository = MessageStatusRepository(session, feed=feed)

    repository.create_status(message.id, BOB_ID, "sent")
    with pytest.raises(ConflictError):
        repository.create_status(message.id, BOB_ID, "sent")

    assert len(repository.list_for_message(message.id)) == 1


def test_create_status_reports_other_integrity_failures(
    session, feed, profiles, monkeypatch
) -> None:
    message = _post(session, feed)
    repository = MessageStatusRepository(session, feed=feed)

    def reject_foreign_key() -> None:
        raise IntegrityError(
            "INSERT INTO message_status", {}, Exception("FOREIGN KEY constraint failed")
        )

    monkeypatch.setattr(session, "commit", reject_foreign_key)

    with pytest.raises(PersistenceError):
        repository.create_status(message.id, 999, "delivered")


def test_writes_are_published_on_the_feed(session, feed, profiles) -> None:
    message = _post(session, feed)
    events = []
    feed.subscribe(MESSAGE_STATUSES_TABLE, events.append)
    repository = MessageStatusRepository(session, feed=feed)

    repository.update_status(message.id, ALICE_ID, "delivered")
    repository.update_status(message.id, ALICE_ID, "seen")

    assert [event.change_type for event in events] == [ChangeType.INSERT, ChangeType.UPDATE]
    assert events[-1].new["status"] == "seen"
    assert events[-1].new["message_id"] == message.id


def test_mark_group_as_seen_only_touches_existing_rows(session, feed, profiles) -> None:
    first = _post(session, feed, content="first")
    second = _post(session, feed, content="second")
    other_group = _post(session, feed, group_id=GROUP_ID + 1, content="elsewhere")
    repository = MessageStatusRepository(session, feed=feed)
    repository.update_status(first.id, ALICE_ID, "delivered")
    repository.update_status(other_group.id, ALICE_ID, "delivered")

    statuses = repository.mark_group_as_seen(GROUP_ID, ALICE_ID)

    assert [(item.message_id, item.status) for item in statuses] == [
        (first.id, MessageStatusValue.SEEN)
    ]
    assert repository.get_status(second.id, ALICE_ID) is None
    assert repository.get_status(other_group.id, ALICE_ID).status is MessageStatusValue.DELIVERED


def test_mark_group_as_seen_publishes_only_changes(session, feed, profiles) -> None:
    message = _post(session, feed)
    repository = MessageStatusRepository(session, feed=feed)
    repository.update_status(message.id, ALICE_ID, "seen")
    events = []
    feed.subscribe(MESSAGE_STATUSES_TABLE, events.append)

    repository.mark_group_as_seen(GROUP_ID, ALICE_ID)

    assert events == []


def test_receipts_include_profile_details(session, feed, profiles) -> None:
    message = _post(session, feed)
    repository = MessageStatusRepository(session, feed=feed)
    repository.update_status(message.id, BOB_ID, "sent")
    repository.update_status(message.id, ALICE_ID, "delivered")
    repository.update_status(message.id, CAROL_ID, "seen")

    receipts = repository.get_statuses_for_message(message.id)

    assert [(item.full_name, item.status.status.value) for item in receipts] == [
        ("Bob", "sent"),
        ("Alice", "delivered"),
        ("Carol", "seen"),
    ]
    assert receipts[1].avatar_url == "https://cdn.example.com/alice.png"


def test_status_rank_orders_for_display() -> None:
    ordered = sorted(MessageStatusValue, key=lambda value: value.rank)
    assert ordered == [
        MessageStatusValue.SENT,
        MessageStatusValue.DELIVERED,
        MessageStatusValue.SEEN,
    ]

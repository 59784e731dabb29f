"""Persistence helpers for group chat messages."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from app.domain.entities import GroupMessage
from app.domain.errors import MessageNotFoundError
from app.infrastructure.models import GroupMessageModel
from app.infrastructure.notifications import (
    MESSAGES_TABLE,
    ChangeFeed,
    ChangeType,
    change_feed,
)
from app.utils import ensure_app_naive_datetime, ensure_app_timezone

from .errors import persistence_error
from .message_status_repository import MessageStatusRepository, status_from_row, status_to_row


class GroupMessageRepository:
    """Store chat messages and publish inserts on the change feed."""

    def __init__(self, session: Session, *, feed: ChangeFeed | None = None) -> None:
        self.session = session
        self.feed = feed if feed is not None else change_feed

    def create(self, message: GroupMessage) -> GroupMessage:
        model = GroupMessageModel(
            group_id=message.group_id,
            sender_id=message.sender_id,
            content=message.content,
        )
        if message.created_at is not None:
            model.created_at = ensure_app_naive_datetime(message.created_at)
        self.session.add(model)
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            raise persistence_error(self.session, exc, "create group message") from exc
        self.session.refresh(model)
        entity = self._to_entity(model)
        self.feed.publish(MESSAGES_TABLE, ChangeType.INSERT, message_to_row(entity))
        return entity

    def get(self, message_id: int) -> GroupMessage | None:
        model = (
            self.session.query(GroupMessageModel)
            .options(selectinload(GroupMessageModel.statuses))
            .filter(GroupMessageModel.id == message_id)
            .one_or_none()
        )
        return self._to_entity(model) if model else None

    def list_for_group(self, group_id: int, *, limit: int | None = None) -> Sequence[GroupMessage]:
        """Return the latest ``limit`` messages of the group oldest first, with statuses."""

        query = (
            self.session.query(GroupMessageModel)
            .options(selectinload(GroupMessageModel.statuses))
            .filter(GroupMessageModel.group_id == group_id)
            .order_by(GroupMessageModel.created_at.desc(), GroupMessageModel.id.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in reversed(query.all())]

    def update_content(self, message_id: int, content: str) -> GroupMessage:
        model = self._get_model(message_id)
        model.content = content
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            raise persistence_error(self.session, exc, "update group message") from exc
        self.session.refresh(model)
        entity = self._to_entity(model)
        self.feed.publish(MESSAGES_TABLE, ChangeType.UPDATE, message_to_row(entity))
        return entity

    def delete(self, message_id: int) -> GroupMessage:
        """Delete the message and its status rows; publishes the removed row."""

        model = self._get_model(message_id)
        entity = self._to_entity(model)
        self.session.delete(model)
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            raise persistence_error(self.session, exc, "delete group message") from exc
        self.feed.publish(MESSAGES_TABLE, ChangeType.DELETE, {}, old=message_to_row(entity))
        return entity

    def _get_model(self, message_id: int) -> GroupMessageModel:
        model = self.session.get(GroupMessageModel, message_id)
        if model is None:
            raise MessageNotFoundError(f"Message with id {message_id} not found")
        return model

    @staticmethod
    def _to_entity(model: GroupMessageModel) -> GroupMessage:
        return GroupMessage(
            id=model.id,
            group_id=model.group_id,
            sender_id=model.sender_id,
            content=model.content,
            created_at=ensure_app_timezone(model.created_at),
            statuses=tuple(
                MessageStatusRepository._to_entity(status) for status in model.statuses
            ),
        )


def message_to_row(message: GroupMessage) -> dict[str, Any]:
    """Return the change feed row representation of ``message``."""

    return {
        "id": message.id,
        "group_id": message.group_id,
        "sender_id": message.sender_id,
        "content": message.content,
        "created_at": message.created_at.isoformat() if message.created_at else None,
        "statuses": [status_to_row(status) for status in message.statuses],
    }


def message_from_row(row: Mapping[str, Any]) -> GroupMessage:
    """Inverse of :func:`message_to_row` used by realtime consumers."""

    created_at = row.get("created_at")
    if isinstance(created_at, str):
        created_at = datetime.fromisoformat(created_at)
    return GroupMessage(
        id=int(row["id"]),
        group_id=int(row["group_id"]),
        sender_id=int(row["sender_id"]),
        content=row.get("content") or "",
        created_at=created_at,
        statuses=tuple(status_from_row(item) for item in row.get("statuses") or ()),
    )


__all__ = ["GroupMessageRepository", "message_from_row", "message_to_row"]

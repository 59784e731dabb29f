"""Persistence helpers for per-recipient message delivery state."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.entities import MessageStatus, MessageStatusReceipt, MessageStatusValue
from app.domain.errors import ConflictError
from app.infrastructure.models import GroupMessageModel, MessageStatusModel, ProfileModel
from app.infrastructure.notifications import (
    MESSAGE_STATUSES_TABLE,
    ChangeFeed,
    ChangeType,
    change_feed,
)
from app.utils import ensure_app_timezone

from .errors import persistence_error


class MessageStatusRepository:
    """Status store: create, upsert and query delivery state rows.

    Rows are unique per ``(message_id, user_id)``. The store does not enforce
    ``sent < delivered < seen`` monotonicity; callers own that ordering.
    Every committed write is published on the change feed.
    """

    def __init__(self, session: Session, *, feed: ChangeFeed | None = None) -> None:
        self.session = session
        self.feed = feed if feed is not None else change_feed

    def create_status(
        self, message_id: int, user_id: int, status: MessageStatusValue | str
    ) -> MessageStatus:
        """Insert a new row; raise :class:`ConflictError` if the pair already exists.

        Other integrity failures, such as an unknown message, raise
        :class:`PersistenceError`.
        """

        value = MessageStatusValue(status)
        model = MessageStatusModel(message_id=message_id, user_id=user_id, status=value.value)
        self.session.add(model)
        try:
            self.session.commit()
        except IntegrityError as exc:
            self.session.rollback()
            if self._find(message_id, user_id) is None:
                raise persistence_error(self.session, exc, "create message status") from exc
            msg = f"Status for message {message_id} and user {user_id} already exists"
            raise ConflictError(msg) from exc
        except SQLAlchemyError as exc:
            raise persistence_error(self.session, exc, "create message status") from exc
        self.session.refresh(model)
        entity = self._to_entity(model)
        self._publish(ChangeType.INSERT, entity)
        return entity

    def update_status(
        self, message_id: int, user_id: int, status: MessageStatusValue | str
    ) -> MessageStatus:
        """Upsert the row for ``(message_id, user_id)``; the last writer wins."""

        value = MessageStatusValue(status)
        try:
            model, created = self._upsert(message_id, user_id, value)
        except SQLAlchemyError as exc:
            raise persistence_error(self.session, exc, "update message status") from exc
        entity = self._to_entity(model)
        self._publish(ChangeType.INSERT if created else ChangeType.UPDATE, entity)
        return entity

    def get_status(self, message_id: int, user_id: int) -> MessageStatus | None:
        model = self._find(message_id, user_id)
        return self._to_entity(model) if model else None

    def list_for_message(self, message_id: int) -> Sequence[MessageStatus]:
        query = (
            self.session.query(MessageStatusModel)
            .filter(MessageStatusModel.message_id == message_id)
            .order_by(MessageStatusModel.id)
        )
        return [self._to_entity(model) for model in query.all()]

    def get_statuses_for_message(self, message_id: int) -> Sequence[MessageStatusReceipt]:
        """Return every recipient row for ``message_id`` with profile details."""

        query = (
            self.session.query(MessageStatusModel, ProfileModel)
            .outerjoin(ProfileModel, ProfileModel.id == MessageStatusModel.user_id)
            .filter(MessageStatusModel.message_id == message_id)
            .order_by(MessageStatusModel.id)
        )
        return [
            MessageStatusReceipt(
                status=self._to_entity(status),
                full_name=profile.full_name if profile else None,
                avatar_url=profile.avatar_url if profile else None,
            )
            for status, profile in query.all()
        ]

    def mark_group_as_seen(self, group_id: int, user_id: int) -> Sequence[MessageStatus]:
        """Set ``seen`` on every existing row of ``user_id`` for the group's messages.

        Messages without a row for the user are skipped: no ``sent`` or
        ``delivered`` row is synthesized retroactively.
        """

        group_message_ids = select(GroupMessageModel.id).where(
            GroupMessageModel.group_id == group_id
        )
        try:
            models = (
                self.session.query(MessageStatusModel)
                .filter(MessageStatusModel.user_id == user_id)
                .filter(MessageStatusModel.message_id.in_(group_message_ids))
                .order_by(MessageStatusModel.message_id)
                .all()
            )
            changed = [model for model in models if model.status != MessageStatusValue.SEEN.value]
            for model in changed:
                model.status = MessageStatusValue.SEEN.value
            if changed:
                self.session.commit()
                for model in changed:
                    self.session.refresh(model)
        except SQLAlchemyError as exc:
            raise persistence_error(self.session, exc, "mark group messages as seen") from exc

        for model in changed:
            self._publish(ChangeType.UPDATE, self._to_entity(model))
        return [self._to_entity(model) for model in models]

    def _upsert(
        self, message_id: int, user_id: int, value: MessageStatusValue
    ) -> tuple[MessageStatusModel, bool]:
        model = self._find(message_id, user_id)
        created = model is None
        if model is None:
            model = MessageStatusModel(
                message_id=message_id, user_id=user_id, status=value.value
            )
            self.session.add(model)
        else:
            model.status = value.value

        try:
            self.session.commit()
        except IntegrityError:
            # Another writer inserted the pair first; apply ours on top of it.
            self.session.rollback()
            model = self._find(message_id, user_id)
            if model is None:
                raise
            model.status = value.value
            self.session.commit()
            created = False

        self.session.refresh(model)
        return model, created

    def _find(self, message_id: int, user_id: int) -> MessageStatusModel | None:
        return (
            self.session.query(MessageStatusModel)
            .filter(MessageStatusModel.message_id == message_id)
            .filter(MessageStatusModel.user_id == user_id)
            .one_or_none()
        )

    def _publish(self, change_type: ChangeType, status: MessageStatus) -> None:
        self.feed.publish(MESSAGE_STATUSES_TABLE, change_type, status_to_row(status))

    @staticmethod
    def _to_entity(model: MessageStatusModel) -> MessageStatus:
        return MessageStatus(
            id=model.id,
            message_id=model.message_id,
            user_id=model.user_id,
            status=MessageStatusValue(model.status),
            created_at=ensure_app_timezone(model.created_at),
        )


def status_to_row(status: MessageStatus) -> dict[str, Any]:
    """Return the change feed row representation of ``status``."""

    return {
        "id": status.id,
        "message_id": status.message_id,
        "user_id": status.user_id,
        "status": status.status.value,
        "created_at": status.created_at.isoformat() if status.created_at else None,
    }


def status_from_row(row: Mapping[str, Any]) -> MessageStatus:
    """Inverse of :func:`status_to_row` used by realtime consumers."""

    created_at = row.get("created_at")
    if isinstance(created_at, str):
        created_at = datetime.fromisoformat(created_at)
    return MessageStatus(
        id=row.get("id"),
        message_id=int(row["message_id"]),
        user_id=int(row["user_id"]),
        status=MessageStatusValue(row["status"]),
        created_at=created_at,
    )


__all__ = ["MessageStatusRepository", "status_from_row", "status_to_row"]

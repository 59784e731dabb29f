"""Persistence helpers for notification entities."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Iterable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from app.domain.entities import (
    Notification,
    NotificationAction,
    NotificationCategory,
    NotificationPriority,
)
from app.domain.errors import ConflictError, NotificationNotFoundError
from app.infrastructure.models import NotificationModel
from app.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)

from .errors import persistence_error


class NotificationRepository:
    """Provide CRUD operations for :class:`Notification` objects."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, notification_id: int) -> Notification | None:
        model = self.session.get(NotificationModel, notification_id)
        return self._to_entity(model) if model else None

    def list_for_user(
        self,
        user_id: int,
        *,
        limit: int | None = 20,
        offset: int = 0,
        unread_only: bool = False,
        category: NotificationCategory | None = None,
    ) -> tuple[Sequence[Notification], int]:
        """Return a page of non-archived notifications and the total count."""

        query = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.user_id == user_id)
            .filter(NotificationModel.archived.is_(False))
        )
        if unread_only:
            query = query.filter(NotificationModel.read.is_(False))
        if category is not None:
            query = query.filter(NotificationModel.category == category.value)

        total = query.count()
        query = query.order_by(
            NotificationModel.created_at.desc(), NotificationModel.id.desc()
        )
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()], total

    def list_unread_for_user(
        self, user_id: int, *, limit: int | None = 50
    ) -> Sequence[Notification]:
        notifications, _ = self.list_for_user(user_id, limit=limit, unread_only=True)
        return notifications

    def list_high_priority(self, user_id: int, *, limit: int = 10) -> Sequence[Notification]:
        query = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.user_id == user_id)
            .filter(NotificationModel.read.is_(False))
            .filter(NotificationModel.archived.is_(False))
            .filter(NotificationModel.priority == NotificationPriority.HIGH.value)
            .order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
            .limit(limit)
        )
        return [self._to_entity(model) for model in query.all()]

    def count_unread(self, user_id: int) -> int:
        return (
            self.session.query(NotificationModel)
            .filter(NotificationModel.user_id == user_id)
            .filter(NotificationModel.read.is_(False))
            .filter(NotificationModel.archived.is_(False))
            .count()
        )

    def find_batch_head(
        self, *, user_id: int, group_key: str, since: datetime
    ) -> Notification | None:
        """Return the newest unread row of ``user_id`` with ``group_key`` since ``since``."""

        model = (
            self.session.query(NotificationModel)
            .filter(NotificationModel.user_id == user_id)
            .filter(NotificationModel.group_key == group_key)
            .filter(NotificationModel.read.is_(False))
            .filter(NotificationModel.archived.is_(False))
            .filter(NotificationModel.created_at >= ensure_app_naive_datetime(since))
            .order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
            .first()
        )
        return self._to_entity(model) if model else None

    def create(self, notification: Notification) -> Notification:
        return self.create_many([notification])[0]

    def create_many(self, notifications: Sequence[Notification]) -> list[Notification]:
        """Insert ``notifications`` in a single transaction."""

        models = []
        for notification in notifications:
            model = NotificationModel()
            self._apply_entity_to_model(model, notification, include_creation_fields=True)
            self.session.add(model)
            models.append(model)
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            raise persistence_error(self.session, exc, "create notifications") from exc
        for model in models:
            self.session.refresh(model)
        return [self._to_entity(model) for model in models]

    def update_batched(self, notification: Notification) -> Notification:
        """Write a merged batch head if nobody changed it since it was read.

        The write is conditional on ``notification.version``; a mismatch raises
        :class:`ConflictError` so the caller can re-read and merge again.
        """

        if notification.id is None:
            raise ValueError("Notification id is required for updates")
        model = self.session.get(NotificationModel, notification.id)
        if model is None:
            msg = f"Notification with id {notification.id} not found"
            raise NotificationNotFoundError(msg)
        if model.version != notification.version or model.read:
            self.session.rollback()
            raise ConflictError(f"Notification {notification.id} changed during merge")

        model.actor_label = notification.actor_label
        model.message_body = notification.message_body
        model.payload = dict(notification.metadata or {})
        model.read = False
        model.created_at = ensure_app_naive_datetime(
            notification.created_at or now_in_app_timezone()
        )
        try:
            self.session.commit()
        except StaleDataError as exc:
            self.session.rollback()
            raise ConflictError(
                f"Notification {notification.id} changed during merge"
            ) from exc
        except SQLAlchemyError as exc:
            raise persistence_error(self.session, exc, "update notification") from exc
        self.session.refresh(model)
        return self._to_entity(model)

    def mark_as_read(self, notification_ids: Iterable[int], *, user_id: int) -> int:
        ids = [notification_id for notification_id in notification_ids if notification_id is not None]
        if not ids:
            return 0
        query = self.session.query(NotificationModel).filter(
            NotificationModel.id.in_(ids),
            NotificationModel.user_id == user_id,
        )
        return self._mark_read(query)

    def mark_all_as_read(self, user_id: int) -> int:
        query = self.session.query(NotificationModel).filter(
            NotificationModel.user_id == user_id,
            NotificationModel.read.is_(False),
        )
        return self._mark_read(query)

    def archive(self, notification_id: int, *, user_id: int) -> Notification:
        model = self.session.get(NotificationModel, notification_id)
        if model is None or model.user_id != user_id:
            msg = f"Notification with id {notification_id} not found"
            raise NotificationNotFoundError(msg)
        model.archived = True
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            raise persistence_error(self.session, exc, "archive notification") from exc
        self.session.refresh(model)
        return self._to_entity(model)

    def _mark_read(self, query) -> int:
        try:
            updated = query.update(
                {
                    NotificationModel.read: True,
                    NotificationModel.read_at: ensure_app_naive_datetime(
                        now_in_app_timezone()
                    ),
                    # Bulk updates bypass the ORM version counter.
                    NotificationModel.version: NotificationModel.version + 1,
                },
                synchronize_session=False,
            )
            self.session.commit()
        except SQLAlchemyError as exc:
            raise persistence_error(self.session, exc, "mark notifications as read") from exc
        return updated

    @staticmethod
    def _apply_entity_to_model(
        model: NotificationModel,
        notification: Notification,
        *,
        include_creation_fields: bool,
    ) -> None:
        if include_creation_fields:
            model.created_at = (
                ensure_app_naive_datetime(notification.created_at)
                or ensure_app_naive_datetime(now_in_app_timezone())
            )
        model.user_id = notification.user_id
        model.category = notification.category.value
        model.action = notification.action.value
        model.priority = notification.priority.value
        model.title = notification.title
        model.actor_label = notification.actor_label
        model.message_body = notification.message_body
        model.payload = dict(notification.metadata or {})
        model.action_url = notification.action_url
        model.group_key = notification.group_key
        model.read = notification.read
        model.read_at = ensure_app_naive_datetime(notification.read_at)
        model.archived = notification.archived

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            user_id=model.user_id,
            category=NotificationCategory(model.category),
            action=NotificationAction(model.action),
            priority=NotificationPriority(model.priority),
            title=model.title,
            actor_label=model.actor_label,
            message_body=model.message_body,
            metadata=dict(model.payload or {}),
            action_url=model.action_url,
            group_key=model.group_key,
            read=bool(model.read),
            read_at=ensure_app_timezone(model.read_at),
            archived=bool(model.archived),
            created_at=ensure_app_timezone(model.created_at),
            version=model.version,
        )


__all__ = ["NotificationRepository"]

"""Persistence helpers for notification preferences."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import fields
from typing import Any

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.entities import NotificationPreferences
from app.infrastructure.models import NotificationPreferencesModel
from app.utils import ensure_app_timezone

from .errors import persistence_error

_VALUE_FIELDS = tuple(
    item.name for item in fields(NotificationPreferences) if item.name != "updated_at"
)


class NotificationPreferencesRepository:
    """Read, lazily create and update the preference row of each user."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: int) -> NotificationPreferences | None:
        model = self.session.get(NotificationPreferencesModel, user_id)
        return self._to_entity(model) if model else None

    def list_for_users(self, user_ids: Iterable[int]) -> Sequence[NotificationPreferences]:
        ids = list({user_id for user_id in user_ids if user_id is not None})
        if not ids:
            return []
        query = self.session.query(NotificationPreferencesModel).filter(
            NotificationPreferencesModel.user_id.in_(ids)
        )
        return [self._to_entity(model) for model in query.all()]

    def get_or_create(self, user_id: int) -> NotificationPreferences:
        """Return the user's row, inserting the documented defaults if absent."""

        existing = self.get(user_id)
        if existing is not None:
            return existing

        defaults = NotificationPreferences(user_id=user_id)
        model = NotificationPreferencesModel(
            **{name: getattr(defaults, name) for name in _VALUE_FIELDS}
        )
        self.session.add(model)
        try:
            self.session.commit()
        except IntegrityError as exc:
            # Created concurrently by another request.
            self.session.rollback()
            existing = self.get(user_id)
            if existing is None:
                raise persistence_error(
                    self.session, exc, "create notification preferences"
                ) from exc
            return existing
        except SQLAlchemyError as exc:
            raise persistence_error(self.session, exc, "create notification preferences") from exc
        self.session.refresh(model)
        return self._to_entity(model)

    def update(self, user_id: int, changes: Mapping[str, Any]) -> NotificationPreferences:
        self.get_or_create(user_id)
        model = self.session.get(NotificationPreferencesModel, user_id)
        for name, value in changes.items():
            if name not in _VALUE_FIELDS or name == "user_id":
                raise ValueError(f"Unknown preference field '{name}'")
            setattr(model, name, value)
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            raise persistence_error(self.session, exc, "update notification preferences") from exc
        self.session.refresh(model)
        return self._to_entity(model)

    @staticmethod
    def _to_entity(model: NotificationPreferencesModel) -> NotificationPreferences:
        values = {name: getattr(model, name) for name in _VALUE_FIELDS}
        return NotificationPreferences(
            **values, updated_at=ensure_app_timezone(model.updated_at)
        )


__all__ = ["NotificationPreferencesRepository"]

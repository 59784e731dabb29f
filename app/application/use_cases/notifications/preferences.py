"""Preference filter and the use cases behind the preferences screen."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from sqlalchemy.orm import Session

from app.domain.entities import NotificationAction, NotificationPreferences
from app.infrastructure.repositories import NotificationPreferencesRepository

_HOUR_FIELDS = ("quiet_start_hour", "quiet_end_hour")


def filter_by_preferences(
    user_ids: Iterable[int],
    action: NotificationAction | str,
    preferences: Mapping[int, NotificationPreferences] | Iterable[NotificationPreferences],
) -> list[int]:
    """Return the recipients of ``user_ids`` that accept ``action``.

    Opt-out model: a user without a preference row, or whose governing flag is
    anything but an explicit ``False``, receives the notification. Actions with
    no governing flag (system actions) are never filtered. Order is kept.
    """

    action = NotificationAction(action)
    recipients = list(user_ids)
    field_name = action.preference_field
    if field_name is None:
        return recipients

    if not isinstance(preferences, Mapping):
        preferences = {item.user_id: item for item in preferences}

    allowed = []
    for user_id in recipients:
        current = preferences.get(user_id)
        if current is None or current.allows(field_name):
            allowed.append(user_id)
    return allowed


def get_preferences(session: Session, user_id: int) -> NotificationPreferences:
    """Return the preferences of ``user_id``, creating the defaults on first read."""

    return NotificationPreferencesRepository(session).get_or_create(user_id)


def update_preferences(
    session: Session, user_id: int, **changes: Any
) -> NotificationPreferences:
    """Apply ``changes`` to the user's preferences after validating them."""

    editable = NotificationPreferences.editable_fields()
    unknown = sorted(name for name in changes if name not in editable)
    if unknown:
        raise ValueError(f"Unknown preference fields: {', '.join(unknown)}")

    for name in _HOUR_FIELDS:
        if name in changes:
            hour = changes[name]
            if isinstance(hour, bool) or not isinstance(hour, int) or not 0 <= hour <= 23:
                raise ValueError(f"{name} must be an hour between 0 and 23")

    if "batch_window_minutes" in changes:
        window = changes["batch_window_minutes"]
        if isinstance(window, bool) or not isinstance(window, int) or window <= 0:
            raise ValueError("batch_window_minutes must be a positive number of minutes")

    for name, value in changes.items():
        if name not in _HOUR_FIELDS and name != "batch_window_minutes":
            if not isinstance(value, bool):
                raise ValueError(f"{name} must be true or false")

    repository = NotificationPreferencesRepository(session)
    if not changes:
        return repository.get_or_create(user_id)
    return repository.update(user_id, changes)


__all__ = ["filter_by_preferences", "get_preferences", "update_preferences"]

"""Domain entity describing which notifications a user wants to receive."""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime

from app.utils import app_local_hour, hour_in_window

from .notification_action import PreferenceField

DEFAULT_BATCH_WINDOW_MINUTES = 30
DEFAULT_QUIET_START_HOUR = 22
DEFAULT_QUIET_END_HOUR = 8


@dataclass
class NotificationPreferences:
    """Per-user notification switches.

    Defaults mirror the row created on first read: everything enabled except
    ``new_notes_enabled`` and ``member_joins_enabled``.
    """

    user_id: int

    social_enabled: bool = True
    group_enabled: bool = True
    invite_enabled: bool = True
    content_enabled: bool = True

    note_likes_enabled: bool = True
    note_comments_enabled: bool = True
    message_replies_enabled: bool = True
    new_notes_enabled: bool = False
    member_joins_enabled: bool = False

    batch_similar: bool = True
    batch_window_minutes: int = DEFAULT_BATCH_WINDOW_MINUTES

    quiet_hours_enabled: bool = False
    quiet_start_hour: int = DEFAULT_QUIET_START_HOUR
    quiet_end_hour: int = DEFAULT_QUIET_END_HOUR

    updated_at: datetime | None = None

    def allows(self, field_name: PreferenceField) -> bool:
        return getattr(self, field_name.value) is not False

    def in_quiet_hours(self, moment: datetime) -> bool:
        """Whether ``moment`` falls in the quiet window on the app clock."""

        if not self.quiet_hours_enabled:
            return False
        return hour_in_window(
            app_local_hour(moment), self.quiet_start_hour, self.quiet_end_hour
        )

    @classmethod
    def editable_fields(cls) -> tuple[str, ...]:
        return tuple(
            item.name for item in fields(cls) if item.name not in {"user_id", "updated_at"}
        )


__all__ = [
    "DEFAULT_BATCH_WINDOW_MINUTES",
    "DEFAULT_QUIET_END_HOUR",
    "DEFAULT_QUIET_START_HOUR",
    "NotificationPreferences",
]

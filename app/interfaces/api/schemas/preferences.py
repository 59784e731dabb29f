"""Schemas for the notification preferences endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class NotificationPreferencesRead(BaseModel):
    user_id: int

    social_enabled: bool
    group_enabled: bool
    invite_enabled: bool
    content_enabled: bool

    note_likes_enabled: bool
    note_comments_enabled: bool
    message_replies_enabled: bool
    new_notes_enabled: bool
    member_joins_enabled: bool

    batch_similar: bool
    batch_window_minutes: int

    quiet_hours_enabled: bool
    quiet_start_hour: int
    quiet_end_hour: int

    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class NotificationPreferencesUpdate(BaseModel):
    """Partial update; omitted fields keep their value."""

    social_enabled: bool | None = None
    group_enabled: bool | None = None
    invite_enabled: bool | None = None
    content_enabled: bool | None = None

    note_likes_enabled: bool | None = None
    note_comments_enabled: bool | None = None
    message_replies_enabled: bool | None = None
    new_notes_enabled: bool | None = None
    member_joins_enabled: bool | None = None

    batch_similar: bool | None = None
    batch_window_minutes: int | None = Field(default=None, gt=0)

    quiet_hours_enabled: bool | None = None
    quiet_start_hour: int | None = Field(default=None, ge=0, le=23)
    quiet_end_hour: int | None = Field(default=None, ge=0, le=23)

    model_config = ConfigDict(extra="forbid")


__all__ = ["NotificationPreferencesRead", "NotificationPreferencesUpdate"]

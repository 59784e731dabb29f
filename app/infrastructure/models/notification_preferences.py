"""SQLAlchemy model for notification preferences."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer

from app.infrastructure.database import Base
from app.utils import now_in_app_naive_datetime


class NotificationPreferencesModel(Base):
    """One row of notification switches per user."""

    __tablename__ = "notification_preferences"

    user_id = Column(Integer, ForeignKey("profile.id"), primary_key=True)

    social_enabled = Column(Boolean, nullable=False, default=True)
    group_enabled = Column(Boolean, nullable=False, default=True)
    invite_enabled = Column(Boolean, nullable=False, default=True)
    content_enabled = Column(Boolean, nullable=False, default=True)

    note_likes_enabled = Column(Boolean, nullable=False, default=True)
    note_comments_enabled = Column(Boolean, nullable=False, default=True)
    message_replies_enabled = Column(Boolean, nullable=False, default=True)
    new_notes_enabled = Column(Boolean, nullable=False, default=False)
    member_joins_enabled = Column(Boolean, nullable=False, default=False)

    batch_similar = Column(Boolean, nullable=False, default=True)
    batch_window_minutes = Column(Integer, nullable=False, default=30)

    quiet_hours_enabled = Column(Boolean, nullable=False, default=False)
    quiet_start_hour = Column(Integer, nullable=False, default=22)
    quiet_end_hour = Column(Integer, nullable=False, default=8)

    updated_at = Column(
        DateTime(),
        nullable=False,
        default=now_in_app_naive_datetime,
        onupdate=now_in_app_naive_datetime,
    )


__all__ = ["NotificationPreferencesModel"]

"""SQLAlchemy model for persisted notifications."""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.sql import expression

from app.infrastructure.database import Base
from app.utils import now_in_app_naive_datetime


class NotificationModel(Base):
    """Database representation for user notifications."""

    __tablename__ = "notification"
    __table_args__ = (
        Index("ix_notification_batch_lookup", "user_id", "group_key", "read"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("profile.id"), nullable=False, index=True)
    category = Column(String(20), nullable=False)
    action = Column(String(40), nullable=False)
    priority = Column(String(10), nullable=False, default="normal")
    title = Column(String(200), nullable=False)
    actor_label = Column(String(200), nullable=True)
    message_body = Column(Text, nullable=False)
    payload = Column("metadata", JSON, nullable=False, default=dict)
    action_url = Column(String(500), nullable=True)
    group_key = Column(String(200), nullable=True)
    read = Column(Boolean, nullable=False, default=False, server_default=expression.false())
    read_at = Column(DateTime(), nullable=True)
    archived = Column(
        Boolean, nullable=False, default=False, server_default=expression.false()
    )
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}


__all__ = ["NotificationModel"]

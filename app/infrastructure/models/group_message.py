"""SQLAlchemy model for chat messages posted in a group."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship

from app.infrastructure.database import Base
from app.utils import now_in_app_naive_datetime


class GroupMessageModel(Base):
    """Database representation of a group chat message."""

    __tablename__ = "group_message"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("profile.id"), nullable=False, index=True)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)

    statuses = relationship(
        "MessageStatusModel",
        back_populates="message",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="MessageStatusModel.id",
    )


__all__ = ["GroupMessageModel"]

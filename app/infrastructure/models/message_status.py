"""SQLAlchemy model for per-recipient message delivery state."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from app.infrastructure.database import Base
from app.utils import now_in_app_naive_datetime


class MessageStatusModel(Base):
    """Database representation of a message status row."""

    __tablename__ = "message_status"
    __table_args__ = (
        UniqueConstraint("message_id", "user_id", name="uq_message_status_message_user"),
    )

    id = Column(Integer, primary_key=True, index=True)
    message_id = Column(
        Integer,
        ForeignKey("group_message.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id = Column(Integer, ForeignKey("profile.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False)
    created_at = Column(DateTime(), nullable=False, default=now_in_app_naive_datetime)

    message = relationship("GroupMessageModel", back_populates="statuses")
    user = relationship("ProfileModel", lazy="joined")


__all__ = ["MessageStatusModel"]

"""SQLAlchemy model for the profile table."""

from sqlalchemy import Column, DateTime, Integer, String, func

from app.infrastructure.database import Base


class ProfileModel(Base):
    """Database representation of a user profile."""

    __tablename__ = "profile"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(120), nullable=False)
    email = Column(String(255), nullable=True, index=True)
    avatar_url = Column(String(500), nullable=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())


__all__ = ["ProfileModel"]

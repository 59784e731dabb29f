"""Shared helpers translating SQLAlchemy failures into domain errors."""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.errors import PersistenceError

logger = logging.getLogger(__name__)


def persistence_error(session: Session, exc: SQLAlchemyError, action: str) -> PersistenceError:
    """Roll back ``session`` and wrap ``exc`` so callers can ``raise ... from exc``."""

    session.rollback()
    logger.error("Store rejected %s: %s", action, exc)
    return PersistenceError(f"Could not {action}")


__all__ = ["persistence_error"]

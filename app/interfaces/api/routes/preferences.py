"""Endpoints for reading and changing notification preferences."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.application.use_cases.notifications import (
    get_preferences as get_preferences_uc,
    update_preferences as update_preferences_uc,
)
from app.domain.entities import Profile
from app.domain.errors import StudyBuddyError
from app.infrastructure.database import get_db
from app.interfaces.api.dependencies import get_current_profile
from app.interfaces.api.routes_helpers import http_error_from
from app.interfaces.api.schemas import (
    NotificationPreferencesRead,
    NotificationPreferencesUpdate,
)

router = APIRouter(prefix="/notifications/preferences", tags=["notifications"])


@router.get("", response_model=NotificationPreferencesRead)
def read_preferences(
    db: Session = Depends(get_db),
    current_profile: Profile = Depends(get_current_profile),
) -> NotificationPreferencesRead:
    """Return the user's preferences, creating the defaults on first access."""

    try:
        preferences = get_preferences_uc(db, current_profile.id)
    except StudyBuddyError as exc:
        raise http_error_from(exc) from exc
    return NotificationPreferencesRead.model_validate(preferences)


@router.patch("", response_model=NotificationPreferencesRead)
def change_preferences(
    payload: NotificationPreferencesUpdate,
    db: Session = Depends(get_db),
    current_profile: Profile = Depends(get_current_profile),
) -> NotificationPreferencesRead:
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    try:
        preferences = update_preferences_uc(db, current_profile.id, **changes)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
        ) from exc
    except StudyBuddyError as exc:
        raise http_error_from(exc) from exc
    return NotificationPreferencesRead.model_validate(preferences)

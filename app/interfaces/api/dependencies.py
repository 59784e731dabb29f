"""FastAPI dependency utilities."""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.domain.entities import Profile
from app.domain.errors import NotAuthenticatedError
from app.infrastructure.database import get_db
from app.infrastructure.repositories import ProfileRepository
from app.infrastructure.security import profile_id_from_token

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token", auto_error=False)


def resolve_current_profile(token: str | None, db: Session) -> Profile:
    """Resolve the profile behind a session token.

    Raises :class:`NotAuthenticatedError` when the token is missing, invalid or
    points to an unknown profile.
    """

    profile_id = profile_id_from_token(token)
    profile = ProfileRepository(db).get(profile_id)
    if profile is None:
        raise NotAuthenticatedError("Profile not found")
    return profile


def get_current_profile(
    token: str | None = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> Profile:
    """Return the authenticated profile or answer 401."""

    try:
        return resolve_current_profile(token, db)
    except NotAuthenticatedError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc

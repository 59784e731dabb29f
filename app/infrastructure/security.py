"""Session token helpers."""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from app.config import get_settings
from app.domain.errors import NotAuthenticatedError

ALGORITHM = "HS256"


def create_access_token(profile_id: int, expires_delta: timedelta | None = None) -> str:
    """Issue a session token whose subject is ``profile_id``."""

    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    claims = {"sub": str(profile_id), "exp": expire}
    return jwt.encode(claims, settings.secret_key, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, get_settings().secret_key, algorithms=[ALGORITHM])
    except JWTError as exc:
        raise NotAuthenticatedError("Could not validate credentials") from exc


def profile_id_from_token(token: str | None) -> int:
    """Return the profile id carried by ``token`` or raise ``NotAuthenticatedError``."""

    if not token:
        raise NotAuthenticatedError("A session token is required")
    subject = decode_access_token(token).get("sub")
    try:
        return int(subject)
    except (TypeError, ValueError) as exc:
        raise NotAuthenticatedError("Session token has no valid subject") from exc

"""Time helpers for notification timestamps, batch windows and quiet hours.

Every row stores naive timestamps in ``APP_TIMEZONE`` and every entity carries
aware ones. Batch windows are compared in that zone and quiet hours are read
from the local hour there, so a recipient's 22:00 to 08:00 window follows the
service clock rather than the caller's.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone, tzinfo
from functools import lru_cache
from typing import Final

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.config import get_settings

_DEFAULT_TIMEZONE: Final[str] = "UTC"
_OFFSET_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?:UTC|GMT)(?P<sign>[+-])(?P<hours>\d{1,2})(?::?(?P<minutes>\d{2}))?$",
    re.IGNORECASE,
)


@lru_cache(maxsize=1)
def get_app_timezone() -> tzinfo:
    """Return the configured application timezone.

    The timezone comes from ``APP_TIMEZONE``. Values such as ``UTC+05:30`` are
    accepted as fixed offsets; anything unresolvable falls back to UTC.
    """

    settings = get_settings()
    tz_name = (settings.app_timezone or "").strip() or _DEFAULT_TIMEZONE
    return _resolve_timezone(tz_name)


def now_in_app_timezone() -> datetime:
    """Return the current time localized to the configured timezone."""

    return datetime.now(tz=get_app_timezone())


def now_in_app_naive_datetime() -> datetime:
    """Column default for ``created_at`` and ``updated_at`` of every table."""

    localized = ensure_app_naive_datetime(now_in_app_timezone())
    if localized is None:  # pragma: no cover
        raise RuntimeError("Failed to compute the application naive datetime")
    return localized


def ensure_app_timezone(value: datetime | None) -> datetime | None:
    """Express ``value`` in the app timezone; naive values are assumed local.

    Applied to timestamps read back from the store and to the injectable
    ``now`` of the dispatcher.
    """

    if value is None:
        return None

    tz = get_app_timezone()
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def ensure_app_naive_datetime(value: datetime | None) -> datetime | None:
    """Return ``value`` localized to the app timezone but without ``tzinfo``.

    Rows are stored as naive app-local timestamps so SQLite and server-side
    ``DATETIME`` columns compare them consistently.
    """

    localized = ensure_app_timezone(value)
    if localized is None:
        return None
    return localized.replace(tzinfo=None)


def app_local_hour(moment: datetime) -> int:
    """Hour of ``moment`` on the app clock, used to test quiet hours."""

    localized = ensure_app_timezone(moment)
    return localized.hour  # type: ignore[union-attr]


def hour_in_window(hour: int, start_hour: int, end_hour: int) -> bool:
    """Return ``True`` when ``hour`` falls in the ``[start_hour, end_hour)`` window.

    Windows may wrap midnight (``22 -> 8``). An empty window (start equal to
    end) never matches.
    """

    if start_hour == end_hour:
        return False
    if start_hour < end_hour:
        return start_hour <= hour < end_hour
    return hour >= start_hour or hour < end_hour


def _resolve_timezone(tz_name: str) -> tzinfo:
    try:
        return ZoneInfo(tz_name)
    except ZoneInfoNotFoundError:
        match = _OFFSET_PATTERN.match(tz_name)
        if match:
            sign = -1 if match.group("sign") == "-" else 1
            hours = int(match.group("hours"))
            minutes = int(match.group("minutes") or 0)
            offset = timedelta(hours=hours, minutes=minutes)
            return timezone(sign * offset)
    return ZoneInfo(_DEFAULT_TIMEZONE)

"""Utility helpers for reusable functionality."""

from .datetime import (
    app_local_hour,
    ensure_app_naive_datetime,
    ensure_app_timezone,
    get_app_timezone,
    hour_in_window,
    now_in_app_naive_datetime,
    now_in_app_timezone,
)

__all__ = [
    "app_local_hour",
    "ensure_app_naive_datetime",
    "ensure_app_timezone",
    "get_app_timezone",
    "hour_in_window",
    "now_in_app_naive_datetime",
    "now_in_app_timezone",
]

"""Tests for the preference filter and the preferences use cases."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import IntegrityError

from app.application.use_cases.notifications import (
    filter_by_preferences,
    get_preferences,
    update_preferences,
)
from app.domain.entities import NotificationAction, NotificationPreferences
from app.domain.errors import PersistenceError

ALICE_ID = 1
BOB_ID = 2


def test_explicit_opt_out_filters_the_recipient() -> None:
    preferences = [NotificationPreferences(user_id=ALICE_ID, note_likes_enabled=False)]

    allowed = filter_by_preferences([ALICE_ID, BOB_ID], "note_liked", preferences)

    assert allowed == [BOB_ID]


def test_missing_preference_row_allows_everything() -> None:
    assert filter_by_preferences([ALICE_ID], NotificationAction.MEMBER_JOINED, {}) == [ALICE_ID]


@pytest.mark.parametrize(
    "action", [NotificationAction.WELCOME, NotificationAction.SYSTEM_ANNOUNCEMENT]
)
def test_system_actions_cannot_be_silenced(action: NotificationAction) -> None:
    muted = NotificationPreferences(
        user_id=ALICE_ID,
        social_enabled=False,
        group_enabled=False,
        invite_enabled=False,
        content_enabled=False,
    )

    assert filter_by_preferences([ALICE_ID], action, {ALICE_ID: muted}) == [ALICE_ID]


def test_get_preferences_creates_defaults(session, profiles) -> None:
    preferences = get_preferences(session, ALICE_ID)

    assert preferences.note_likes_enabled is True
    assert preferences.new_notes_enabled is False
    assert preferences.member_joins_enabled is False
    assert preferences.batch_window_minutes == 30
    assert (preferences.quiet_start_hour, preferences.quiet_end_hour) == (22, 8)
    assert preferences.updated_at is not None
    assert get_preferences(session, ALICE_ID) == preferences


def test_get_preferences_wraps_a_failed_insert(session, profiles, monkeypatch) -> None:
    def reject_insert() -> None:
        raise IntegrityError("INSERT INTO notification_preferences", {}, Exception("rejected"))

    monkeypatch.setattr(session, "commit", reject_insert)

    with pytest.raises(PersistenceError):
        get_preferences(session, ALICE_ID)


def test_update_preferences_persists_changes(session, profiles) -> None:
    updated = update_preferences(
        session, ALICE_ID, note_likes_enabled=False, quiet_hours_enabled=True, quiet_start_hour=23
    )

    assert updated.note_likes_enabled is False
    assert updated.quiet_hours_enabled is True
    assert get_preferences(session, ALICE_ID).quiet_start_hour == 23


@pytest.mark.parametrize(
    "changes",
    [
        {"quiet_start_hour": 24},
        {"quiet_end_hour": -1},
        {"batch_window_minutes": 0},
        {"unknown_flag": True},
        {"social_enabled": "yes"},
    ],
)
def test_update_preferences_rejects_invalid_values(session, profiles, changes) -> None:
    with pytest.raises(ValueError):
        update_preferences(session, ALICE_ID, **changes)


def test_quiet_hours_wrap_midnight() -> None:
    preferences = NotificationPreferences(user_id=ALICE_ID, quiet_hours_enabled=True)

    assert preferences.in_quiet_hours(datetime(2026, 3, 2, 23, 30, tzinfo=timezone.utc))
    assert preferences.in_quiet_hours(datetime(2026, 3, 2, 7, 59, tzinfo=timezone.utc))
    assert not preferences.in_quiet_hours(datetime(2026, 3, 2, 8, 0, tzinfo=timezone.utc))
    assert not NotificationPreferences(user_id=ALICE_ID).in_quiet_hours(
        datetime(2026, 3, 2, 23, 30, tzinfo=timezone.utc)
    )

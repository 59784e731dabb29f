"""Integration tests for the notification inbox endpoints."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from app.application.use_cases.notifications import create_notification
from app.infrastructure.security import create_access_token

ALICE_ID = 1
BOB_ID = 2
NOON = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def inbox(session, profiles):
    """Seed Alice's inbox with three rows, oldest first."""

    welcome = create_notification(session, ALICE_ID, "welcome", now=NOON).created[0]
    invite = create_notification(
        session,
        ALICE_ID,
        "group_invited",
        {"actor_name": "Bob", "group_name": "Physics"},
        priority="high",
        now=NOON + timedelta(minutes=1),
    ).created[0]
    like = create_notification(
        session,
        ALICE_ID,
        "note_liked",
        {"actor_name": "Bob", "target_title": "Optics", "target_id": 3, "group_id": 1},
        priority="low",
        now=NOON + timedelta(minutes=2),
    ).created[0]
    create_notification(session, BOB_ID, "welcome", now=NOON)
    return {"welcome": welcome, "invite": invite, "like": like}


def test_requires_a_session_token(client: TestClient) -> None:
    assert client.get("/notifications/").status_code == 401
    response = client.get("/notifications/", headers={"Authorization": "Bearer nonsense"})
    assert response.status_code == 401


def test_lists_newest_first_with_filters(client, inbox, auth_headers) -> None:
    headers = auth_headers(ALICE_ID)

    page = client.get("/notifications/", params={"limit": 2}, headers=headers).json()
    assert page["total"] == 3
    assert [item["action"] for item in page["items"]] == ["note_liked", "group_invited"]
    assert page["items"][0]["message"] == 'Bob liked your note "Optics"'

    social = client.get(
        "/notifications/", params={"category": "social"}, headers=headers
    ).json()
    assert [item["id"] for item in social["items"]] == [inbox["like"].id]


def test_read_flow_updates_counts(client, inbox, auth_headers) -> None:
    headers = auth_headers(ALICE_ID)
    assert client.get("/notifications/unread-count", headers=headers).json() == {"unread": 3}

    response = client.post(
        "/notifications/read", json={"ids": [inbox["like"].id, inbox["like"].id]}, headers=headers
    )
    assert response.json() == {"updated": 1}
    assert client.get("/notifications/unread-count", headers=headers).json() == {"unread": 2}

    unread = client.get("/notifications/", params={"unread_only": True}, headers=headers).json()
    assert {item["id"] for item in unread["items"]} == {
        inbox["welcome"].id,
        inbox["invite"].id,
    }

    assert client.post("/notifications/read-all", headers=headers).json() == {"updated": 2}
    assert client.get("/notifications/unread-count", headers=headers).json() == {"unread": 0}
    assert client.get("/notifications/unread-count", headers=auth_headers(BOB_ID)).json() == {
        "unread": 1
    }


def test_read_requires_at_least_one_id(client, inbox, auth_headers) -> None:
    response = client.post("/notifications/read", json={"ids": []}, headers=auth_headers(ALICE_ID))
    assert response.status_code == 422


def test_high_priority_lists_unread_alerts(client, inbox, auth_headers) -> None:
    items = client.get("/notifications/high-priority", headers=auth_headers(ALICE_ID)).json()
    assert [item["id"] for item in items] == [inbox["invite"].id]


def test_archive_hides_rows_and_checks_ownership(client, inbox, auth_headers) -> None:
    notification_id = inbox["welcome"].id

    forbidden = client.post(
        f"/notifications/{notification_id}/archive", headers=auth_headers(BOB_ID)
    )
    assert forbidden.status_code == 404

    archived = client.post(
        f"/notifications/{notification_id}/archive", headers=auth_headers(ALICE_ID)
    )
    assert archived.status_code == 200
    assert archived.json()["archived"] is True

    page = client.get("/notifications/", headers=auth_headers(ALICE_ID)).json()
    assert notification_id not in {item["id"] for item in page["items"]}


def test_preferences_roundtrip(client, profiles, auth_headers) -> None:
    headers = auth_headers(ALICE_ID)

    defaults = client.get("/notifications/preferences", headers=headers).json()
    assert defaults["note_likes_enabled"] is True
    assert defaults["member_joins_enabled"] is False

    updated = client.patch(
        "/notifications/preferences",
        json={"note_likes_enabled": False, "quiet_hours_enabled": True, "quiet_end_hour": 7},
        headers=headers,
    )
    assert updated.status_code == 200
    assert updated.json()["note_likes_enabled"] is False
    assert updated.json()["quiet_end_hour"] == 7
    assert updated.json()["social_enabled"] is True


@pytest.mark.parametrize(
    "payload", [{"quiet_start_hour": 24}, {"batch_window_minutes": 0}, {"unknown": True}]
)
def test_preferences_reject_invalid_payloads(client, profiles, auth_headers, payload) -> None:
    response = client.patch(
        "/notifications/preferences", json=payload, headers=auth_headers(ALICE_ID)
    )
    assert response.status_code == 422


def test_websocket_sends_pending_rows_and_acknowledges(client, inbox, auth_headers) -> None:
    token = create_access_token(ALICE_ID)

    with client.websocket_connect(f"/notifications/ws?token={token}") as websocket:
        init = websocket.receive_json()
        assert init["type"] == "init"
        assert len(init["data"]) == 3

        websocket.send_json({"type": "ack", "ids": [inbox["welcome"].id]})
        websocket.send_json({"type": "ping"})
        frames = [websocket.receive_json()]
        while frames[-1]["type"] != "pong":
            frames.append(websocket.receive_json())

    unread = client.get("/notifications/unread-count", headers=auth_headers(ALICE_ID)).json()
    assert unread == {"unread": 2}


def test_websocket_rejects_invalid_tokens(client, profiles) -> None:
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/notifications/ws?token=invalid"):
            pass

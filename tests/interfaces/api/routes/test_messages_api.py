"""Integration tests for group chat endpoints and delivery receipts."""

from __future__ import annotations

import pytest

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient

from app.infrastructure.notifications import change_feed
from app.infrastructure.security import create_access_token

ALICE_ID = 1
BOB_ID = 2
CAROL_ID = 3
GROUP_ID = 10


def _post(client, auth_headers, sender_id, content, group_id=GROUP_ID):
    response = client.post(
        f"/groups/{group_id}/messages", json={"content": content}, headers=auth_headers(sender_id)
    )
    assert response.status_code == 201
    return response.json()


def _status_of(message: dict, user_id: int) -> str | None:
    for status in message["statuses"]:
        if status["user_id"] == user_id:
            return status["status"]
    return None


def test_post_creates_a_sent_row_for_the_sender(client, profiles, auth_headers) -> None:
    message = _post(client, auth_headers, BOB_ID, "Quiz on Friday")

    assert message["sender_id"] == BOB_ID
    assert [(item["user_id"], item["status"]) for item in message["statuses"]] == [
        (BOB_ID, "sent")
    ]


def test_blank_messages_are_rejected(client, profiles, auth_headers) -> None:
    response = client.post(
        f"/groups/{GROUP_ID}/messages", json={"content": "   "}, headers=auth_headers(BOB_ID)
    )
    assert response.status_code == 400


def test_fetching_marks_delivered_and_seen_is_never_lowered(client, profiles, auth_headers) -> None:
    message = _post(client, auth_headers, BOB_ID, "Quiz on Friday")
    own = _post(client, auth_headers, ALICE_ID, "Thanks!")

    fetched = client.get(f"/groups/{GROUP_ID}/messages", headers=auth_headers(ALICE_ID)).json()
    by_id = {item["id"]: item for item in fetched}
    assert _status_of(by_id[message["id"]], ALICE_ID) == "delivered"
    assert _status_of(by_id[own["id"]], ALICE_ID) == "sent"

    seen = client.post(f"/groups/{GROUP_ID}/seen", headers=auth_headers(ALICE_ID)).json()
    assert {item["status"] for item in seen} == {"seen"}

    refetched = client.get(f"/groups/{GROUP_ID}/messages", headers=auth_headers(ALICE_ID)).json()
    by_id = {item["id"]: item for item in refetched}
    assert _status_of(by_id[message["id"]], ALICE_ID) == "seen"


def test_receipts_show_every_recipient(client, profiles, auth_headers) -> None:
    message = _post(client, auth_headers, BOB_ID, "Quiz on Friday")
    client.get(f"/groups/{GROUP_ID}/messages", headers=auth_headers(ALICE_ID))
    client.get(f"/groups/{GROUP_ID}/messages", headers=auth_headers(CAROL_ID))
    client.post(f"/groups/{GROUP_ID}/seen", headers=auth_headers(CAROL_ID))

    receipts = client.get(
        f"/messages/{message['id']}/statuses", headers=auth_headers(BOB_ID)
    ).json()

    assert [(item["full_name"], item["status"]) for item in receipts] == [
        ("Bob", "sent"),
        ("Alice", "delivered"),
        ("Carol", "seen"),
    ]
    missing = client.get("/messages/9999/statuses", headers=auth_headers(BOB_ID))
    assert missing.status_code == 404


def test_only_the_sender_can_edit_or_delete(client, profiles, auth_headers) -> None:
    message = _post(client, auth_headers, BOB_ID, "Quiz on Friday")
    url = f"/messages/{message['id']}"

    assert client.patch(url, json={"content": "x"}, headers=auth_headers(ALICE_ID)).status_code == 403
    edited = client.patch(url, json={"content": "Quiz on Monday"}, headers=auth_headers(BOB_ID))
    assert edited.json()["content"] == "Quiz on Monday"

    assert client.delete(url, headers=auth_headers(ALICE_ID)).status_code == 403
    assert client.delete(url, headers=auth_headers(BOB_ID)).status_code == 204
    assert client.get(f"/messages/{message['id']}/statuses", headers=auth_headers(BOB_ID)).status_code == 404


def test_chat_websocket_streams_delivery_ticks(client: TestClient, profiles, auth_headers) -> None:
    earlier = _post(client, auth_headers, BOB_ID, "Earlier message")
    token = create_access_token(ALICE_ID)

    with client.websocket_connect(f"/groups/{GROUP_ID}/ws?token={token}") as websocket:
        init = websocket.receive_json()
        assert init["type"] == "init"
        assert [item["id"] for item in init["data"]] == [earlier["id"]]
        assert _status_of(init["data"][0], ALICE_ID) == "delivered"

        message = _post(client, auth_headers, BOB_ID, "Are you online?")

        added = websocket.receive_json()
        assert added["type"] == "message_added"
        assert added["data"]["id"] == message["id"]

        delivered = websocket.receive_json()
        assert delivered["type"] == "status_changed"
        assert _status_of(delivered["data"], ALICE_ID) == "delivered"

        websocket.send_json({"type": "ping"})
        frames = [websocket.receive_json()]
        while frames[-1]["type"] != "pong":
            frames.append(websocket.receive_json())

    receipts = client.get(
        f"/messages/{message['id']}/statuses", headers=auth_headers(BOB_ID)
    ).json()
    assert ("Alice", "delivered") in [(item["full_name"], item["status"]) for item in receipts]
    assert change_feed.subscriber_count() == 0

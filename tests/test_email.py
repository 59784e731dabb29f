"""Unit tests for the SendGrid email helper utilities."""

from __future__ import annotations

import json
import types
from datetime import datetime, timezone

import pytest

from app.infrastructure import email as email_module


class _FakeSendGridClient:
    """Client returning a successful response without network access."""

    def __init__(self, api_key: str):
        self.api_key = api_key

    def send(self, message):
        return types.SimpleNamespace(status_code=202, body=None)


class _ConfiguredSettings:
    sendgrid_api_key = "SG.fake"
    sendgrid_sender = "sender@example.com"
    app_base_url = "https://studybuddy.example.com/"


def test_send_email_without_configuration(monkeypatch: pytest.MonkeyPatch) -> None:
    """When SendGrid settings are missing the helper should exit early."""

    class DummySettings:
        sendgrid_api_key = None
        sendgrid_sender = None

    monkeypatch.setattr(email_module, "get_settings", lambda: DummySettings())

    assert email_module.send_email("Subject", "<p>Body</p>", "user@example.com") is False


def test_send_email_success(monkeypatch: pytest.MonkeyPatch) -> None:
    """A successful SendGrid response should return ``True``."""

    monkeypatch.setattr(email_module, "get_settings", lambda: _ConfiguredSettings())
    monkeypatch.setattr(email_module, "SendGridAPIClient", _FakeSendGridClient)

    assert email_module.send_email("Subject", "<p>Body</p>", "user@example.com") is True


def test_send_email_logs_forbidden_error(monkeypatch: pytest.MonkeyPatch, caplog):
    """Forbidden responses from SendGrid should surface meaningful log details."""

    class FakeForbiddenError(Exception):
        status_code = 403
        body = json.dumps(
            {
                "errors": [
                    {
                        "message": "The provided authorization grant is invalid.",
                        "help": "https://docs.sendgrid.com/api-reference/how-to-use-the-sendgrid-v3-api/authentication",
                    }
                ]
            }
        ).encode()

    class FailingClient(_FakeSendGridClient):
        def send(self, message):
            raise FakeForbiddenError()

    monkeypatch.setattr(email_module, "get_settings", lambda: _ConfiguredSettings())
    monkeypatch.setattr(email_module, "SendGridAPIClient", FailingClient)

    with caplog.at_level("ERROR"):
        result = email_module.send_email("Subject", "<p>Body</p>", "user@example.com")

    assert result is False
    assert "status 403" in caplog.text
    assert "authorization grant is invalid" in caplog.text


def test_send_email_rejects_non_success_status(monkeypatch: pytest.MonkeyPatch, caplog):
    class RejectingClient(_FakeSendGridClient):
        def send(self, message):
            return types.SimpleNamespace(status_code=400, body=b"bad request")

    monkeypatch.setattr(email_module, "get_settings", lambda: _ConfiguredSettings())
    monkeypatch.setattr(email_module, "SendGridAPIClient", RejectingClient)

    with caplog.at_level("ERROR"):
        assert email_module.send_email("Subject", "<p>Body</p>", "user@example.com") is False
    assert "status 400: bad request" in caplog.text


def test_group_invite_email_escapes_user_content(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = {}

    def fake_send_email(subject, html_content, recipient):
        captured.update(subject=subject, html=html_content, recipient=recipient)
        return True

    monkeypatch.setattr(email_module, "send_email", fake_send_email)

    assert email_module.send_group_invite_email(
        to="friend@example.com",
        group_name="<Physics>",
        inviter_name="Bob & Co",
        invite_link="https://studybuddy.example.com/invites?token=abc",
        expires_at=datetime(2026, 3, 9, 12, 0, tzinfo=timezone.utc),
    )
    assert captured["recipient"] == "friend@example.com"
    assert captured["subject"] == "You've been invited to join <Physics> on StudyBuddy"
    assert "&lt;Physics&gt;" in captured["html"]
    assert "Bob &amp; Co" in captured["html"]
    assert "2026-03-09 12:00" in captured["html"]


def test_group_invite_email_requires_every_field() -> None:
    with pytest.raises(ValueError):
        email_module.send_group_invite_email(
            to="",
            group_name="Physics",
            inviter_name="Bob",
            invite_link="https://studybuddy.example.com/invites?token=abc",
            expires_at=datetime(2026, 3, 9, tzinfo=timezone.utc),
        )


def test_build_invite_link_uses_the_client_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(email_module, "get_settings", lambda: _ConfiguredSettings())

    assert (
        email_module.build_invite_link("abc")
        == "https://studybuddy.example.com/invites?token=abc"
    )

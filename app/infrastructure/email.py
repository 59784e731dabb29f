"""Transactional email delivery through SendGrid."""

from __future__ import annotations

import html
import json
import logging
from datetime import datetime
from typing import Any

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from app.config import get_settings
from app.utils import ensure_app_timezone

logger = logging.getLogger(__name__)


def _describe_sendgrid_body(body: Any) -> str | None:
    """Return the readable part of a SendGrid error payload, if any."""

    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            return None
    if isinstance(body, str):
        body = body.strip()
        if not body:
            return None
        try:
            body = json.loads(body)
        except json.JSONDecodeError:
            return body
    if not isinstance(body, dict):
        return None

    messages: list[str] = []
    for item in body.get("errors") or []:
        if not isinstance(item, dict) or not item.get("message"):
            continue
        if item.get("help"):
            messages.append(f"{item['message']} (help: {item['help']})")
        else:
            messages.append(str(item["message"]))
    if messages:
        return "; ".join(messages)
    return json.dumps(body)


def _log_sendgrid_failure(source: Any) -> None:
    """Log a failed SendGrid call from an exception or an unsuccessful response."""

    status_code = getattr(source, "status_code", None)
    details = _describe_sendgrid_body(getattr(source, "body", None))
    if status_code and details:
        logger.error("SendGrid API request failed with status %s: %s", status_code, details)
    elif status_code:
        logger.error("SendGrid API request failed with status %s", status_code)
    elif details:
        logger.error("SendGrid API request failed: %s", details)
    else:
        logger.error("SendGrid API request failed: %r", source)


def send_email(subject: str, html_content: str, recipient: str) -> bool:
    """Send an email using the configured SendGrid credentials."""

    settings = get_settings()
    if not (settings.sendgrid_api_key and settings.sendgrid_sender):
        logger.info("SendGrid configuration incomplete; skipping email delivery")
        return False

    message = Mail(
        from_email=settings.sendgrid_sender,
        to_emails=recipient,
        subject=subject,
        html_content=html_content,
    )

    try:
        client = SendGridAPIClient(settings.sendgrid_api_key)
        response = client.send(message)
    except Exception as exc:  # pragma: no cover - network failures depend on environment
        _log_sendgrid_failure(exc)
        return False

    status_code = getattr(response, "status_code", None)
    if not isinstance(status_code, int) or not 200 <= status_code < 300:
        _log_sendgrid_failure(response)
        return False

    return True


def build_invite_link(invite_token: str) -> str:
    """Return the web client URL that accepts ``invite_token``."""

    base_url = get_settings().app_base_url.rstrip("/")
    return f"{base_url}/invites?token={invite_token}"


def send_group_invite_email(
    *,
    to: str,
    group_name: str,
    inviter_name: str,
    invite_link: str,
    expires_at: datetime,
) -> bool:
    """Invite someone who is not a StudyBuddy member yet to join a group."""

    if not (to and group_name and inviter_name and invite_link and expires_at):
        raise ValueError(
            "Missing required fields: to, group_name, inviter_name, invite_link, expires_at"
        )

    expires = ensure_app_timezone(expires_at)
    subject = f"You've been invited to join {group_name} on StudyBuddy"
    html_content = "".join(
        (
            "<p>Hi,</p>",
            f"<p><strong>{html.escape(inviter_name)}</strong> has invited you to join the group ",
            f"<strong>{html.escape(group_name)}</strong> on StudyBuddy.</p>",
            f'<p><a href="{html.escape(invite_link, quote=True)}" ',
            'style="padding:10px 20px; background:#2563eb; color:white; '
            'text-decoration:none; border-radius:5px;">Accept Invite</a></p>',
            f"<p>This invite will expire on <strong>{expires:%Y-%m-%d %H:%M %Z}</strong>.</p>",
            "<br/><p>Thanks,<br/>The StudyBuddy Team</p>",
        )
    )
    return send_email(subject, html_content, to)


__all__ = ["build_invite_link", "send_email", "send_group_invite_email"]

"""Utility helpers for sending alert emails via SendGrid."""

from __future__ import annotations

import html
import json
import logging
from typing import Any

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from moodlog.config import get_settings

logger = logging.getLogger(__name__)


class EmailDeliveryError(RuntimeError):
    """SendGrid rejected or could not accept a message."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def transient(self) -> bool:
        """Return ``True`` for failures worth retrying (network, 429, 5xx)."""

        if self.status_code is None:
            return True
        return self.status_code == 429 or self.status_code >= 500


def email_configured() -> bool:
    settings = get_settings()
    return bool(settings.sendgrid_api_key and settings.sendgrid_sender)


def _extract_sendgrid_error_details(body: Any) -> str | None:
    """Return a human readable description for a SendGrid error payload."""

    if body in (None, ""):
        return None

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
            parsed = json.loads(body)
        except json.JSONDecodeError:
            return body
    else:
        parsed = body

    if isinstance(parsed, dict):
        errors = parsed.get("errors")
        if isinstance(errors, list):
            messages: list[str] = []
            for item in errors:
                if not isinstance(item, dict):
                    continue
                message = item.get("message")
                if message:
                    messages.append(str(message))
            if messages:
                return "; ".join(messages)
        try:
            return json.dumps(parsed)
        except (TypeError, ValueError):
            return None

    return None


def send_email(subject: str, html_content: str, recipient: str) -> None:
    """Send an email using the configured SendGrid credentials.

    Raises :class:`EmailDeliveryError` when SendGrid is not configured, the
    request fails or the API answers with a non 2xx status.
    """

    settings = get_settings()
    if not email_configured():
        raise EmailDeliveryError("SendGrid configuration incomplete", status_code=400)

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
        status_code = getattr(exc, "status_code", None)
        details = _extract_sendgrid_error_details(getattr(exc, "body", None))
        logger.error(
            "SendGrid API request failed with status %s: %s",
            status_code,
            details or exc,
        )
        raise EmailDeliveryError(
            details or str(exc),
            status_code=status_code if isinstance(status_code, int) else None,
        ) from exc

    status_code = getattr(response, "status_code", None)
    if not isinstance(status_code, int) or not 200 <= status_code < 300:
        details = _extract_sendgrid_error_details(getattr(response, "body", None))
        logger.error("SendGrid API responded with status %s: %s", status_code, details)
        raise EmailDeliveryError(
            details or f"Unexpected SendGrid status {status_code}",
            status_code=status_code if isinstance(status_code, int) else None,
        )


def build_alert_email(display_name: str, message: str, *, critical: bool) -> tuple[str, str]:
    """Return the subject and HTML body used for an alert."""

    if critical:
        subject = f"URGENT: {display_name} needs help"
    else:
        subject = f"Mood check-in alert for {display_name}"
    html_content = "".join(
        (
            "<p>Hello,</p>",
            f"<p>{html.escape(message)}</p>",
            "<p>You receive this message because you are listed as an alert contact.</p>",
        )
    )
    return subject, html_content


__all__ = [
    "EmailDeliveryError",
    "build_alert_email",
    "email_configured",
    "send_email",
]

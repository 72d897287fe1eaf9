"""Notification channels used to deliver alerts outside the service."""

from __future__ import annotations

import logging
from typing import Protocol

from moodlog.domain.entities import Recipient
from moodlog.domain.errors import ChannelError
from moodlog.infrastructure.email import (
    EmailDeliveryError,
    build_alert_email,
    email_configured,
    send_email,
)

logger = logging.getLogger(__name__)


class NotificationChannel(Protocol):
    """Capability used by the dispatcher: deliver ``message`` or raise."""

    def send(self, recipient: Recipient, message: str, *, critical: bool = False) -> None:
        """Deliver ``message`` about ``recipient``; raise :class:`ChannelError` on failure."""


class EmailNotificationChannel:
    """Send alerts to the recipient's alert contacts through SendGrid.

    A send succeeds when every contact accepted the message. Contacts that
    already accepted it are not retried within the same call.
    """

    def send(self, recipient: Recipient, message: str, *, critical: bool = False) -> None:
        if not email_configured():
            raise ChannelError("Email channel is not configured", transient=False)
        if not recipient.contacts:
            raise ChannelError(
                f"No alert contacts configured for user {recipient.user_id}",
                transient=False,
            )

        subject, html_content = build_alert_email(
            recipient.display_name, message, critical=critical
        )
        failures: list[EmailDeliveryError] = []
        for contact in recipient.contacts:
            try:
                send_email(subject, html_content, contact)
            except EmailDeliveryError as exc:
                logger.warning("Alert email to %s failed: %s", contact, exc)
                failures.append(exc)

        if failures:
            transient = any(failure.transient for failure in failures)
            raise ChannelError(
                f"{len(failures)} of {len(recipient.contacts)} alert emails failed",
                transient=transient,
            )
        logger.info(
            "Alert emails sent for user %s to %d contact(s)",
            recipient.user_id,
            len(recipient.contacts),
        )


__all__ = ["EmailNotificationChannel", "NotificationChannel"]

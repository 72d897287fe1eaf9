"""Utility helpers to push delivery outcomes to websocket subscribers."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from anyio import from_thread

from moodlog.domain.entities import DeliveryOutcome

from .manager import NotificationConnectionManager, notification_manager

logger = logging.getLogger(__name__)


class NotificationPublisher:
    """Serialize delivery outcomes and schedule their delivery."""

    def __init__(self, manager: NotificationConnectionManager) -> None:
        self._manager = manager

    def dispatch(self, outcome: DeliveryOutcome) -> None:
        """Schedule ``outcome`` to be pushed to the connected clients of its user."""

        message = {"type": "alert.delivery", "data": serialize_outcome(outcome)}
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            try:
                from_thread.run(self._manager.send_to_user, outcome.user_id, message)
            except RuntimeError:
                # Outside an anyio worker thread there are no sockets to reach.
                logger.debug(
                    "No event loop available; skipping realtime push for user %s",
                    outcome.user_id,
                )
        else:
            loop.create_task(self._manager.send_to_user(outcome.user_id, message))

    __call__ = dispatch


def serialize_outcome(outcome: DeliveryOutcome) -> dict[str, Any]:
    """Return the websocket payload representation for ``outcome``."""

    return {
        "id": outcome.id,
        "user_id": outcome.user_id,
        "event_sequence": outcome.event_sequence,
        "severity": outcome.severity.value,
        "status": outcome.status.value,
        "attempts": outcome.attempts,
        "last_error": outcome.last_error,
        "message": outcome.message,
        "created_at": outcome.created_at.isoformat() if outcome.created_at else None,
        "delivered_at": outcome.delivered_at.isoformat()
        if outcome.delivered_at
        else None,
    }


notification_publisher = NotificationPublisher(notification_manager)


__all__ = [
    "NotificationPublisher",
    "notification_publisher",
    "serialize_outcome",
]

"""Registry of websocket subscribers waiting for alert delivery outcomes."""

from __future__ import annotations

import logging
import threading
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class NotificationConnectionManager:
    """Track the open alert websockets of every user."""

    def __init__(self) -> None:
        self._subscribers: dict[int, list[WebSocket]] = {}
        self._guard = threading.Lock()

    async def connect(self, user_id: int, websocket: WebSocket) -> None:
        await websocket.accept()
        with self._guard:
            self._subscribers.setdefault(user_id, []).append(websocket)
        logger.debug("Alert subscriber connected for user %s", user_id)

    def disconnect(self, user_id: int, websocket: WebSocket) -> None:
        with self._guard:
            sockets = self._subscribers.get(user_id)
            if not sockets or websocket not in sockets:
                return
            sockets.remove(websocket)
            if not sockets:
                del self._subscribers[user_id]

    def subscriber_count(self, user_id: int) -> int:
        with self._guard:
            return len(self._subscribers.get(user_id, ()))

    async def send_to_user(self, user_id: int, message: dict[str, Any]) -> int:
        """Push ``message`` to the subscribers of ``user_id``.

        Sockets that fail to receive are unregistered. Returns the number of
        subscribers that got the message.
        """

        with self._guard:
            sockets = list(self._subscribers.get(user_id, ()))

        delivered = 0
        for websocket in sockets:
            try:
                await websocket.send_json(message)
            except Exception as exc:  # pragma: no cover - depends on client state
                logger.debug("Dropping alert subscriber of user %s: %s", user_id, exc)
                self.disconnect(user_id, websocket)
            else:
                delivered += 1
        return delivered


notification_manager = NotificationConnectionManager()


__all__ = ["NotificationConnectionManager", "notification_manager"]

"""Domain entity representing a server-side login session."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta


@dataclass
class Session:
    """An opaque session token bound to a user."""

    id: str
    user_id: int
    created_at: datetime
    last_seen_at: datetime
    expires_at: datetime | None = None

    def is_valid_at(self, now: datetime, idle_timeout: timedelta) -> bool:
        """Return ``True`` when the session is neither expired nor idle at ``now``."""

        if self.expires_at is not None and now >= self.expires_at:
            return False
        return now - self.last_seen_at < idle_timeout


__all__ = ["Session"]

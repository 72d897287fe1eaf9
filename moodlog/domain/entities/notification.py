"""Domain entities describing alert intents and their delivery outcome."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .event import EventKind


class Severity(str, Enum):
    WARNING = "warning"
    CRITICAL = "critical"


class DeliveryStatus(str, Enum):
    """States of the bounded retry state machine."""

    PENDING = "pending"
    RETRYING = "retrying"
    DELIVERED = "delivered"
    FAILED = "failed"


@dataclass(frozen=True)
class NotificationIntent:
    """A decision to alert, keyed by the triggering event's identity."""

    user_id: int
    event_sequence: int
    kind: EventKind
    severity: Severity
    message: str

    @property
    def key(self) -> tuple[int, int]:
        return (self.user_id, self.event_sequence)


@dataclass
class DeliveryOutcome:
    """Persisted result of dispatching a :class:`NotificationIntent`."""

    id: int | None
    user_id: int
    event_sequence: int
    severity: Severity
    message: str
    status: DeliveryStatus
    attempts: int = 0
    last_error: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    delivered_at: datetime | None = None

    @property
    def delivered(self) -> bool:
        return self.status is DeliveryStatus.DELIVERED


@dataclass(frozen=True)
class Recipient:
    """Who an alert is about and where it should be sent."""

    user_id: int
    display_name: str
    contacts: tuple[str, ...]


__all__ = [
    "DeliveryOutcome",
    "DeliveryStatus",
    "NotificationIntent",
    "Recipient",
    "Severity",
]

"""Domain entities exposed by the application."""

from .event import ChainHead, ChainVerification, Event, EventKind
from .notification import (
    DeliveryOutcome,
    DeliveryStatus,
    NotificationIntent,
    Recipient,
    Severity,
)
from .session import Session
from .user import User, UserRole
from .user_settings import UserSettings

__all__ = [
    "ChainHead",
    "ChainVerification",
    "DeliveryOutcome",
    "DeliveryStatus",
    "Event",
    "EventKind",
    "NotificationIntent",
    "Recipient",
    "Session",
    "Severity",
    "User",
    "UserRole",
    "UserSettings",
]

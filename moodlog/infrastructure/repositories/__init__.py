"""Repository implementations for infrastructure layer."""

from .event_repository import EventRepository
from .notification_delivery_repository import NotificationDeliveryRepository
from .session_repository import SessionRepository
from .user_repository import UserRepository
from .user_settings_repository import UserSettingsRepository

__all__ = [
    "EventRepository",
    "NotificationDeliveryRepository",
    "SessionRepository",
    "UserRepository",
    "UserSettingsRepository",
]

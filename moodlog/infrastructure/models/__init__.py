"""ORM models used by the application infrastructure."""

from .event import EventModel
from .notification_delivery import NotificationDeliveryModel
from .session import SessionModel
from .user import UserModel
from .user_settings import UserSettingsModel

__all__ = [
    "EventModel",
    "NotificationDeliveryModel",
    "SessionModel",
    "UserModel",
    "UserSettingsModel",
]

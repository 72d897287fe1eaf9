"""Notification channels and realtime helpers for the infrastructure layer."""

from .channels import EmailNotificationChannel, NotificationChannel
from .manager import NotificationConnectionManager, notification_manager
from .publisher import NotificationPublisher, notification_publisher, serialize_outcome

__all__ = [
    "EmailNotificationChannel",
    "NotificationChannel",
    "NotificationConnectionManager",
    "notification_manager",
    "NotificationPublisher",
    "notification_publisher",
    "serialize_outcome",
]

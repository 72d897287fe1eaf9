"""Load who an alert is about and which policy applies to them."""

from __future__ import annotations

from sqlalchemy.orm import Session

from moodlog.config import Settings
from moodlog.domain.entities import Recipient
from moodlog.infrastructure.repositories import UserRepository, UserSettingsRepository

from .thresholds import ThresholdPolicy


def load_recipient(session: Session, user_id: int) -> Recipient | None:
    """Return the alert recipient for ``user_id`` or ``None`` when unknown."""

    user = UserRepository(session).get(user_id)
    if user is None:
        return None
    user_settings = UserSettingsRepository(session).get(user_id)
    if user_settings is None:
        return Recipient(user_id=user_id, display_name=user.username, contacts=())
    return Recipient(
        user_id=user_id,
        display_name=user_settings.display_name or user.username,
        contacts=tuple(user_settings.contacts()),
    )


def load_policy(session: Session, user_id: int, settings: Settings) -> ThresholdPolicy:
    user_settings = UserSettingsRepository(session).get(user_id)
    return ThresholdPolicy.from_settings(settings, user_settings)


__all__ = ["load_policy", "load_recipient"]

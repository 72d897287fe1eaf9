"""Persistence helpers for per-user alert preferences."""

from __future__ import annotations

from sqlalchemy.orm import Session

from moodlog.domain.entities import UserSettings
from moodlog.infrastructure.models import UserSettingsModel


class UserSettingsRepository:
    """Read and upsert :class:`UserSettings` rows."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: int) -> UserSettings | None:
        model = self.session.get(UserSettingsModel, user_id)
        return self._to_entity(model) if model else None

    def save(self, settings: UserSettings) -> UserSettings:
        model = self.session.get(UserSettingsModel, settings.user_id)
        if model is None:
            model = UserSettingsModel(user_id=settings.user_id)
        model.display_name = settings.display_name
        model.alert_contacts = list(settings.alert_contacts)
        model.notify_on_low_mood = settings.notify_on_low_mood
        model.low_mood_threshold = settings.low_mood_threshold
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    @staticmethod
    def _to_entity(model: UserSettingsModel) -> UserSettings:
        return UserSettings(
            user_id=model.user_id,
            display_name=model.display_name,
            alert_contacts=list(model.alert_contacts or []),
            notify_on_low_mood=model.notify_on_low_mood,
            low_mood_threshold=model.low_mood_threshold,
        )


__all__ = ["UserSettingsRepository"]

"""Use cases for reading and changing alert preferences."""

from dataclasses import replace

from sqlalchemy.orm import Session

from moodlog.domain.entities import UserSettings
from moodlog.domain.errors import NotFound
from moodlog.infrastructure.repositories import UserRepository, UserSettingsRepository

from .validators import normalize_email

_UNSET = object()


def get_user_settings(session: Session, user_id: int) -> UserSettings:
    """Return the stored preferences, falling back to defaults."""

    user = UserRepository(session).get(user_id)
    if user is None:
        raise NotFound(f"User {user_id} not found")
    stored = UserSettingsRepository(session).get(user_id)
    return stored or UserSettings(user_id=user_id, display_name=user.username)


def update_user_settings(
    session: Session,
    user_id: int,
    *,
    display_name: str | None = None,
    alert_contacts: list[str] | None = None,
    notify_on_low_mood: bool | None = None,
    low_mood_threshold=_UNSET,
) -> UserSettings:
    """Apply the provided changes; ``low_mood_threshold=None`` clears the override."""

    current = get_user_settings(session, user_id)

    if display_name is not None:
        display_name = display_name.strip()
        if not display_name:
            raise ValueError("Display name must not be empty")
    if alert_contacts is not None:
        alert_contacts = [normalize_email(contact) for contact in alert_contacts]
    if low_mood_threshold is not _UNSET and low_mood_threshold is not None:
        if not -5 <= low_mood_threshold <= 5:
            raise ValueError("Low mood threshold must be between -5 and 5")

    updated = replace(
        current,
        display_name=display_name if display_name is not None else current.display_name,
        alert_contacts=(
            alert_contacts if alert_contacts is not None else current.alert_contacts
        ),
        notify_on_low_mood=(
            notify_on_low_mood
            if notify_on_low_mood is not None
            else current.notify_on_low_mood
        ),
        low_mood_threshold=(
            current.low_mood_threshold
            if low_mood_threshold is _UNSET
            else low_mood_threshold
        ),
    )
    return UserSettingsRepository(session).save(updated)

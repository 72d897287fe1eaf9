"""Decide whether a stored event warrants an alert."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from moodlog.config import (
    DEFAULT_LOW_MOOD_MESSAGE_TEMPLATE,
    DEFAULT_PANIC_MESSAGE_TEMPLATE,
    Settings,
)
from moodlog.domain.entities import (
    Event,
    EventKind,
    NotificationIntent,
    Severity,
    UserSettings,
)
from moodlog.utils import ensure_app_timezone

TIMESTAMP_FORMAT = "%d.%m.%Y %H:%M"
UNKNOWN_VALUE = "unknown"


@dataclass(frozen=True)
class ThresholdPolicy:
    """Thresholds and message templates applied to a user's events."""

    low_mood_threshold: int = -3
    notify_on_low_mood: bool = True
    low_mood_message_template: str = DEFAULT_LOW_MOOD_MESSAGE_TEMPLATE
    panic_message_template: str = DEFAULT_PANIC_MESSAGE_TEMPLATE

    @classmethod
    def from_settings(
        cls, settings: Settings, user_settings: UserSettings | None = None
    ) -> "ThresholdPolicy":
        """Build the policy from global settings and optional user overrides."""

        threshold = settings.low_mood_threshold
        notify = settings.notify_on_low_mood
        if user_settings is not None:
            notify = user_settings.notify_on_low_mood
            if user_settings.low_mood_threshold is not None:
                threshold = user_settings.low_mood_threshold
        return cls(
            low_mood_threshold=threshold,
            notify_on_low_mood=notify,
            low_mood_message_template=settings.low_mood_message_template,
            panic_message_template=settings.panic_message_template,
        )


def render_message(
    template: str,
    *,
    username: str,
    mood: int | None,
    intensity: int | None,
    timestamp: datetime,
) -> str:
    """Fill the ``{username}``, ``{mood}``, ``{intensity}`` and ``{timestamp}`` placeholders.

    Placeholders are substituted literally; other braces in the template are
    left untouched.
    """

    localized = ensure_app_timezone(timestamp)
    replacements = {
        "{username}": username,
        "{mood}": str(mood) if mood is not None else UNKNOWN_VALUE,
        "{intensity}": str(intensity) if intensity is not None else UNKNOWN_VALUE,
        "{timestamp}": localized.strftime(TIMESTAMP_FORMAT) if localized else "",
    }
    message = template
    for placeholder, value in replacements.items():
        message = message.replace(placeholder, value)
    return message


def evaluate(
    event: Event,
    policy: ThresholdPolicy,
    recipient_name: str | None = None,
    *,
    last_checkin: Event | None = None,
) -> NotificationIntent | None:
    """Return the alert ``event`` calls for, or ``None``.

    Panic events always produce a critical intent. Check-ins produce a
    warning when low-mood alerts are enabled and the mood is at or below the
    threshold. A panic without its own mood snapshot reports the values of
    ``last_checkin`` when given.
    """

    username = recipient_name or f"user {event.user_id}"

    if event.kind is EventKind.PANIC:
        mood, intensity = event.mood, event.intensity
        if mood is None and last_checkin is not None:
            mood, intensity = last_checkin.mood, last_checkin.intensity
        message = render_message(
            policy.panic_message_template,
            username=username,
            mood=mood,
            intensity=intensity,
            timestamp=event.created_at,
        )
        return NotificationIntent(
            user_id=event.user_id,
            event_sequence=event.sequence,
            kind=event.kind,
            severity=Severity.CRITICAL,
            message=message,
        )

    if not policy.notify_on_low_mood or event.mood is None:
        return None
    if event.mood > policy.low_mood_threshold:
        return None

    message = render_message(
        policy.low_mood_message_template,
        username=username,
        mood=event.mood,
        intensity=event.intensity,
        timestamp=event.created_at,
    )
    return NotificationIntent(
        user_id=event.user_id,
        event_sequence=event.sequence,
        kind=event.kind,
        severity=Severity.WARNING,
        message=message,
    )


__all__ = ["ThresholdPolicy", "evaluate", "render_message"]

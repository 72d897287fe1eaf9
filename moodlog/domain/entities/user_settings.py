"""Domain entity describing the alerting preferences of a user."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class UserSettings:
    """Per-user overrides used when evaluating and delivering alerts."""

    user_id: int
    display_name: str
    alert_contacts: list[str] = field(default_factory=list)
    notify_on_low_mood: bool = True
    low_mood_threshold: int | None = None

    def contacts(self) -> list[str]:
        """Return the trimmed, non-empty contacts without duplicates."""

        unique: list[str] = []
        for entry in self.alert_contacts:
            trimmed = entry.strip()
            if trimmed and trimmed not in unique:
                unique.append(trimmed)
        return unique


__all__ = ["UserSettings"]

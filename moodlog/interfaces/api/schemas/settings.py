"""Schemas for per-user alert preferences."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserSettingsRead(BaseModel):
    display_name: str
    alert_contacts: list[str]
    notify_on_low_mood: bool
    low_mood_threshold: int | None

    model_config = ConfigDict(from_attributes=True)


class UserSettingsUpdate(BaseModel):
    display_name: str | None = Field(default=None, min_length=1, max_length=80)
    alert_contacts: list[EmailStr] | None = None
    notify_on_low_mood: bool | None = None
    low_mood_threshold: int | None = Field(
        default=None,
        ge=-5,
        le=5,
        description="Send ``null`` to fall back to the server default",
    )

    model_config = ConfigDict(extra="forbid")


class AlertTestRead(BaseModel):
    message: str
    contacts: list[str]

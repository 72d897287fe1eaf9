"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"

DEFAULT_LOW_MOOD_MESSAGE_TEMPLATE = (
    "Hi, this is the mood tracker of {username}. Mood: {mood}, intensity: "
    "{intensity}/10 at {timestamp}. Just a small hint that a quick check-in "
    "might help."
)
DEFAULT_PANIC_MESSAGE_TEMPLATE = (
    "ALERT: {username} pressed 'I need help' in the app. Mood: {mood} / "
    "intensity: {intensity}/10 at {timestamp}. Please check on them."
)


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    app_timezone: str = Field(
        default="UTC",
        description=(
            "Timezone used to localize timestamps stored in the database. "
            "Keep UTC in production: stored times are naive wall-clock values, "
            "so idle timeouts and the monotonic session touch misbehave across "
            "DST changes in other zones"
        ),
    )
    log_level: str = Field(default="INFO", description="Root logging level")
    cors_allow_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        description="Origins allowed to call the API with credentials",
    )

    session_cookie_name: str = Field(default="moodlog_session", min_length=1)
    session_idle_timeout_minutes: int = Field(
        default=720,
        description="Minutes of inactivity after which a session becomes invalid",
        gt=0,
    )
    session_max_lifetime_minutes: int | None = Field(
        default=43_200,
        description="Absolute session lifetime; unset disables the fixed expiry",
        gt=0,
    )
    session_token_bytes: int = Field(
        default=32,
        description="Random bytes used to build session tokens",
        ge=16,
    )
    password_min_length: int = Field(default=8, ge=1)

    low_mood_threshold: int = Field(
        default=-3,
        description="Check-ins with a mood at or below this value trigger an alert",
        ge=-5,
        le=5,
    )
    notify_on_low_mood: bool = Field(default=True)
    low_mood_message_template: str = Field(default=DEFAULT_LOW_MOOD_MESSAGE_TEMPLATE)
    panic_message_template: str = Field(default=DEFAULT_PANIC_MESSAGE_TEMPLATE)

    notification_max_attempts: int = Field(default=5, ge=1)
    notification_backoff_base_seconds: float = Field(default=0.5, ge=0)
    notification_backoff_factor: float = Field(default=2.0, ge=1)
    notification_backoff_max_seconds: float = Field(default=30.0, ge=0)
    notification_claim_timeout_seconds: int = Field(
        default=300,
        description="Seconds after which an in-flight delivery claim may be taken over",
        gt=0,
    )
    event_append_max_retries: int = Field(default=3, ge=1)

    sendgrid_api_key: str | None = Field(
        default=None,
        description="SendGrid API key used for sending alert emails via the REST API",
    )
    sendgrid_sender: str | None = Field(
        default=None,
        description="Email address that will appear as the sender of alert messages",
        min_length=3,
    )

    @model_validator(mode="after")
    def _validate_sendgrid_pair(self) -> "Settings":
        if bool(self.sendgrid_api_key) ^ bool(self.sendgrid_sender):
            raise ValueError(
                "SENDGRID_API_KEY and SENDGRID_SENDER must both be provided to enable email"
            )
        if self.sendgrid_sender and "@" not in self.sendgrid_sender:
            raise ValueError("SENDGRID_SENDER must be a valid email address")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = [
    "DEFAULT_LOW_MOOD_MESSAGE_TEMPLATE",
    "DEFAULT_PANIC_MESSAGE_TEMPLATE",
    "Settings",
    "get_settings",
    "reset_settings_cache",
]

"""Exception taxonomy shared by the application and infrastructure layers."""

from __future__ import annotations


class MoodlogError(Exception):
    """Base class for errors raised by the session and event store."""

    retryable = False


class InvalidPayload(MoodlogError, ValueError):
    """The submitted event payload failed range or shape validation."""

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class InvalidSession(MoodlogError):
    """The session token is unknown, expired or idle for too long."""


class NotFound(MoodlogError):
    """A referenced record does not exist."""


class StorageError(MoodlogError):
    """The backing store failed; callers may retry with backoff."""

    retryable = True


class ChannelError(MoodlogError):
    """The notification channel could not deliver a message."""

    def __init__(self, message: str, *, transient: bool = True) -> None:
        super().__init__(message)
        self.transient = transient
        self.retryable = transient


__all__ = [
    "ChannelError",
    "InvalidPayload",
    "InvalidSession",
    "MoodlogError",
    "NotFound",
    "StorageError",
]

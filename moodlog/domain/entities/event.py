"""Domain entities for the per-user append-only event log."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class EventKind(str, Enum):
    """Kinds of records a user can append to their log."""

    CHECKIN = "checkin"
    PANIC = "panic"


@dataclass(frozen=True)
class Event:
    """An immutable entry of a user's event log."""

    uuid: str
    user_id: int
    sequence: int
    kind: EventKind
    payload: dict[str, Any]
    created_at: datetime
    marker: str

    @property
    def mood(self) -> int | None:
        return self.payload.get("mood")

    @property
    def intensity(self) -> int | None:
        return self.payload.get("intensity")

    @property
    def notes(self) -> str | None:
        return self.payload.get("notes")

    @property
    def extras(self) -> dict[str, Any]:
        return self.payload.get("extras") or {}


@dataclass(frozen=True)
class ChainHead:
    """The latest position of a user's chain."""

    user_id: int
    sequence: int
    marker: str


@dataclass
class ChainVerification:
    """Result of recomputing a user's chain from stored entries."""

    user_id: int
    valid: bool
    checked: int
    first_broken_sequence: int | None = None
    problems: list[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.valid


__all__ = ["ChainHead", "ChainVerification", "Event", "EventKind"]

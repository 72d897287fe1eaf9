"""Schemas for check-ins, panic events and chain verification."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from moodlog.domain.entities import EventKind, Severity


class CheckinCreate(BaseModel):
    """Range checks happen in the event log so errors name the offending field."""

    mood: Any = Field(..., description="Mood between -5 and 5")
    intensity: Any = Field(..., description="Intensity between 0 and 10")
    notes: str | None = None
    extras: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")


class PanicCreate(BaseModel):
    mood: Any = None
    intensity: Any = None
    notes: str | None = None
    extras: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")


class EventRead(BaseModel):
    uuid: str
    sequence: int
    kind: EventKind
    payload: dict[str, Any]
    created_at: datetime
    marker: str

    model_config = ConfigDict(from_attributes=True)


class AlertRead(BaseModel):
    severity: Severity
    message: str


class EventSubmissionResponse(BaseModel):
    event: EventRead
    alert: AlertRead | None = Field(
        default=None, description="Alert scheduled for delivery, when any"
    )


class ChainVerificationRead(BaseModel):
    user_id: int
    valid: bool
    checked: int
    first_broken_sequence: int | None = None
    problems: list[str] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)

"""Notification delivery schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from moodlog.domain.entities import DeliveryStatus, Severity


class DeliveryRead(BaseModel):
    id: int
    event_sequence: int
    severity: Severity
    status: DeliveryStatus
    attempts: int
    last_error: str | None
    message: str
    created_at: datetime | None
    updated_at: datetime | None
    delivered_at: datetime | None

    model_config = ConfigDict(from_attributes=True)

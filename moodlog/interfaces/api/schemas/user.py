"""User schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from moodlog.domain.entities import UserRole


class UserRead(BaseModel):
    id: int
    uuid: str
    username: str
    email: str
    role: UserRole
    created_at: datetime | None
    last_login_at: datetime | None

    model_config = ConfigDict(from_attributes=True)

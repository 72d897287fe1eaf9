"""Authentication related schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: str
    expires_at: datetime | None = None


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=256)


class SessionRead(BaseModel):
    user_id: int
    created_at: datetime
    last_seen_at: datetime
    expires_at: datetime | None = Field(
        default=None, description="Absolute expiry; idle expiry applies in any case"
    )

    model_config = ConfigDict(from_attributes=True)

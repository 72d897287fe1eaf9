"""SQLAlchemy model for the users table."""

from sqlalchemy import Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from moodlog.infrastructure.database import Base
from moodlog.utils import now_in_app_naive_datetime


class UserModel(Base):
    """Database representation of an account."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    uuid = Column(String(36), nullable=False, unique=True)
    username = Column(String(50), nullable=False, unique=True)
    email = Column(String(120), nullable=False, unique=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(10), nullable=False, default="user")
    created_at = Column(DateTime, nullable=False, default=now_in_app_naive_datetime)
    last_login_at = Column(DateTime, nullable=True)

    sessions = relationship(
        "SessionModel",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    settings = relationship(
        "UserSettingsModel",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


__all__ = ["UserModel"]

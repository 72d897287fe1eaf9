"""SQLAlchemy model for per-user alert preferences."""

from sqlalchemy import JSON, Boolean, Column, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from moodlog.infrastructure.database import Base


class UserSettingsModel(Base):
    """Database representation of the alerting preferences of a user."""

    __tablename__ = "user_settings"

    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )
    display_name = Column(String(80), nullable=False)
    alert_contacts = Column(JSON, nullable=False, default=list)
    notify_on_low_mood = Column(Boolean, nullable=False, default=True)
    low_mood_threshold = Column(Integer, nullable=True)

    user = relationship("UserModel", back_populates="settings")


__all__ = ["UserSettingsModel"]

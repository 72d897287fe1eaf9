"""SQLAlchemy model for server-side login sessions."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from moodlog.infrastructure.database import Base


class SessionModel(Base):
    """Database representation of an active session token."""

    __tablename__ = "sessions"

    id = Column(String(128), primary_key=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    created_at = Column(DateTime, nullable=False)
    last_seen_at = Column(DateTime, nullable=False)
    expires_at = Column(DateTime, nullable=True)

    user = relationship("UserModel", back_populates="sessions")


__all__ = ["SessionModel"]

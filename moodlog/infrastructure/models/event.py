"""SQLAlchemy model for the chained per-user event log."""

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)

from moodlog.infrastructure.database import Base


class EventModel(Base):
    """Database representation of an append-only log entry."""

    __tablename__ = "events"
    __table_args__ = (
        UniqueConstraint("user_id", "sequence", name="uq_events_user_sequence"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    uuid = Column(String(36), nullable=False, unique=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    sequence = Column(Integer, nullable=False)
    kind = Column(String(20), nullable=False)
    payload = Column(JSON, nullable=False, default=dict)
    marker = Column(String(64), nullable=False)
    created_at = Column(DateTime, nullable=False)


__all__ = ["EventModel"]

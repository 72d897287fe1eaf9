"""SQLAlchemy model for persisted alert delivery outcomes."""

from sqlalchemy import (
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from moodlog.infrastructure.database import Base
from moodlog.utils import now_in_app_naive_datetime


class NotificationDeliveryModel(Base):
    """One row per triggering event, tracking the retry state machine."""

    __tablename__ = "notification_deliveries"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "event_sequence", name="uq_notification_deliveries_event"
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    event_sequence = Column(Integer, nullable=False)
    severity = Column(String(20), nullable=False)
    message = Column(Text, nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    attempts = Column(Integer, nullable=False, default=0)
    last_error = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=now_in_app_naive_datetime)
    updated_at = Column(DateTime, nullable=False, default=now_in_app_naive_datetime)
    delivered_at = Column(DateTime, nullable=True)
    claimed_at = Column(DateTime, nullable=True)


__all__ = ["NotificationDeliveryModel"]

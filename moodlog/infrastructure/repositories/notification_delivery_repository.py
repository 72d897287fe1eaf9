"""Persistence helpers for alert delivery outcomes."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import and_, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from moodlog.domain.entities import (
    DeliveryOutcome,
    DeliveryStatus,
    NotificationIntent,
    Severity,
)
from moodlog.infrastructure.models import NotificationDeliveryModel
from moodlog.utils import ensure_app_naive_datetime, ensure_app_timezone


class NotificationDeliveryRepository:
    """Track the retry state machine of every :class:`NotificationIntent`."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: int, event_sequence: int) -> DeliveryOutcome | None:
        model = self._get_model(user_id, event_sequence)
        return self._to_entity(model) if model else None

    def create_pending(self, intent: NotificationIntent, now: datetime) -> DeliveryOutcome:
        """Insert a ``pending`` row for ``intent``.

        Raises :class:`sqlalchemy.exc.IntegrityError` when another worker
        inserted the row first; the session is rolled back in that case.
        """

        stamp = ensure_app_naive_datetime(now)
        model = NotificationDeliveryModel(
            user_id=intent.user_id,
            event_sequence=intent.event_sequence,
            severity=intent.severity.value,
            message=intent.message,
            status=DeliveryStatus.PENDING.value,
            attempts=0,
            created_at=stamp,
            updated_at=stamp,
        )
        self.session.add(model)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise
        self.session.refresh(model)
        return self._to_entity(model)

    def claim(
        self, user_id: int, event_sequence: int, *, now: datetime, stale_before: datetime
    ) -> bool:
        """Atomically take ownership of an undelivered row.

        A row can be claimed when nobody holds it or when the previous claim
        is older than ``stale_before``.
        """

        model = NotificationDeliveryModel
        claimed = (
            self.session.query(model)
            .filter(
                model.user_id == user_id,
                model.event_sequence == event_sequence,
                model.status != DeliveryStatus.DELIVERED.value,
                or_(
                    model.claimed_at.is_(None),
                    and_(
                        model.claimed_at.is_not(None),
                        model.claimed_at < ensure_app_naive_datetime(stale_before),
                    ),
                ),
            )
            .update(
                {model.claimed_at: ensure_app_naive_datetime(now)},
                synchronize_session=False,
            )
        )
        self.session.commit()
        return claimed == 1

    def record_retry(
        self, delivery_id: int, *, attempts: int, error: str, now: datetime
    ) -> None:
        self._update(
            delivery_id,
            status=DeliveryStatus.RETRYING,
            attempts=attempts,
            last_error=error,
            now=now,
            claimed_at=now,
        )

    def mark_failed(
        self, delivery_id: int, *, attempts: int, error: str, now: datetime
    ) -> None:
        self._update(
            delivery_id,
            status=DeliveryStatus.FAILED,
            attempts=attempts,
            last_error=error,
            now=now,
            claimed_at=None,
        )

    def mark_delivered(self, delivery_id: int, *, attempts: int, now: datetime) -> None:
        self._update(
            delivery_id,
            status=DeliveryStatus.DELIVERED,
            attempts=attempts,
            last_error=None,
            now=now,
            claimed_at=None,
            delivered_at=now,
        )

    def release(self, delivery_id: int) -> None:
        """Give up a claim without changing the delivery state."""

        self.session.query(NotificationDeliveryModel).filter(
            NotificationDeliveryModel.id == delivery_id
        ).update(
            {NotificationDeliveryModel.claimed_at: None}, synchronize_session=False
        )
        self.session.commit()

    def list_for_user(
        self, user_id: int, *, limit: int | None = 50
    ) -> Sequence[DeliveryOutcome]:
        query = (
            self.session.query(NotificationDeliveryModel)
            .filter(NotificationDeliveryModel.user_id == user_id)
            .order_by(NotificationDeliveryModel.event_sequence.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def _update(
        self,
        delivery_id: int,
        *,
        status: DeliveryStatus,
        attempts: int,
        last_error: str | None,
        now: datetime,
        claimed_at: datetime | None,
        delivered_at: datetime | None = None,
    ) -> None:
        values = {
            NotificationDeliveryModel.status: status.value,
            NotificationDeliveryModel.attempts: attempts,
            NotificationDeliveryModel.last_error: last_error,
            NotificationDeliveryModel.updated_at: ensure_app_naive_datetime(now),
            NotificationDeliveryModel.claimed_at: ensure_app_naive_datetime(claimed_at),
        }
        if delivered_at is not None:
            values[NotificationDeliveryModel.delivered_at] = ensure_app_naive_datetime(
                delivered_at
            )
        self.session.query(NotificationDeliveryModel).filter(
            NotificationDeliveryModel.id == delivery_id,
            NotificationDeliveryModel.status != DeliveryStatus.DELIVERED.value,
        ).update(values, synchronize_session=False)
        self.session.commit()

    def _get_model(
        self, user_id: int, event_sequence: int
    ) -> NotificationDeliveryModel | None:
        return (
            self.session.query(NotificationDeliveryModel)
            .filter(
                NotificationDeliveryModel.user_id == user_id,
                NotificationDeliveryModel.event_sequence == event_sequence,
            )
            .first()
        )

    @staticmethod
    def _to_entity(model: NotificationDeliveryModel) -> DeliveryOutcome:
        return DeliveryOutcome(
            id=model.id,
            user_id=model.user_id,
            event_sequence=model.event_sequence,
            severity=Severity(model.severity),
            message=model.message,
            status=DeliveryStatus(model.status),
            attempts=model.attempts or 0,
            last_error=model.last_error,
            created_at=ensure_app_timezone(model.created_at),
            updated_at=ensure_app_timezone(model.updated_at),
            delivered_at=ensure_app_timezone(model.delivered_at),
        )


__all__ = ["NotificationDeliveryRepository"]

"""Persistence layer for the chained event log."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from moodlog.domain.entities import ChainHead, Event, EventKind
from moodlog.infrastructure.models import EventModel
from moodlog.utils import ensure_app_naive_datetime, ensure_app_timezone


class EventRepository:
    """Insert-only access to :class:`Event` rows."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def head(self, user_id: int) -> ChainHead | None:
        """Return the newest sequence number and marker for ``user_id``."""

        row = (
            self.session.query(EventModel.sequence, EventModel.marker)
            .filter(EventModel.user_id == user_id)
            .order_by(EventModel.sequence.desc())
            .first()
        )
        if row is None:
            return None
        sequence, marker = row
        return ChainHead(user_id=user_id, sequence=sequence, marker=marker)

    def insert(self, event: Event) -> Event:
        """Persist ``event``; the unique ``(user_id, sequence)`` key guards races."""

        model = EventModel(
            uuid=event.uuid,
            user_id=event.user_id,
            sequence=event.sequence,
            kind=event.kind.value,
            payload=event.payload,
            marker=event.marker,
            created_at=ensure_app_naive_datetime(event.created_at),
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def list(
        self,
        user_id: int,
        *,
        since_seq: int | None = None,
        limit: int | None = None,
        kind: EventKind | None = None,
    ) -> Sequence[Event]:
        query = self.session.query(EventModel).filter(EventModel.user_id == user_id)
        if since_seq is not None:
            query = query.filter(EventModel.sequence > since_seq)
        if kind is not None:
            query = query.filter(EventModel.kind == kind.value)
        query = query.order_by(EventModel.sequence.asc())
        if limit is not None:
            query = query.limit(limit)
        return [self._to_entity(model) for model in query.all()]

    def latest(self, user_id: int, *, kind: EventKind | None = None) -> Event | None:
        query = self.session.query(EventModel).filter(EventModel.user_id == user_id)
        if kind is not None:
            query = query.filter(EventModel.kind == kind.value)
        model = query.order_by(EventModel.sequence.desc()).first()
        return self._to_entity(model) if model else None

    def count(self, user_id: int, *, kind: EventKind | None = None) -> int:
        query = self.session.query(func.count(EventModel.id)).filter(
            EventModel.user_id == user_id
        )
        if kind is not None:
            query = query.filter(EventModel.kind == kind.value)
        return int(query.scalar() or 0)

    def list_user_ids(self) -> list[int]:
        query = self.session.query(EventModel.user_id).distinct().order_by(
            EventModel.user_id
        )
        return [user_id for (user_id,) in query.all()]

    @staticmethod
    def _to_entity(model: EventModel) -> Event:
        return Event(
            uuid=model.uuid,
            user_id=model.user_id,
            sequence=model.sequence,
            kind=EventKind(model.kind),
            payload=dict(model.payload or {}),
            created_at=ensure_app_timezone(model.created_at),
            marker=model.marker,
        )


__all__ = ["EventRepository"]

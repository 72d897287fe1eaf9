"""Persistence layer for login sessions."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import and_, case, or_
from sqlalchemy.orm import Session as DbSession

from moodlog.domain.entities import Session
from moodlog.infrastructure.models import SessionModel
from moodlog.utils import ensure_app_naive_datetime, ensure_app_timezone


class SessionRepository:
    """Provide CRUD and expiry queries for :class:`Session` rows."""

    def __init__(self, session: DbSession) -> None:
        self.session = session

    def get(self, token: str) -> Session | None:
        model = self.session.get(SessionModel, token)
        return self._to_entity(model) if model else None

    def list_for_user(self, user_id: int) -> Sequence[Session]:
        query = (
            self.session.query(SessionModel)
            .filter(SessionModel.user_id == user_id)
            .order_by(SessionModel.created_at.desc())
        )
        return [self._to_entity(model) for model in query.all()]

    def create(self, entity: Session) -> Session:
        model = SessionModel(
            id=entity.id,
            user_id=entity.user_id,
            created_at=ensure_app_naive_datetime(entity.created_at),
            last_seen_at=ensure_app_naive_datetime(entity.last_seen_at),
            expires_at=ensure_app_naive_datetime(entity.expires_at),
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def touch(self, token: str, seen_at: datetime) -> bool:
        """Move ``last_seen_at`` forward to ``seen_at``; never backwards.

        Returns ``False`` when the row no longer exists.
        """

        stamp = ensure_app_naive_datetime(seen_at)
        matched = (
            self.session.query(SessionModel)
            .filter(SessionModel.id == token)
            .update(
                {
                    SessionModel.last_seen_at: case(
                        (SessionModel.last_seen_at < stamp, stamp),
                        else_=SessionModel.last_seen_at,
                    )
                },
                synchronize_session=False,
            )
        )
        self.session.commit()
        return matched > 0

    def delete(self, token: str) -> bool:
        deleted = (
            self.session.query(SessionModel)
            .filter(SessionModel.id == token)
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return deleted > 0

    def delete_for_user(self, user_id: int) -> int:
        deleted = (
            self.session.query(SessionModel)
            .filter(SessionModel.user_id == user_id)
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return deleted

    def delete_invalid(self, *, now: datetime, idle_cutoff: datetime) -> int:
        """Delete every session expired at ``now`` or idle since ``idle_cutoff``.

        The predicate is evaluated by the database row by row inside one
        statement.
        """

        naive_now = ensure_app_naive_datetime(now)
        naive_cutoff = ensure_app_naive_datetime(idle_cutoff)
        deleted = (
            self.session.query(SessionModel)
            .filter(
                or_(
                    and_(
                        SessionModel.expires_at.is_not(None),
                        SessionModel.expires_at <= naive_now,
                    ),
                    SessionModel.last_seen_at <= naive_cutoff,
                )
            )
            .delete(synchronize_session=False)
        )
        self.session.commit()
        return deleted

    @staticmethod
    def _to_entity(model: SessionModel) -> Session:
        return Session(
            id=model.id,
            user_id=model.user_id,
            created_at=ensure_app_timezone(model.created_at),
            last_seen_at=ensure_app_timezone(model.last_seen_at),
            expires_at=ensure_app_timezone(model.expires_at),
        )


__all__ = ["SessionRepository"]

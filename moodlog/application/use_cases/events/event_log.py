"""Append-only, per-user event log with content-derived chain markers."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime
from typing import Any
from uuid import uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, sessionmaker

from moodlog.config import Settings, get_settings
from moodlog.domain.entities import ChainHead, ChainVerification, Event, EventKind
from moodlog.domain.errors import NotFound, StorageError
from moodlog.infrastructure.database import session_scope
from moodlog.infrastructure.locks import KeyedLock
from moodlog.infrastructure.repositories import EventRepository, UserRepository
from moodlog.utils import ensure_app_naive_datetime, now_in_app_timezone

from .chain import GENESIS_MARKER, canonical_entry, compute_marker, verify_events
from .validators import validate_payload

logger = logging.getLogger(__name__)


class EventLog:
    """Durable, ordered history of check-ins and panic events per user.

    Appends for one user are serialized in-process through a keyed lock. The
    ``UNIQUE(user_id, sequence)`` constraint protects against writers in other
    processes: a collision is rolled back and the append retried.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session] | None = None,
        settings: Settings | None = None,
        *,
        locks: KeyedLock | None = None,
        clock: Callable[[], datetime] = now_in_app_timezone,
    ) -> None:
        self._session_factory = session_factory
        self._settings = settings or get_settings()
        self._locks = locks or KeyedLock()
        self._clock = clock

    def append(
        self, user_id: int, kind: EventKind | str, payload: Mapping[str, Any]
    ) -> Event:
        """Validate ``payload`` and store it as the next entry of the user's log.

        Raises :class:`InvalidPayload` before touching the database,
        :class:`NotFound` for unknown users and :class:`StorageError` when the
        store fails or keeps losing the sequence race.
        """

        normalized = validate_payload(kind, payload)
        kind = EventKind(kind)

        attempts = self._settings.event_append_max_retries
        with self._locks.hold(user_id):
            for attempt in range(1, attempts + 1):
                with session_scope(self._session_factory) as db:
                    if not UserRepository(db).exists(user_id):
                        raise NotFound(f"User {user_id} not found")
                    try:
                        event = self._append_once(db, user_id, kind, normalized)
                    except IntegrityError:
                        db.rollback()
                        logger.warning(
                            "Sequence collision appending to user %s (attempt %d/%d)",
                            user_id,
                            attempt,
                            attempts,
                        )
                        continue
                logger.info(
                    "Appended %s event %s for user %s",
                    event.kind.value,
                    event.sequence,
                    user_id,
                )
                return event

        raise StorageError(
            f"Could not append event for user {user_id} after {attempts} attempts"
        )

    def _append_once(
        self,
        db: Session,
        user_id: int,
        kind: EventKind,
        payload: dict[str, Any],
    ) -> Event:
        repository = EventRepository(db)
        head = repository.head(user_id)
        sequence = head.sequence + 1 if head else 1
        previous_marker = head.marker if head else GENESIS_MARKER
        # Hashed and stored at whole-second precision.
        created_at = ensure_app_naive_datetime(self._clock()).replace(microsecond=0)
        event_uuid = str(uuid4())
        marker = compute_marker(
            previous_marker,
            canonical_entry(
                uuid=event_uuid,
                user_id=user_id,
                sequence=sequence,
                kind=kind,
                payload=payload,
                created_at=created_at,
            ),
        )
        return repository.insert(
            Event(
                uuid=event_uuid,
                user_id=user_id,
                sequence=sequence,
                kind=kind,
                payload=payload,
                created_at=created_at,
                marker=marker,
            )
        )

    def list(
        self,
        user_id: int,
        since_seq: int | None = None,
        limit: int | None = None,
        *,
        kind: EventKind | None = None,
    ) -> Sequence[Event]:
        """Return entries after ``since_seq`` in increasing sequence order."""

        if limit is not None and limit <= 0:
            return []
        with session_scope(self._session_factory) as db:
            return EventRepository(db).list(
                user_id, since_seq=since_seq, limit=limit, kind=kind
            )

    def verify_chain(self, user_id: int) -> bool:
        """Return ``True`` when every stored marker of ``user_id`` recomputes."""

        return self.chain_report(user_id).valid

    def chain_report(self, user_id: int) -> ChainVerification:
        """Recompute every marker of ``user_id`` and describe the first break."""

        with session_scope(self._session_factory) as db:
            events = EventRepository(db).list(user_id)
        result = verify_events(user_id, events)
        if not result.valid:
            logger.warning(
                "Event chain of user %s is broken at sequence %s: %s",
                user_id,
                result.first_broken_sequence,
                "; ".join(result.problems),
            )
        return result

    def head(self, user_id: int) -> ChainHead | None:
        with session_scope(self._session_factory) as db:
            return EventRepository(db).head(user_id)

    def latest(self, user_id: int, *, kind: EventKind | None = None) -> Event | None:
        with session_scope(self._session_factory) as db:
            return EventRepository(db).latest(user_id, kind=kind)

    def count(self, user_id: int, *, kind: EventKind | None = None) -> int:
        with session_scope(self._session_factory) as db:
            return EventRepository(db).count(user_id, kind=kind)

    def user_ids(self) -> list[int]:
        """Return the users that own at least one entry."""

        with session_scope(self._session_factory) as db:
            return EventRepository(db).list_user_ids()


__all__ = ["EventLog"]

"""Server-side login sessions with idle and absolute expiry."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from sqlalchemy.orm import Session as DbSession
from sqlalchemy.orm import sessionmaker

from moodlog.config import Settings, get_settings
from moodlog.domain.entities import Session
from moodlog.domain.errors import InvalidSession, NotFound
from moodlog.infrastructure.database import session_scope
from moodlog.infrastructure.repositories import SessionRepository, UserRepository
from moodlog.infrastructure.security import generate_session_token
from moodlog.utils import now_in_app_timezone

logger = logging.getLogger(__name__)


class SessionManager:
    """Issue, validate and expire opaque session tokens."""

    def __init__(
        self,
        session_factory: sessionmaker[DbSession] | None = None,
        settings: Settings | None = None,
        *,
        clock: Callable[[], datetime] = now_in_app_timezone,
    ) -> None:
        self._session_factory = session_factory
        self._settings = settings or get_settings()
        self._clock = clock

    @property
    def idle_timeout(self) -> timedelta:
        return timedelta(minutes=self._settings.session_idle_timeout_minutes)

    @property
    def max_lifetime(self) -> timedelta | None:
        minutes = self._settings.session_max_lifetime_minutes
        return timedelta(minutes=minutes) if minutes else None

    def create(self, user_id: int) -> Session:
        """Start a new session for ``user_id``.

        Raises :class:`NotFound` when the user does not exist.
        """

        now = self._clock()
        lifetime = self.max_lifetime
        entity = Session(
            id=generate_session_token(self._settings.session_token_bytes),
            user_id=user_id,
            created_at=now,
            last_seen_at=now,
            expires_at=now + lifetime if lifetime else None,
        )
        with session_scope(self._session_factory) as db:
            if not UserRepository(db).exists(user_id):
                raise NotFound(f"User {user_id} not found")
            session = SessionRepository(db).create(entity)
        logger.info("Created session for user %s", user_id)
        return session

    def validate(self, token: str) -> Session:
        """Return the session behind ``token`` and record the activity.

        Raises :class:`InvalidSession` when the token is unknown, expired or
        idle. ``last_seen_at`` only ever moves forward, also when requests
        race each other.
        """

        if not token:
            raise InvalidSession("Missing session token")

        now = self._clock()
        with session_scope(self._session_factory) as db:
            repository = SessionRepository(db)
            session = repository.get(token)
            if session is None:
                raise InvalidSession("Unknown session")
            if not session.is_valid_at(now, self.idle_timeout):
                logger.debug("Session of user %s is no longer valid", session.user_id)
                raise InvalidSession("Session expired")
            if not repository.touch(token, now):
                # Removed by a concurrent sweep or logout.
                raise InvalidSession("Unknown session")

        if now > session.last_seen_at:
            session.last_seen_at = now
        return session

    def revoke(self, token: str) -> None:
        """Invalidate ``token``; unknown tokens are ignored."""

        with session_scope(self._session_factory) as db:
            removed = SessionRepository(db).delete(token)
        if removed:
            logger.info("Session revoked")

    def revoke_all(self, user_id: int) -> int:
        """Invalidate every session of ``user_id`` and return how many existed."""

        with session_scope(self._session_factory) as db:
            removed = SessionRepository(db).delete_for_user(user_id)
        logger.info("Revoked %d session(s) for user %s", removed, user_id)
        return removed

    def sweep_expired(self) -> int:
        """Delete every expired or idle session in a single statement."""

        now = self._clock()
        with session_scope(self._session_factory) as db:
            removed = SessionRepository(db).delete_invalid(
                now=now, idle_cutoff=now - self.idle_timeout
            )
        if removed:
            logger.info("Swept %d expired session(s)", removed)
        return removed


__all__ = ["SessionManager"]

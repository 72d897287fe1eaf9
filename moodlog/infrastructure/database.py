"""Database configuration and session management."""

from __future__ import annotations

import logging
from collections.abc import Generator, Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from moodlog.config import get_settings
from moodlog.domain.errors import StorageError


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""


settings = get_settings()

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    """Turn on ``ON DELETE CASCADE`` support for every SQLite connection."""

    cursor = dbapi_connection.cursor()
    try:
        cursor.execute("PRAGMA foreign_keys=ON")
    finally:
        cursor.close()


def build_engine(database_url: str) -> Engine:
    """Create an engine for ``database_url`` with the pragmas the store relies on."""

    connect_args: dict[str, object] = {}
    is_sqlite = database_url.startswith("sqlite")
    if is_sqlite:
        # Request handlers run on a thread pool; SQLite waits instead of failing
        # immediately when another writer holds the lock.
        connect_args = {"check_same_thread": False, "timeout": 30}

    new_engine = create_engine(
        database_url, pool_pre_ping=True, connect_args=connect_args
    )
    if is_sqlite:
        event.listen(new_engine, "connect", _enable_sqlite_foreign_keys)
    return new_engine


def build_session_factory(bind: Engine) -> sessionmaker[Session]:
    """Return the session factory used by repositories and services."""

    return sessionmaker(autocommit=False, autoflush=False, bind=bind)


engine = build_engine(settings.database_url)
SessionLocal = build_session_factory(engine)


def initialize_database(bind: Engine | None = None) -> None:
    """Ensure all ORM models have corresponding database tables."""

    from moodlog.infrastructure import models  # noqa: F401  # ensure models are imported

    target = bind or engine
    Base.metadata.create_all(bind=target, checkfirst=True)
    logger.debug("Database schema ensured on %s", target.url.render_as_string())


def get_db() -> Generator[Session, None, None]:
    """Yield a database session and close it afterwards."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope(
    session_factory: sessionmaker[Session] | None = None,
) -> Iterator[Session]:
    """Open a session, roll back on database faults and always close it.

    :class:`~sqlalchemy.exc.SQLAlchemyError` is re-raised as
    :class:`~moodlog.domain.errors.StorageError` so callers only deal with the
    domain taxonomy.
    """

    db = (session_factory or SessionLocal)()
    try:
        yield db
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Database operation failed")
        raise StorageError(str(exc)) from exc
    finally:
        db.close()

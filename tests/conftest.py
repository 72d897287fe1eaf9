"""Shared fixtures: a throwaway SQLite database, a fake clock and a fake channel."""

from __future__ import annotations

import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

TEST_DB_PATH = Path(tempfile.mkdtemp(prefix="moodlog-tests-")) / "test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ.setdefault("APP_TIMEZONE", "UTC")
os.environ.pop("SENDGRID_API_KEY", None)
os.environ.pop("SENDGRID_SENDER", None)

from moodlog.config import get_settings  # noqa: E402
from moodlog.domain.errors import ChannelError  # noqa: E402
from moodlog.infrastructure import database  # noqa: E402

# Cheap hashes keep the suite fast; verification works the same way.
from moodlog.infrastructure.security import pwd_context  # noqa: E402

pwd_context.update(pbkdf2_sha256__rounds=1_000)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FakeChannel:
    """Record every send; ``failures`` are raised in order before succeeding."""

    def __init__(self, failures: list[ChannelError] | None = None) -> None:
        self.failures = list(failures or [])
        self.sent: list[tuple[int, str, bool]] = []
        self.calls = 0

    def send(self, recipient, message: str, *, critical: bool = False) -> None:
        self.calls += 1
        if self.failures:
            raise self.failures.pop(0)
        self.sent.append((recipient.user_id, message, critical))


@pytest.fixture(autouse=True)
def clean_database():
    """Recreate every table before each test."""

    database.Base.metadata.drop_all(bind=database.engine)
    database.initialize_database()
    yield
    database.engine.dispose()


@pytest.fixture()
def session_factory():
    return database.SessionLocal


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def settings():
    return get_settings().model_copy(
        update={
            "notification_backoff_base_seconds": 0.5,
            "notification_backoff_factor": 2.0,
            "notification_backoff_max_seconds": 30.0,
            "notification_max_attempts": 5,
        }
    )


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def channel():
    return FakeChannel()


@pytest.fixture()
def make_user(db):
    """Create users through the registration use case."""

    from moodlog.application.use_cases.users import register_user

    counter = {"value": 0}

    def _make_user(username: str | None = None, **kwargs):
        counter["value"] += 1
        name = username or f"user{counter['value']}"
        return register_user(
            db,
            username=name,
            email=kwargs.pop("email", f"{name}@example.com"),
            password=kwargs.pop("password", "supersecret1"),
            **kwargs,
        )

    return _make_user


@pytest.fixture()
def make_channel():
    return FakeChannel

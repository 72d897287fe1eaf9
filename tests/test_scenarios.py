"""End-to-end flows through the use cases without the HTTP layer."""

from __future__ import annotations

import pytest

from moodlog.application.use_cases.events import EventLog, submit_event
from moodlog.application.use_cases.notifications import NotificationDispatcher
from moodlog.application.use_cases.sessions import SessionManager
from moodlog.application.use_cases.users import (
    AuthenticationStatus,
    authenticate_user,
    register_user,
    update_user_settings,
)
from moodlog.domain.entities import DeliveryStatus, EventKind, Severity
from moodlog.infrastructure.repositories import NotificationDeliveryRepository


@pytest.fixture()
def services(session_factory, settings, clock, channel):
    return {
        "sessions": SessionManager(session_factory, settings, clock=clock),
        "events": EventLog(session_factory, settings, clock=clock),
        "dispatcher": NotificationDispatcher(
            session_factory, channel, settings, clock=clock, sleep=lambda _: None
        ),
    }


@pytest.fixture()
def cutie(db):
    return register_user(
        db, username="cutie", email="cutie@example.com", password="supersecret1"
    )


def test_registration_and_login(db, services, cutie):
    user, status = authenticate_user(db, "cutie", "supersecret1")
    assert status is AuthenticationStatus.SUCCESS
    assert user.id == cutie.id

    by_email, status = authenticate_user(db, "Cutie@Example.com", "supersecret1")
    assert status is AuthenticationStatus.SUCCESS
    assert by_email.id == cutie.id

    _, status = authenticate_user(db, "cutie", "wrong-password")
    assert status is AuthenticationStatus.INVALID_CREDENTIALS

    session = services["sessions"].create(user.id)
    assert services["sessions"].validate(session.id).user_id == cutie.id


def test_registration_rejects_duplicates_and_weak_passwords(db, cutie):
    with pytest.raises(ValueError):
        register_user(db, username="cutie", email="other@example.com", password="supersecret1")
    with pytest.raises(ValueError):
        register_user(db, username="other", email="cutie@example.com", password="supersecret1")
    with pytest.raises(ValueError):
        register_user(db, username="shorty", email="shorty@example.com", password="short")


def test_registration_race_is_reported_as_duplicate(db, cutie, monkeypatch):
    from moodlog.infrastructure.repositories import UserRepository

    # A concurrent registration committed between the lookups and the insert.
    monkeypatch.setattr(UserRepository, "get_by_username", lambda self, username: None)
    monkeypatch.setattr(UserRepository, "get_by_email", lambda self, email: None)

    with pytest.raises(ValueError, match="already registered"):
        register_user(db, username="cutie", email="cutie@example.com", password="supersecret1")

    monkeypatch.undo()
    assert register_user(
        db, username="second", email="second@example.com", password="supersecret1"
    ).id != cutie.id


def test_pleasant_checkin_is_stored_without_alert(db, services, cutie, channel):
    event, intent = submit_event(
        db,
        services["events"],
        cutie.id,
        EventKind.CHECKIN,
        {"mood": 2, "intensity": 3, "notes": "Feeling cozy"},
    )

    assert intent is None
    assert event.sequence == 1
    stored = services["events"].list(cutie.id)
    assert [(e.mood, e.intensity, e.notes) for e in stored] == [(2, 3, "Feeling cozy")]
    assert channel.calls == 0


def test_panic_produces_exactly_one_delivered_alert(db, services, cutie, channel):
    update_user_settings(
        db, cutie.id, display_name="Cutie", alert_contacts=["friend@example.com"]
    )

    event, intent = submit_event(db, services["events"], cutie.id, EventKind.PANIC, {})

    assert intent.severity is Severity.CRITICAL
    assert intent.key == (cutie.id, event.sequence)
    assert "Cutie" in intent.message

    dispatcher = services["dispatcher"]
    outcome = dispatcher.dispatch(intent)
    dispatcher.dispatch(intent)

    assert outcome.status is DeliveryStatus.DELIVERED
    assert len(channel.sent) == 1
    deliveries = NotificationDeliveryRepository(db).list_for_user(cutie.id)
    assert [(d.event_sequence, d.status) for d in deliveries] == [
        (event.sequence, DeliveryStatus.DELIVERED)
    ]


def test_user_threshold_override_changes_outcome(db, services, cutie):
    update_user_settings(db, cutie.id, low_mood_threshold=1)

    _, intent = submit_event(
        db, services["events"], cutie.id, EventKind.CHECKIN, {"mood": 1, "intensity": 4}
    )
    assert intent.severity is Severity.WARNING

    update_user_settings(db, cutie.id, notify_on_low_mood=False, low_mood_threshold=None)
    _, intent = submit_event(
        db, services["events"], cutie.id, EventKind.CHECKIN, {"mood": -5, "intensity": 4}
    )
    assert intent is None


def test_settings_validation(db, cutie):
    with pytest.raises(ValueError):
        update_user_settings(db, cutie.id, display_name="   ")
    with pytest.raises(ValueError):
        update_user_settings(db, cutie.id, alert_contacts=["not-an-email"])
    with pytest.raises(ValueError):
        update_user_settings(db, cutie.id, low_mood_threshold=9)

    updated = update_user_settings(
        db, cutie.id, alert_contacts=[" Friend@Example.com ", "friend@example.com"]
    )
    assert updated.contacts() == ["friend@example.com"]

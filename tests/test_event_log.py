"""Tests for the append-only event log."""

from __future__ import annotations

import threading
from datetime import datetime, timezone

import pytest
from sqlalchemy import text

from moodlog.application.use_cases.events import EventLog
from moodlog.domain.entities import EventKind
from moodlog.domain.errors import InvalidPayload, NotFound
from moodlog.infrastructure.locks import KeyedLock


@pytest.fixture()
def event_log(session_factory, settings, clock):
    return EventLog(session_factory, settings, clock=clock)


def test_append_and_list_round_trip(event_log, make_user, clock):
    user = make_user("cutie")
    started_at = clock.now

    first = event_log.append(
        user.id, EventKind.CHECKIN, {"mood": 2, "intensity": 3, "notes": "Feeling cozy"}
    )
    clock.advance(minutes=5)
    second = event_log.append(user.id, "checkin", {"mood": -1, "intensity": 0})

    assert (first.sequence, second.sequence) == (1, 2)
    events = event_log.list(user.id)
    assert [event.sequence for event in events] == [1, 2]
    assert events[0].mood == 2
    assert events[0].intensity == 3
    assert events[0].notes == "Feeling cozy"
    assert events[0].created_at == started_at
    assert events[1].created_at == clock.now
    assert events[1].marker == second.marker
    assert event_log.head(user.id).sequence == 2


@pytest.mark.parametrize(
    ("payload", "field"),
    [
        ({"mood": 6, "intensity": 3}, "mood"),
        ({"mood": -6, "intensity": 3}, "mood"),
        ({"mood": 1, "intensity": 11}, "intensity"),
        ({"mood": 1, "intensity": -1}, "intensity"),
        ({"mood": "2", "intensity": 3}, "mood"),
        ({"mood": True, "intensity": 3}, "mood"),
        ({"intensity": 3}, "mood"),
        ({"mood": 1, "intensity": 3, "colour": "blue"}, "colour"),
        ({"mood": 1, "intensity": 3, "extras": ["a"]}, "extras"),
        ({"mood": 1, "intensity": 3, "extras": {"at": datetime(2026, 1, 1)}}, "extras"),
        ({"mood": 1, "intensity": 3, "extras": {1: "a", "b": 2}}, "extras"),
        ({"mood": 1, "intensity": 3, "extras": {"nested": {1: "a", "b": 2}}}, "extras"),
        ({"mood": 1, "intensity": 3, "extras": {"ratio": float("nan")}}, "extras"),
    ],
)
def test_invalid_payload_is_rejected_without_write(event_log, make_user, payload, field):
    user = make_user()

    with pytest.raises(InvalidPayload) as excinfo:
        event_log.append(user.id, EventKind.CHECKIN, payload)

    assert excinfo.value.field == field
    assert event_log.count(user.id) == 0
    assert event_log.head(user.id) is None


def test_panic_accepts_missing_mood(event_log, make_user):
    user = make_user()

    event = event_log.append(user.id, EventKind.PANIC, {})

    assert event.kind is EventKind.PANIC
    assert event.mood is None
    assert event.payload == {"mood": None, "intensity": None, "notes": None, "extras": {}}


def test_list_resumes_after_sequence_and_honours_limit(event_log, make_user):
    user = make_user()
    for mood in range(-2, 3):
        event_log.append(user.id, EventKind.CHECKIN, {"mood": mood, "intensity": 1})

    assert [e.sequence for e in event_log.list(user.id, since_seq=3)] == [4, 5]
    assert [e.sequence for e in event_log.list(user.id, limit=2)] == [1, 2]
    assert [e.sequence for e in event_log.list(user.id, since_seq=1, limit=2)] == [2, 3]
    assert event_log.list(user.id, since_seq=5) == []


def test_logs_are_independent_per_user(event_log, make_user):
    alice = make_user("alice")
    bob = make_user("bob")

    event_log.append(alice.id, EventKind.CHECKIN, {"mood": 0, "intensity": 0})
    event_log.append(bob.id, EventKind.CHECKIN, {"mood": 0, "intensity": 0})
    event_log.append(alice.id, EventKind.PANIC, {})

    assert [e.sequence for e in event_log.list(alice.id)] == [1, 2]
    assert [e.sequence for e in event_log.list(bob.id)] == [1]
    assert event_log.count(alice.id, kind=EventKind.PANIC) == 1
    assert event_log.latest(alice.id, kind=EventKind.CHECKIN).sequence == 1
    assert sorted(event_log.user_ids()) == sorted([alice.id, bob.id])


def test_append_for_unknown_user_raises(event_log):
    with pytest.raises(NotFound):
        event_log.append(999, EventKind.CHECKIN, {"mood": 0, "intensity": 0})


def test_parallel_appends_produce_unbroken_sequence(event_log, make_user):
    user = make_user()
    errors: list[BaseException] = []

    def worker(mood: int) -> None:
        try:
            event_log.append(user.id, EventKind.CHECKIN, {"mood": mood, "intensity": 5})
        except BaseException as exc:  # pragma: no cover - surfaced below
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(i % 5,)) for i in range(16)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert [e.sequence for e in event_log.list(user.id)] == list(range(1, 17))
    assert event_log.verify_chain(user.id)


def test_independent_writers_recover_from_sequence_collisions(
    session_factory, settings, make_user
):
    """Writers that do not share a lock still produce one gap-free chain."""

    user = make_user()
    tuned = settings.model_copy(update={"event_append_max_retries": 50})
    logs = [EventLog(session_factory, tuned, locks=KeyedLock()) for _ in range(2)]
    errors: list[BaseException] = []

    def worker(log: EventLog) -> None:
        try:
            for _ in range(4):
                log.append(user.id, EventKind.CHECKIN, {"mood": 1, "intensity": 1})
        except BaseException as exc:  # pragma: no cover - surfaced below
            errors.append(exc)

    threads = [threading.Thread(target=worker, args=(log,)) for log in logs]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert errors == []
    assert [e.sequence for e in logs[0].list(user.id)] == list(range(1, 9))
    assert logs[0].verify_chain(user.id)


def test_verify_chain_detects_out_of_band_edit(event_log, make_user, db):
    user = make_user()
    for mood in (1, 2, 3):
        event_log.append(user.id, EventKind.CHECKIN, {"mood": mood, "intensity": 2})
    assert event_log.verify_chain(user.id) is True
    assert event_log.chain_report(user.id).checked == 3

    db.execute(
        text(
            "UPDATE events SET payload = :payload "
            "WHERE user_id = :user_id AND sequence = 2"
        ),
        {
            "payload": '{"mood": -5, "intensity": 2, "notes": null, "extras": {}}',
            "user_id": user.id,
        },
    )
    db.commit()

    assert event_log.verify_chain(user.id) is False
    result = event_log.chain_report(user.id)
    assert not result.valid
    assert result.first_broken_sequence == 2


def test_verify_chain_detects_deleted_entry(event_log, make_user, db):
    user = make_user()
    for mood in (1, 2, 3):
        event_log.append(user.id, EventKind.CHECKIN, {"mood": mood, "intensity": 2})

    db.execute(
        text("DELETE FROM events WHERE user_id = :user_id AND sequence = 2"),
        {"user_id": user.id},
    )
    db.commit()

    assert event_log.verify_chain(user.id) is False
    result = event_log.chain_report(user.id)
    assert not result.valid
    assert result.first_broken_sequence == 3


def test_created_at_is_stored_in_whole_seconds(session_factory, settings, make_user):
    user = make_user()
    event_log = EventLog(
        session_factory,
        settings,
        clock=lambda: datetime(2026, 3, 1, 9, 30, 0, 123456, tzinfo=timezone.utc),
    )

    appended = event_log.append(user.id, EventKind.CHECKIN, {"mood": 0, "intensity": 1})
    stored = event_log.latest(user.id)

    assert appended.created_at.microsecond == 0
    assert stored.created_at == appended.created_at
    assert stored.created_at == datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)
    assert event_log.verify_chain(user.id) is True

"""Use case that stores an event and decides whether it needs an alert."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from moodlog.application.use_cases.notifications import (
    evaluate,
    load_policy,
    load_recipient,
)
from moodlog.config import Settings, get_settings
from moodlog.domain.entities import Event, EventKind, NotificationIntent
from moodlog.domain.errors import MoodlogError

from .event_log import EventLog

alerts_logger = logging.getLogger("moodlog.alerts")


def submit_event(
    session: Session,
    event_log: EventLog,
    user_id: int,
    kind: EventKind | str,
    payload: Mapping[str, Any],
    *,
    settings: Settings | None = None,
    on_evaluation_error: Callable[[Event], None] | None = None,
) -> tuple[Event, NotificationIntent | None]:
    """Append the event and evaluate it against the user's alert policy.

    Dispatching the returned intent is left to the caller so that a delivery
    failure never affects the stored event. Once the append succeeded the
    event stands: a fault while evaluating it is logged, ``None`` is returned
    as the intent and ``on_evaluation_error`` is called with the stored event
    so the caller can re-derive the alert later.
    """

    event = event_log.append(user_id, kind, payload)

    try:
        intent = _evaluate(session, event_log, event, settings or get_settings())
    except (MoodlogError, SQLAlchemyError):
        session.rollback()
        alerts_logger.exception(
            "Could not evaluate %s event %s of user %s; alert deferred",
            event.kind.value,
            event.sequence,
            user_id,
        )
        if on_evaluation_error is not None:
            on_evaluation_error(event)
        return event, None
    return event, intent


def _evaluate(
    session: Session, event_log: EventLog, event: Event, settings: Settings
) -> NotificationIntent | None:
    last_checkin = None
    if event.kind is EventKind.PANIC and event.mood is None:
        last_checkin = event_log.latest(event.user_id, kind=EventKind.CHECKIN)

    recipient = load_recipient(session, event.user_id)
    policy = load_policy(session, event.user_id, settings)
    recipient_name = recipient.display_name if recipient else None
    return evaluate(event, policy, recipient_name, last_checkin=last_checkin)


__all__ = ["submit_event"]

"""Routes for submitting and reading check-ins and panic events."""

import logging
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.orm import Session as DbSession

from moodlog.application.use_cases.events import EventLog, submit_event
from moodlog.application.use_cases.notifications import NotificationDispatcher
from moodlog.domain.entities import Event, EventKind, NotificationIntent, User
from moodlog.domain.errors import MoodlogError
from moodlog.infrastructure.database import get_db
from moodlog.interfaces.api.dependencies import (
    get_current_user,
    get_event_log,
    get_notification_dispatcher,
)
from moodlog.interfaces.api.routes_helpers import http_error_for
from moodlog.interfaces.api.schemas import (
    AlertRead,
    ChainVerificationRead,
    CheckinCreate,
    EventRead,
    EventSubmissionResponse,
    PanicCreate,
)

router = APIRouter(prefix="/events", tags=["events"])
logger = logging.getLogger(__name__)


def _dispatch_in_background(
    dispatcher: NotificationDispatcher, intent: NotificationIntent
) -> None:
    try:
        dispatcher.dispatch(intent)
    except Exception:
        logger.exception("Dispatching alert for intent %s failed", intent.key)


def _resume_in_background(dispatcher: NotificationDispatcher, user_id: int) -> None:
    try:
        dispatcher.resume(user_id)
    except Exception:
        logger.exception("Resuming alerts for user %s failed", user_id)


def _submit(
    *,
    kind: EventKind,
    payload: dict[str, Any],
    user: User,
    db: DbSession,
    event_log: EventLog,
    dispatcher: NotificationDispatcher,
    background_tasks: BackgroundTasks,
) -> EventSubmissionResponse:
    def defer_alert(event: Event) -> None:
        background_tasks.add_task(_resume_in_background, dispatcher, event.user_id)

    try:
        event, intent = submit_event(
            db, event_log, user.id, kind, payload, on_evaluation_error=defer_alert
        )
    except MoodlogError as exc:
        raise http_error_for(exc) from exc

    alert = None
    if intent is not None:
        background_tasks.add_task(_dispatch_in_background, dispatcher, intent)
        alert = AlertRead(severity=intent.severity, message=intent.message)
    return EventSubmissionResponse(event=EventRead.model_validate(event), alert=alert)


@router.post(
    "/checkins",
    response_model=EventSubmissionResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_checkin(
    payload: CheckinCreate,
    background_tasks: BackgroundTasks,
    db: DbSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    event_log: EventLog = Depends(get_event_log),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """Store a mood check-in and alert contacts when the mood is low."""

    return _submit(
        kind=EventKind.CHECKIN,
        payload=payload.model_dump(),
        user=current_user,
        db=db,
        event_log=event_log,
        dispatcher=dispatcher,
        background_tasks=background_tasks,
    )


@router.post(
    "/panic",
    response_model=EventSubmissionResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_panic(
    background_tasks: BackgroundTasks,
    payload: PanicCreate | None = None,
    db: DbSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
    event_log: EventLog = Depends(get_event_log),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """Record an "I need help" event; contacts are always alerted."""

    return _submit(
        kind=EventKind.PANIC,
        payload=(payload or PanicCreate()).model_dump(),
        user=current_user,
        db=db,
        event_log=event_log,
        dispatcher=dispatcher,
        background_tasks=background_tasks,
    )


@router.get("", response_model=list[EventRead])
def list_events(
    since_seq: int | None = Query(default=None, ge=0),
    limit: int = Query(default=100, ge=1, le=1000),
    current_user: User = Depends(get_current_user),
    event_log: EventLog = Depends(get_event_log),
):
    """Return the caller's events after ``since_seq`` in sequence order."""

    try:
        events = event_log.list(current_user.id, since_seq=since_seq, limit=limit)
    except MoodlogError as exc:
        raise http_error_for(exc) from exc
    return [EventRead.model_validate(event) for event in events]


@router.get("/verify", response_model=ChainVerificationRead)
def verify_events(
    current_user: User = Depends(get_current_user),
    event_log: EventLog = Depends(get_event_log),
):
    try:
        result = event_log.chain_report(current_user.id)
    except MoodlogError as exc:
        raise http_error_for(exc) from exc
    return ChainVerificationRead.model_validate(result)

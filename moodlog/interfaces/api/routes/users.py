"""Routes for the current user, alert preferences and administration."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session as DbSession

from moodlog.application.use_cases.events import EventLog
from moodlog.application.use_cases.notifications import NotificationDispatcher
from moodlog.application.use_cases.users import (
    delete_user as delete_user_uc,
    get_user_settings,
    update_user_settings,
)
from moodlog.domain.entities import User
from moodlog.domain.errors import MoodlogError
from moodlog.infrastructure.database import get_db
from moodlog.interfaces.api.dependencies import (
    get_current_user,
    get_event_log,
    get_notification_dispatcher,
    require_admin,
)
from moodlog.interfaces.api.routes_helpers import http_error_for
from moodlog.interfaces.api.schemas import (
    ChainVerificationRead,
    AlertTestRead,
    UserRead,
    UserSettingsRead,
    UserSettingsUpdate,
)

router = APIRouter(prefix="/users", tags=["users"])
logger = logging.getLogger(__name__)


@router.get("/me", response_model=UserRead)
def read_current_user(current_user: User = Depends(get_current_user)):
    return UserRead.model_validate(current_user)


@router.get("/me/settings", response_model=UserSettingsRead)
def read_settings(
    current_user: User = Depends(get_current_user),
    db: DbSession = Depends(get_db),
):
    try:
        settings = get_user_settings(db, current_user.id)
    except MoodlogError as exc:
        raise http_error_for(exc) from exc
    return UserSettingsRead.model_validate(settings)


@router.put("/me/settings", response_model=UserSettingsRead)
def replace_settings(
    payload: UserSettingsUpdate,
    current_user: User = Depends(get_current_user),
    db: DbSession = Depends(get_db),
):
    """Update alert preferences; omitted fields keep their value."""

    changes = payload.model_dump(exclude_unset=True)
    if "alert_contacts" in changes and changes["alert_contacts"] is not None:
        changes["alert_contacts"] = [str(contact) for contact in changes["alert_contacts"]]
    try:
        settings = update_user_settings(db, current_user.id, **changes)
    except MoodlogError as exc:
        raise http_error_for(exc) from exc
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    return UserSettingsRead.model_validate(settings)


@router.post("/me/settings/test-alert", response_model=AlertTestRead)
def send_test_alert(
    current_user: User = Depends(get_current_user),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher),
):
    """Send a test message to the configured alert contacts right away."""

    try:
        recipient, message = dispatcher.send_test_alert(current_user.id)
    except MoodlogError as exc:
        logger.warning("Test alert for user %s failed: %s", current_user.id, exc)
        raise http_error_for(exc) from exc
    return AlertTestRead(message=message, contacts=list(recipient.contacts))


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    db: DbSession = Depends(get_db),
    current_user: User = Depends(require_admin),
) -> Response:
    """Delete a user together with their sessions and history."""

    if user_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Administrators cannot delete their own account",
        )
    try:
        delete_user_uc(db, user_id)
    except MoodlogError as exc:
        raise http_error_for(exc) from exc
    logger.info("User %s deleted by administrator %s", user_id, current_user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{user_id}/events/verify", response_model=ChainVerificationRead)
def verify_user_chain(
    user_id: int,
    _: User = Depends(require_admin),
    event_log: EventLog = Depends(get_event_log),
):
    try:
        result = event_log.chain_report(user_id)
    except MoodlogError as exc:
        raise http_error_for(exc) from exc
    return ChainVerificationRead.model_validate(result)

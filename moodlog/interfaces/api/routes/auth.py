"""Endpoints for registration, login and session handling."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session as DbSession

from moodlog.application.use_cases.sessions import SessionManager
from moodlog.application.use_cases.users import (
    AuthenticationStatus,
    authenticate_user,
    record_login,
    register_user,
)
from moodlog.config import get_settings
from moodlog.domain.entities import Session
from moodlog.domain.errors import MoodlogError
from moodlog.infrastructure.database import get_db
from moodlog.interfaces.api.dependencies import (
    get_current_session,
    get_session_manager,
)
from moodlog.interfaces.api.routes_helpers import http_error_for
from moodlog.interfaces.api.schemas import RegisterRequest, SessionRead, Token, UserRead

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: DbSession = Depends(get_db)):
    """Create a regular account."""

    try:
        user = register_user(
            db,
            username=payload.username,
            email=payload.email,
            password=payload.password,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    logger.info("Registered user %s", user.id)
    return UserRead.model_validate(user)


# The form signature is dictated by OAuth2PasswordRequestForm.
@router.post("/token", response_model=Token)
def login(
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: DbSession = Depends(get_db),
    manager: SessionManager = Depends(get_session_manager),
):
    """Authenticate by username or email and open a session."""

    user, auth_status = authenticate_user(db, form_data.username, form_data.password)
    if auth_status is AuthenticationStatus.INVALID_CREDENTIALS:
        logger.info("Rejected login attempt for %s", form_data.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        session = manager.create(user.id)
    except MoodlogError as exc:
        raise http_error_for(exc) from exc
    record_login(db, user.id)

    settings = get_settings()
    response.set_cookie(
        key=settings.session_cookie_name,
        value=session.id,
        httponly=True,
        samesite="lax",
        max_age=(
            settings.session_max_lifetime_minutes * 60
            if settings.session_max_lifetime_minutes
            else None
        ),
    )
    return Token(
        access_token=session.id,
        role=user.role.value,
        expires_at=session.expires_at,
    )


@router.get("/session", response_model=SessionRead)
def read_session(session: Session = Depends(get_current_session)):
    """Return the caller's session; also extends its idle window."""

    return SessionRead.model_validate(session)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    request: Request,
    session: Session = Depends(get_current_session),
    manager: SessionManager = Depends(get_session_manager),
) -> Response:
    try:
        manager.revoke(request.state.session_token)
    except MoodlogError as exc:
        raise http_error_for(exc) from exc
    logger.info("User %s logged out", session.user_id)

    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(get_settings().session_cookie_name)
    return response


@router.post("/logout-all", status_code=status.HTTP_204_NO_CONTENT)
def logout_everywhere(
    session: Session = Depends(get_current_session),
    manager: SessionManager = Depends(get_session_manager),
) -> Response:
    """Revoke every session of the caller, including the current one."""

    try:
        removed = manager.revoke_all(session.user_id)
    except MoodlogError as exc:
        raise http_error_for(exc) from exc
    logger.info("User %s logged out of %d session(s)", session.user_id, removed)

    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(get_settings().session_cookie_name)
    return response

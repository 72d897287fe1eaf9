"""FastAPI dependency utilities."""

from functools import lru_cache

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session as DbSession

from moodlog.application.use_cases.events import EventLog
from moodlog.application.use_cases.notifications import NotificationDispatcher
from moodlog.application.use_cases.sessions import SessionManager
from moodlog.application.use_cases.users import get_user
from moodlog.config import get_settings
from moodlog.domain.entities import Session, User
from moodlog.domain.errors import InvalidSession, NotFound, StorageError
from moodlog.infrastructure.database import SessionLocal, get_db
from moodlog.infrastructure.notifications import notification_publisher

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/token", auto_error=False)


@lru_cache
def get_session_manager() -> SessionManager:
    return SessionManager(SessionLocal, get_settings())


@lru_cache
def get_event_log() -> EventLog:
    return EventLog(SessionLocal, get_settings())


@lru_cache
def get_notification_dispatcher() -> NotificationDispatcher:
    """Return the dispatcher that pushes outcomes to websocket subscribers."""

    return NotificationDispatcher(
        SessionLocal,
        settings=get_settings(),
        on_outcome=notification_publisher,
    )


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def extract_session_token(request: Request, token: str | None) -> str | None:
    """Return the bearer token or, failing that, the session cookie."""

    if token:
        return token
    return request.cookies.get(get_settings().session_cookie_name)


def get_current_session(
    request: Request,
    token: str | None = Depends(oauth2_scheme),
    manager: SessionManager = Depends(get_session_manager),
) -> Session:
    """Validate the caller's session and record the activity."""

    session_token = extract_session_token(request, token)
    if not session_token:
        raise _unauthorized("Not authenticated")
    try:
        session = manager.validate(session_token)
    except InvalidSession as exc:
        raise _unauthorized(str(exc)) from exc
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Session store unavailable",
        ) from exc
    request.state.session_token = session_token
    return session


def get_current_user(
    session: Session = Depends(get_current_session),
    db: DbSession = Depends(get_db),
) -> User:
    """Return the user owning the validated session."""

    try:
        return get_user(db, session.user_id)
    except NotFound as exc:
        raise _unauthorized("User not found") from exc


def require_admin(current_user: User = Depends(get_current_user)) -> User:
    """Ensure the authenticated user has administrator privileges."""

    if not current_user.is_admin():
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized",
        )
    return current_user


def reset_service_cache() -> None:
    """Drop the cached services so they pick up new settings."""

    get_session_manager.cache_clear()
    get_event_log.cache_clear()
    get_notification_dispatcher.cache_clear()

"""Use case for registering users."""

from uuid import uuid4

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from moodlog.config import get_settings
from moodlog.domain.entities import User, UserRole, UserSettings
from moodlog.infrastructure.repositories import UserRepository, UserSettingsRepository
from moodlog.infrastructure.security import get_password_hash
from moodlog.utils import now_in_app_timezone

from .validators import ensure_password_strength, normalize_email, normalize_username


def register_user(
    session: Session,
    *,
    username: str,
    email: str,
    password: str,
    role: UserRole = UserRole.USER,
) -> User:
    """Create a new account with unique username and email.

    A default :class:`UserSettings` row is created alongside so alerts can
    be configured right away.
    """

    username = normalize_username(username)
    email = normalize_email(email)
    ensure_password_strength(password, get_settings().password_min_length)

    repository = UserRepository(session)
    if repository.get_by_username(username):
        raise ValueError("Username is already taken")
    if repository.get_by_email(email):
        raise ValueError("Email address is already registered")

    try:
        user = repository.create(
            User(
                id=None,
                uuid=str(uuid4()),
                username=username,
                email=email,
                password_hash=get_password_hash(password),
                role=role,
                created_at=now_in_app_timezone(),
            )
        )
    except IntegrityError as exc:
        # Lost a race against a concurrent registration.
        session.rollback()
        raise ValueError("Username or email address is already registered") from exc
    UserSettingsRepository(session).save(
        UserSettings(user_id=user.id, display_name=user.username)
    )
    return user

"""Use case for authenticating a user."""

from dataclasses import replace
from enum import Enum, auto

from sqlalchemy.orm import Session

from moodlog.infrastructure.repositories import UserRepository
from moodlog.infrastructure.security import (
    get_password_hash,
    needs_rehash,
    verify_password,
)


class AuthenticationStatus(Enum):
    """Possible outcomes when attempting to authenticate a user."""

    SUCCESS = auto()
    INVALID_CREDENTIALS = auto()


def authenticate_user(session: Session, identifier: str, password: str):
    """Return the user and the authentication result.

    ``identifier`` may be the username or the email address.
    """

    repository = UserRepository(session)
    identifier = identifier.strip()
    user = repository.get_by_identifier(identifier) or repository.get_by_email(
        identifier.lower()
    )

    if not user:
        return None, AuthenticationStatus.INVALID_CREDENTIALS

    if not verify_password(password, user.password_hash):
        return None, AuthenticationStatus.INVALID_CREDENTIALS

    if needs_rehash(user.password_hash):
        user = repository.update(replace(user, password_hash=get_password_hash(password)))

    return user, AuthenticationStatus.SUCCESS

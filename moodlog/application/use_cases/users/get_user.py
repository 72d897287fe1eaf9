"""Use case for retrieving a single user."""

from sqlalchemy.orm import Session

from moodlog.domain.entities import User
from moodlog.domain.errors import NotFound
from moodlog.infrastructure.repositories import UserRepository


def get_user(session: Session, user_id: int) -> User:
    """Return the requested user or raise :class:`NotFound`."""

    repository = UserRepository(session)
    user = repository.get(user_id)
    if user is None:
        raise NotFound(f"User {user_id} not found")
    return user

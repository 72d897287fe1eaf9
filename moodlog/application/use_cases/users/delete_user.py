"""Use case for deleting a user."""

import logging

from sqlalchemy.orm import Session

from moodlog.domain.errors import NotFound
from moodlog.infrastructure.repositories import UserRepository

logger = logging.getLogger(__name__)


def delete_user(session: Session, user_id: int) -> None:
    """Delete the user; its sessions are removed in the same transaction.

    Events, settings and delivery rows go with the user through the
    ``ON DELETE CASCADE`` foreign keys.
    """

    repository = UserRepository(session)
    if not repository.delete(user_id):
        raise NotFound(f"User {user_id} not found")
    logger.info("Deleted user %s and all of their sessions", user_id)

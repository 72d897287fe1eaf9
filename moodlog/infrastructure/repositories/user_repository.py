"""Persistence layer for user data."""

from __future__ import annotations

from sqlalchemy import or_
from sqlalchemy.orm import Session

from moodlog.domain.entities import User, UserRole
from moodlog.infrastructure.models import SessionModel, UserModel
from moodlog.utils import (
    ensure_app_naive_datetime,
    ensure_app_timezone,
    now_in_app_timezone,
)


class UserRepository:
    """Provide CRUD operations for user entities."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, user_id: int) -> User | None:
        model = self.session.get(UserModel, user_id)
        return self._to_entity(model) if model else None

    def exists(self, user_id: int) -> bool:
        return (
            self.session.query(UserModel.id).filter(UserModel.id == user_id).first()
            is not None
        )

    def get_by_email(self, email: str) -> User | None:
        model = self.session.query(UserModel).filter_by(email=email).first()
        return self._to_entity(model) if model else None

    def get_by_username(self, username: str) -> User | None:
        model = self.session.query(UserModel).filter_by(username=username).first()
        return self._to_entity(model) if model else None

    def get_by_identifier(self, identifier: str) -> User | None:
        """Return the user whose username or email equals ``identifier``."""

        model = (
            self.session.query(UserModel)
            .filter(or_(UserModel.username == identifier, UserModel.email == identifier))
            .first()
        )
        return self._to_entity(model) if model else None

    def create(self, user: User) -> User:
        model = UserModel()
        self._apply_entity_to_model(model, user)
        model.created_at = ensure_app_naive_datetime(
            user.created_at or now_in_app_timezone()
        )
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def update(self, user: User) -> User:
        model = self.session.get(UserModel, user.id)
        if not model:
            msg = f"User with id {user.id} not found"
            raise ValueError(msg)
        self._apply_entity_to_model(model, user)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def delete(self, user_id: int) -> bool:
        """Remove the user and its sessions in a single transaction.

        Sessions are deleted explicitly; SQLite only cascades with
        ``PRAGMA foreign_keys`` enabled.
        """

        model = self.session.get(UserModel, user_id)
        if model is None:
            return False

        self.session.query(SessionModel).filter(
            SessionModel.user_id == user_id
        ).delete(synchronize_session=False)
        self.session.delete(model)
        self.session.commit()
        return True

    def list_ids(self) -> list[int]:
        return [user_id for (user_id,) in self.session.query(UserModel.id).all()]

    @staticmethod
    def _to_entity(model: UserModel) -> User:
        return User(
            id=model.id,
            uuid=model.uuid,
            username=model.username,
            email=model.email,
            password_hash=model.password_hash,
            role=UserRole.parse(model.role),
            created_at=ensure_app_timezone(model.created_at),
            last_login_at=ensure_app_timezone(model.last_login_at),
        )

    @staticmethod
    def _apply_entity_to_model(model: UserModel, user: User) -> None:
        model.uuid = user.uuid
        model.username = user.username
        model.email = user.email
        model.password_hash = user.password_hash
        model.role = user.role.value
        model.last_login_at = ensure_app_naive_datetime(user.last_login_at)


__all__ = ["UserRepository"]

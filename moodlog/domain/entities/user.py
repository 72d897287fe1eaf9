"""Domain entity representing a user."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class UserRole(str, Enum):
    """Roles that can be assigned to an account."""

    USER = "user"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: str | None) -> "UserRole":
        """Return the role for ``value`` defaulting to :attr:`USER`."""

        if value and value.lower() == cls.ADMIN.value:
            return cls.ADMIN
        return cls.USER


@dataclass
class User:
    """Core attributes describing an application user."""

    id: int | None
    uuid: str
    username: str
    email: str
    password_hash: str
    role: UserRole
    created_at: datetime | None
    last_login_at: datetime | None = None

    def is_admin(self) -> bool:
        """Return ``True`` when the user is an administrator."""

        return self.role is UserRole.ADMIN


__all__ = ["User", "UserRole"]

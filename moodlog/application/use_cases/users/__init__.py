"""Use cases for managing users."""

from .authenticate_user import AuthenticationStatus, authenticate_user
from .delete_user import delete_user
from .get_user import get_user
from .record_login import record_login
from .register_user import register_user
from .user_settings import get_user_settings, update_user_settings

__all__ = [
    "AuthenticationStatus",
    "authenticate_user",
    "delete_user",
    "get_user",
    "get_user_settings",
    "record_login",
    "register_user",
    "update_user_settings",
]

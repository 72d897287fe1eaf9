"""Use cases for login sessions."""

from .manager import SessionManager

__all__ = ["SessionManager"]

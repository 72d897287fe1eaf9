from .auth import RegisterRequest, SessionRead, Token
from .event import (
    AlertRead,
    ChainVerificationRead,
    CheckinCreate,
    EventRead,
    EventSubmissionResponse,
    PanicCreate,
)
from .notification import DeliveryRead
from .settings import AlertTestRead, UserSettingsRead, UserSettingsUpdate
from .user import UserRead

__all__ = [
    "AlertRead",
    "AlertTestRead",
    "ChainVerificationRead",
    "CheckinCreate",
    "DeliveryRead",
    "EventRead",
    "EventSubmissionResponse",
    "PanicCreate",
    "RegisterRequest",
    "SessionRead",
    "Token",
    "UserRead",
    "UserSettingsRead",
    "UserSettingsUpdate",
]

"""Security helpers for password hashing and session token generation."""

import secrets

from passlib.context import CryptContext

from moodlog.config import get_settings

# Adjust "rounds" to the available CPU budget.
pwd_context = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
    pbkdf2_sha256__rounds=310_000,
)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def needs_rehash(hashed_password: str) -> bool:
    return pwd_context.needs_update(hashed_password)


def generate_session_token(num_bytes: int | None = None) -> str:
    """Return an unguessable, URL-safe session token."""

    size = num_bytes or get_settings().session_token_bytes
    return secrets.token_urlsafe(size)

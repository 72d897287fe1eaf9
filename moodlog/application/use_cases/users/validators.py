"""Common validation helpers for user use cases."""

import re

USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{3,50}$")


def normalize_username(username: str) -> str:
    """Return the trimmed username or raise ``ValueError``."""

    normalized = username.strip()
    if not USERNAME_PATTERN.match(normalized):
        raise ValueError(
            "Username must be 3-50 characters of letters, digits, '.', '_' or '-'"
        )
    return normalized


def normalize_email(email: str) -> str:
    """Return a trimmed, lower-cased email address or raise ``ValueError``."""

    normalized = email.strip().lower()
    if normalized.count("@") != 1:
        raise ValueError("Email address is not valid")

    local_part, domain = normalized.split("@", 1)
    if not local_part or "." not in domain:
        raise ValueError("Email address is not valid")
    return normalized


def ensure_password_strength(password: str, min_length: int) -> str:
    if len(password) < min_length:
        raise ValueError(f"Password must be at least {min_length} characters long")
    return password

"""Application timezone handling.

Every timestamp the store writes is converted to the configured timezone and
saved without ``tzinfo``; values read back are localized again before they
leave the repositories.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone, tzinfo
from functools import lru_cache

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from moodlog.config import get_settings

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_app_timezone() -> tzinfo:
    """Resolve ``APP_TIMEZONE``; fixed offsets like ``UTC+02:00`` are accepted."""

    name = (get_settings().app_timezone or "").strip()
    if not name:
        return timezone.utc
    try:
        zone = ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        return _parse_fixed_offset(name)
    if observes_dst(zone):
        logger.warning(
            "APP_TIMEZONE=%s observes daylight saving time; stored timestamps "
            "are naive, use UTC to keep session expiry consistent",
            name,
        )
    return zone


def observes_dst(zone: tzinfo) -> bool:
    year = datetime.now().year
    winter = datetime(year, 1, 15, tzinfo=zone).utcoffset()
    summer = datetime(year, 7, 15, tzinfo=zone).utcoffset()
    return winter != summer


def _parse_fixed_offset(name: str) -> tzinfo:
    upper = name.upper()
    for prefix in ("UTC", "GMT"):
        if upper.startswith(prefix):
            upper = upper[len(prefix):]
            break
    if not upper or upper[0] not in "+-":
        return timezone.utc

    sign = -1 if upper[0] == "-" else 1
    digits = upper[1:].replace(":", "")
    if not digits.isdigit() or len(digits) > 4:
        return timezone.utc
    if len(digits) <= 2:
        hours, minutes = digits, "0"
    else:
        hours, minutes = digits[:-2], digits[-2:]
    return timezone(sign * timedelta(hours=int(hours), minutes=int(minutes)))


def now_in_app_timezone() -> datetime:
    return datetime.now(tz=get_app_timezone())


def now_in_app_naive_datetime() -> datetime:
    """Column default for timestamps the database fills in itself."""

    return now_in_app_timezone().replace(tzinfo=None)


def ensure_app_timezone(value: datetime | None) -> datetime | None:
    """Attach or convert to the app timezone; naive values are taken as local."""

    if value is None:
        return None
    zone = get_app_timezone()
    if value.tzinfo is None:
        return value.replace(tzinfo=zone)
    return value.astimezone(zone)


def ensure_app_naive_datetime(value: datetime | None) -> datetime | None:
    """Return the storage form of ``value``: app-local wall time, no ``tzinfo``."""

    localized = ensure_app_timezone(value)
    return localized.replace(tzinfo=None) if localized is not None else None

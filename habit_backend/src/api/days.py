"""
Calendar-day keys for habit completion.

A day key is the ISO-8601 start-of-day instant in a single reference timezone,
e.g. '2024-03-05T00:00:00+00:00'. Every membership test, insert and removal on a
habit's completed days goes through normalize_day so that two instants on the
same calendar day always produce the same key.

The reference timezone comes from DAY_TIMEZONE and must not change once keys
have been stored: keys written under the old zone will no longer match.
"""
from __future__ import annotations

from datetime import datetime, timezone, tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo

from .settings import get_settings

DayKey = str


# PUBLIC_INTERFACE
def resolve_timezone(name: str) -> tzinfo:
    """
    Resolve a timezone name into a tzinfo. 'UTC' (any case) maps to datetime.timezone.utc
    so the default does not depend on the host's tz database.

    Raises:
        zoneinfo.ZoneInfoNotFoundError if the name is unknown.
    """
    if name.strip().upper() in {"UTC", "Z"}:
        return timezone.utc
    return ZoneInfo(name.strip())


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_day_timezone() -> tzinfo:
    """Return the reference timezone for day keys, resolved once per process."""
    return resolve_timezone(get_settings().day_timezone)


# PUBLIC_INTERFACE
def normalize_day(instant: datetime, tz: tzinfo) -> DayKey:
    """
    Map an instant to the key of the calendar day it falls on in `tz`.

    Naive instants are taken as wall-clock time in `tz`.
    """
    local = instant.replace(tzinfo=tz) if instant.tzinfo is None else instant.astimezone(tz)
    start = datetime(local.year, local.month, local.day, tzinfo=tz)
    return start.isoformat()


# PUBLIC_INTERFACE
def parse_day_key(key: DayKey) -> datetime:
    """Return the aware start-of-day datetime a key stands for."""
    return datetime.fromisoformat(key)

# progress_hub/core/utils.py
from __future__ import annotations

import calendar
import secrets
import string
import time
from datetime import datetime, timedelta, timezone

_ID_ALPHABET = string.digits + string.ascii_lowercase


def generate_id() -> str:
    """
    Return a process-unique identifier: nanosecond timestamp plus a random
    base-36 suffix, e.g. ``1731580800123456789-k3j9x0a2q``.
    """
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"{time.time_ns()}-{suffix}"


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def month_bounds(year: int, month: int) -> tuple[datetime, datetime]:
    """
    Calendar-month boundaries in UTC.

    The start is the first day at 00:00:00 and the end is the last day at
    23:59:59, both inclusive.
    """
    last_day = calendar.monthrange(year, month)[1]
    start = datetime(year, month, 1, tzinfo=timezone.utc)
    end = datetime(year, month, last_day, tzinfo=timezone.utc) + timedelta(
        hours=23, minutes=59, seconds=59
    )
    return start, end

"""Common time utilities."""

from __future__ import annotations

import datetime as dt

_NANOS_PER_SECOND = 1_000_000_000
_NANOS_PER_MICROSECOND = 1_000


def utcnow() -> dt.datetime:
    """Return an aware UTC timestamp suitable for DB defaults."""
    return dt.datetime.now(dt.UTC)


def datetime_from_unix_nanos(value: int) -> dt.datetime:
    """Convert a nanosecond Unix timestamp into an aware UTC datetime.

    Sub-microsecond precision is truncated because :class:`datetime.datetime`
    cannot represent it.

    Examples
    --------
    >>> datetime_from_unix_nanos(1_700_000_000_123_456_000).isoformat()
    '2023-11-14T22:13:20.123456+00:00'

    """
    seconds, remainder = divmod(value, _NANOS_PER_SECOND)
    base = dt.datetime.fromtimestamp(seconds, tz=dt.UTC)
    return base + dt.timedelta(microseconds=remainder // _NANOS_PER_MICROSECOND)


def parse_github_datetime(value: str) -> dt.datetime:
    """Parse a GitHub ISO-8601 timestamp into an aware UTC datetime."""
    text = value.replace("Z", "+00:00")
    parsed = dt.datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        msg = f"GitHub datetime missing timezone: {value}"
        raise ValueError(msg)
    return parsed.astimezone(dt.UTC)

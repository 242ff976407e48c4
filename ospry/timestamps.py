"""
ISO-8601 helpers for the timestamps exchanged with the service.

The service (and every signature it verifies) uses the UTC millisecond form
``2024-01-01T00:00:30.000Z``.
"""

import re
from datetime import datetime, timezone

from .errors import MalformedInput


_FRACTION_RE = re.compile(r'\.([0-9]+)')


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_iso8601(value: datetime) -> str:
    """Format as UTC with millisecond precision, e.g. 2024-01-01T00:00:30.000Z."""
    value = as_utc(value)
    millis = value.microsecond // 1000
    return f"{value:%Y-%m-%dT%H:%M:%S}.{millis:03d}Z"


def _six_digits(match) -> str:
    return '.' + match.group(1)[:6].ljust(6, '0')


def parse_iso8601(text: str) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Fractional seconds of any length are accepted (truncated to microseconds).
    Timestamps without an offset are taken as UTC.

    Raises:
        MalformedInput: if the text is not an ISO-8601 timestamp
    """
    if not isinstance(text, str):
        raise MalformedInput(f"Invalid ISO-8601 timestamp: {text!r}")

    value = text.strip()
    if value[-1:] in ('Z', 'z'):
        value = value[:-1] + '+00:00'
    # fromisoformat before 3.11 reads only 3 or 6 fraction digits
    value = _FRACTION_RE.sub(_six_digits, value, count=1)

    try:
        return as_utc(datetime.fromisoformat(value))
    except (OverflowError, ValueError) as e:
        raise MalformedInput(f"Invalid ISO-8601 timestamp: {text!r}") from e

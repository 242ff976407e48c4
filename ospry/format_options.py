"""
FormatOptions - Formatting and expiration options for image download URLs.

Resolution table used by ``FormatOptions.resolve``:

    field        caller value set        caller value unset
    ---------    --------------------    ------------------------------
    format       caller value            ``format`` in the URL query
    max_width    caller value            ``maxWidth`` in the URL query
    max_height   caller value            ``maxHeight`` in the URL query
    expire_at    now + expire_after      caller expire_at, else
                 (when expire_after      ``timeExpired`` in the URL query
                 is set)

An empty ``format`` and a non-positive width/height mean "remove".
"""

import math
import numbers
import re
from dataclasses import dataclass, fields
from datetime import datetime, timedelta
from typing import List, Mapping, Optional

from .errors import InvalidArgument
from .timestamps import as_utc, parse_iso8601


FORMATS = ('jpeg', 'png', 'gif', 'bmp')
FORMAT_ALIASES = {'jpg': 'jpeg'}

# ASCII digits only; int() would also take other scripts and underscores.
_DIMENSION_RE = re.compile(r'[+-]?[0-9]+')

# Accepted option keys, service spelling and Python spelling.
OPTION_KEYS = {
    'format': 'format',
    'maxWidth': 'max_width',
    'max_width': 'max_width',
    'maxHeight': 'max_height',
    'max_height': 'max_height',
    'expireAt': 'expire_at',
    'expireDate': 'expire_at',
    'expire_at': 'expire_at',
    'expireAfterSeconds': 'expire_after_seconds',
    'expireSeconds': 'expire_after_seconds',
    'expire_after_seconds': 'expire_after_seconds',
    'expire_seconds': 'expire_after_seconds',
}


def normalize_format(value) -> str:
    """
    Validate an image format name.

    Returns the canonical lower-case name, or '' for "remove the format".
    """
    if not isinstance(value, str):
        raise InvalidArgument(f"format should be a string, got {type(value).__name__}")
    if value == '':
        return ''
    name = value.lower()
    name = FORMAT_ALIASES.get(name, name)
    if name not in FORMATS:
        raise InvalidArgument(f"invalid image format ({value})")
    return name


def _check_number(name: str, value) -> None:
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise InvalidArgument(f"{name} should be a number")


def normalize_dimension(name: str, value) -> int:
    """Validate a width/height. Values <= 0 are kept; they mean "remove"."""
    _check_number(name, value)
    try:
        whole = int(value)
    except (OverflowError, ValueError):
        raise InvalidArgument(f"{name} should be a finite number")
    if value != whole:
        raise InvalidArgument(f"{name} should be a whole number of pixels")
    return whole


def parse_dimension(name: str, text: str) -> int:
    """Read a width/height embedded in a URL query string."""
    if not isinstance(text, str) or not _DIMENSION_RE.fullmatch(text.strip()):
        raise InvalidArgument(f"{name} should be a number, got {text!r}")
    return int(text.strip(), 10)


def _first(query: Mapping[str, List[str]], key: str) -> Optional[str]:
    values = query.get(key)
    if not values:
        return None
    return values[0]


@dataclass(frozen=True)
class FormatOptions:
    """
    Options applied when formatting an image URL.

    Attributes:
        format: Output format ('jpeg', 'png', 'gif', 'bmp'; 'jpg' accepted),
            '' to remove a format already present in the URL
        max_width: Maximum width in pixels, <= 0 removes the constraint
        max_height: Maximum height in pixels, <= 0 removes the constraint
        expire_at: Last moment a private image may be downloaded
        expire_after_seconds: Seconds from now until expiry; wins over expire_at
    """
    format: Optional[str] = None
    max_width: Optional[int] = None
    max_height: Optional[int] = None
    expire_at: Optional[datetime] = None
    expire_after_seconds: Optional[float] = None

    def __post_init__(self):
        if self.format is not None:
            object.__setattr__(self, 'format', normalize_format(self.format))
        if self.max_width is not None:
            object.__setattr__(self, 'max_width', normalize_dimension('maxWidth', self.max_width))
        if self.max_height is not None:
            object.__setattr__(self, 'max_height', normalize_dimension('maxHeight', self.max_height))
        if self.expire_at is not None:
            if not isinstance(self.expire_at, datetime):
                raise InvalidArgument("expire_at should be a datetime")
            object.__setattr__(self, 'expire_at', as_utc(self.expire_at))
        if self.expire_after_seconds is not None:
            _check_number('expire_after_seconds', self.expire_after_seconds)
            if not math.isfinite(self.expire_after_seconds):
                raise InvalidArgument("expire_after_seconds should be a finite number")

    @classmethod
    def from_value(cls, value=None, **kwargs) -> 'FormatOptions':
        """
        Build options from None, a FormatOptions, a mapping, or keywords.

        Mapping and keyword keys may use the service's camelCase names
        (maxWidth, expireSeconds, ...) or the Python attribute names.
        """
        if value is not None and kwargs:
            raise InvalidArgument("pass format options either as an object or as keywords, not both")
        if isinstance(value, FormatOptions):
            return value
        if value is None:
            data = kwargs
        elif isinstance(value, Mapping):
            data = value
        else:
            raise InvalidArgument(f"format options should be a mapping, got {type(value).__name__}")

        resolved = {}
        for key, item in data.items():
            attr = OPTION_KEYS.get(key)
            if attr is None:
                raise InvalidArgument(f"unknown format option: {key!r}")
            if attr in resolved:
                raise InvalidArgument(f"format option given twice: {key!r}")
            resolved[attr] = item
        return cls(**resolved)

    def is_empty(self) -> bool:
        """True when no option is set at all."""
        return all(getattr(self, f.name) is None for f in fields(self))

    @property
    def signed(self) -> bool:
        return self.expire_at is not None

    def resolve(self, query: Mapping[str, List[str]], now: datetime) -> 'FormatOptions':
        """
        Merge these options with the options embedded in an existing URL.

        Args:
            query: Parsed query of the input URL (key -> list of values)
            now: Current time, used to resolve expire_after_seconds

        Returns:
            New FormatOptions with expire_after_seconds folded into expire_at
        """
        fmt = self.format
        if fmt is None:
            fmt = _first(query, 'format')

        max_width = self.max_width
        if max_width is None and _first(query, 'maxWidth') is not None:
            max_width = parse_dimension('maxWidth', _first(query, 'maxWidth'))

        max_height = self.max_height
        if max_height is None and _first(query, 'maxHeight') is not None:
            max_height = parse_dimension('maxHeight', _first(query, 'maxHeight'))

        expire_at = self.expire_at
        if self.expire_after_seconds is not None:
            try:
                expire_at = as_utc(now) + timedelta(seconds=self.expire_after_seconds)
            except (OverflowError, ValueError):
                raise InvalidArgument(f"expire_after_seconds out of range: {self.expire_after_seconds}")
        if expire_at is None and _first(query, 'timeExpired') is not None:
            expire_at = parse_iso8601(_first(query, 'timeExpired'))

        return FormatOptions(
            format=fmt,
            max_width=max_width,
            max_height=max_height,
            expire_at=expire_at,
        )

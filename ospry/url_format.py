"""
URL formatting and signing for Ospry image URLs.

A formatted URL is built in four steps:

    1. options are merged with the ones already embedded in the URL
    2. the URL is reduced to its canonical base (origin + path), unwrapping a
       previously signed URL back to the image it points at
    3. if an expiry is set, the base URL is signed and wrapped in a URL served
       by the service host
    4. the query string is rebuilt with keys in lexicographic order

The signing payload is ``<base_url>?timeExpired=<encoded ISO-8601>`` and the
signature is ``base64(HMAC-SHA256(api_key, payload))``. The service verifies
exactly this string, so it must not change without a server-side change.
"""

import base64
import hashlib
import hmac
import logging
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import SplitResult, parse_qs, quote, urlsplit, urlunsplit

from .errors import InvalidArgument, MalformedInput
from .format_options import FormatOptions
from .timestamps import to_iso8601, utcnow


DEFAULT_SERVER_URL = 'https://api.ospry.io/v1'

# Characters encodeURIComponent leaves alone besides letters, digits and '-_.~'
_COMPONENT_SAFE = "!~*'()"

QueryValue = Union[str, Sequence[str]]

logger = logging.getLogger(__name__)


def encode_component(value) -> str:
    """Percent-encode a single query key or value."""
    return quote(str(value), safe=_COMPONENT_SAFE)


def canonical_query(params: Mapping[str, QueryValue]) -> str:
    """
    Serialize query parameters with keys in lexicographic order.

    Sequence values are emitted as repeated ``key=value`` pairs, keeping their
    order. Returns '' when there is nothing to serialize.
    """
    pairs = []
    for key in sorted(params):
        values = params[key]
        if isinstance(values, str) or not isinstance(values, (list, tuple)):
            values = [values]
        for value in values:
            pairs.append(f"{encode_component(key)}={encode_component(value)}")
    if not pairs:
        return ''
    return '?' + '&'.join(pairs)


def split_url(image_url: str) -> Tuple[SplitResult, Dict[str, List[str]]]:
    """
    Parse an absolute URL and its query.

    Raises:
        MalformedInput: if the URL has no scheme/host or cannot be parsed
    """
    try:
        parts = urlsplit(image_url)
        parts.port  # raises ValueError on a bad port
    except ValueError as e:
        raise MalformedInput(f"Invalid image url: {image_url!r}") from e

    if not parts.scheme or not parts.hostname:
        raise MalformedInput(f"Invalid image url: {image_url!r}")

    return parts, parse_qs(parts.query, keep_blank_values=True)


def canonical_base(parts: SplitResult, query: Mapping[str, List[str]]) -> Tuple[str, SplitResult]:
    """
    Find the image URL to operate on.

    A URL carrying a ``url`` parameter wraps another image URL (it was
    formatted or signed before); that inner URL is used instead. Query and
    fragment are always dropped.

    Returns:
        Tuple of (base_url, base_parts)
    """
    if query.get('url'):
        parts, _ = split_url(query['url'][0])

    base = parts._replace(path=parts.path or '/', query='', fragment='')
    return urlunsplit(base), base


def signing_payload(base_url: str, expire_at: datetime) -> str:
    return f"{base_url}?timeExpired={encode_component(to_iso8601(expire_at))}"


def sign(key: str, base_url: str, expire_at: datetime) -> str:
    """Return the base64 HMAC-SHA256 signature granting access until expire_at."""
    if not isinstance(key, str) or not key:
        raise InvalidArgument("an API key is required to sign urls")
    payload = signing_payload(base_url, expire_at)
    mac = hmac.new(key.encode(), payload.encode(), digestmod=hashlib.sha256)
    return base64.b64encode(mac.digest()).decode('ascii')


def service_host(server_url: str) -> str:
    host = urlsplit(server_url).netloc
    if not host:
        raise InvalidArgument(f"Invalid server url: {server_url!r}")
    return host


def format_url(
    key: Optional[str],
    image_url: str,
    options=None,
    server_url: str = DEFAULT_SERVER_URL,
    now: Optional[datetime] = None
) -> str:
    """
    Return a download URL for an image with formatting and expiry applied.

    Args:
        key: Secret API key used to sign URLs with an expiry
        image_url: Image URL, as returned by the service or a formatted one
        options: FormatOptions, a mapping of options, or None
        server_url: Service API URL; its host serves signed URLs
        now: Current time, used for expire_after_seconds (default: utcnow)

    Returns:
        The formatted URL. With no options the input is returned unchanged.

    Raises:
        InvalidArgument: bad argument types or option values
        MalformedInput: image_url (or its embedded timeExpired) can't be parsed
    """
    if not isinstance(image_url, str):
        raise InvalidArgument(f"image url should be a string, got {type(image_url).__name__}")

    options = FormatOptions.from_value(options)
    if options.is_empty():
        return image_url

    parts, query = split_url(image_url)
    resolved = options.resolve(query, now or utcnow())
    base_url, base = canonical_base(parts, query)

    params = {}
    if resolved.signed:
        params['url'] = base_url
        params['timeExpired'] = to_iso8601(resolved.expire_at)
        params['signature'] = sign(key, base_url, resolved.expire_at)
        base = SplitResult('https', service_host(server_url), '/', '', '')
        logger.debug(f"Signed {base_url} until {params['timeExpired']}")

    if resolved.format:
        params['format'] = resolved.format
    if resolved.max_width is not None and resolved.max_width > 0:
        params['maxWidth'] = str(resolved.max_width)
    if resolved.max_height is not None and resolved.max_height > 0:
        params['maxHeight'] = str(resolved.max_height)

    return urlunsplit(base) + canonical_query(params)

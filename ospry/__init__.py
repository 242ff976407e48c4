"""
Client library for the Ospry image hosting service.

Uploads and downloads images, changes their privacy and claim status, and
builds formatted download urls, signed with the secret key when they should
only be valid for a limited time.
"""

__version__ = "2.0.0"

from .errors import (
    OspryError,
    InvalidArgument,
    MalformedInput,
    APIError,
    NetworkError,
    NotFound,
    NotAuthorized,
    InternalError,
)
from .format_options import FORMATS, FormatOptions
from .image_metadata import ImageMetadata
from .url_format import format_url, canonical_query
from .config import OspryConfig
from .transport import Transport
from .client import Ospry

__all__ = [
    "OspryError",
    "InvalidArgument",
    "MalformedInput",
    "APIError",
    "NetworkError",
    "NotFound",
    "NotAuthorized",
    "InternalError",
    "FORMATS",
    "FormatOptions",
    "ImageMetadata",
    "format_url",
    "canonical_query",
    "OspryConfig",
    "Transport",
    "Ospry",
]

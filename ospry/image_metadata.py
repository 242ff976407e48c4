"""
ImageMetadata - Metadata the service keeps for an uploaded image.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional

from .timestamps import parse_iso8601, to_iso8601


@dataclass
class ImageMetadata:
    """
    Metadata for a single image.

    Attributes:
        id: Ospry id of the image
        url: Download URL of the image
        https_url: HTTPS download URL, when the service provides one
        filename: Filename given at upload
        format: Stored image format (e.g. 'jpeg')
        size: Size in bytes
        width: Width in pixels
        height: Height in pixels
        is_claimed: Whether the image was claimed with the secret key
        is_private: Whether downloads require a key or signed URL
        time_created: Upload time
        raw: The JSON object as returned by the service
    """
    id: str
    url: str
    https_url: Optional[str] = None
    filename: Optional[str] = None
    format: Optional[str] = None
    size: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    is_claimed: bool = False
    is_private: bool = False
    time_created: Optional[datetime] = None
    raw: Dict[str, Any] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: dict) -> 'ImageMetadata':
        """Create from a JSON object returned by the service."""
        time_created = data.get('timeCreated')
        if isinstance(time_created, str):
            time_created = parse_iso8601(time_created)

        return cls(
            id=data['id'],
            url=data.get('url', ''),
            https_url=data.get('httpsUrl'),
            filename=data.get('filename'),
            format=data.get('format'),
            size=data.get('size'),
            width=data.get('width'),
            height=data.get('height'),
            is_claimed=bool(data.get('isClaimed', False)),
            is_private=bool(data.get('isPrivate', False)),
            time_created=time_created,
            raw=dict(data),
        )

    def to_dict(self) -> dict:
        """Convert back to the service's JSON shape."""
        data = dict(self.raw)
        data.update({
            'id': self.id,
            'url': self.url,
            'httpsUrl': self.https_url,
            'filename': self.filename,
            'format': self.format,
            'size': self.size,
            'width': self.width,
            'height': self.height,
            'isClaimed': self.is_claimed,
            'isPrivate': self.is_private,
            'timeCreated': to_iso8601(self.time_created) if self.time_created else None,
        })
        return data

"""
Ospry - Client for the Ospry image hosting service.
"""

import logging
from datetime import datetime
from typing import BinaryIO, List, Optional, Sequence, Union

from .config import OspryConfig
from .errors import APIError, InvalidArgument, OspryError
from .format_options import FORMATS, FormatOptions
from .image_metadata import ImageMetadata
from .transport import Transport
from .url_format import DEFAULT_SERVER_URL, canonical_query, format_url


class Ospry:
    """
    Client bound to one secret API key.

    Formatting URLs is pure and never touches the network; every other
    method makes one API call.
    """

    FORMATS = FORMATS

    def __init__(
        self,
        key: Optional[str],
        server_url: str = DEFAULT_SERVER_URL,
        verify_ssl: bool = True,
        timeout: Optional[float] = None,
        transport: Optional[Transport] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize client.

        Args:
            key: Secret API key (used for auth and for signing urls)
            server_url: API base url (default: https://api.ospry.io/v1)
            verify_ssl: Verify TLS certificates
            timeout: Socket timeout in seconds
            transport: Optional transport, mostly for tests
            logger: Optional logger instance
        """
        self._key = key
        self.server_url = server_url.rstrip('/')
        self.logger = logger or logging.getLogger(__name__)
        self.transport = transport or Transport(
            key, verify_ssl=verify_ssl, timeout=timeout, logger=self.logger
        )

    @classmethod
    def from_config(cls, config: OspryConfig, logger: Optional[logging.Logger] = None) -> 'Ospry':
        return cls(
            config.api_key,
            server_url=config.server_url,
            verify_ssl=config.verify_ssl,
            timeout=config.timeout,
            logger=logger,
        )

    @property
    def images_url(self) -> str:
        return f"{self.server_url}/images"

    # --- URL formatting -------------------------------------------------------

    def format_url(
        self,
        image_url: str,
        options=None,
        now: Optional[datetime] = None,
        **kwargs
    ) -> str:
        """
        Return a download URL with formatting and expiry applied.

        Options may be given as a FormatOptions, a mapping, or keywords:

            client.format_url(url, max_height=150)
            client.format_url(url, {'expireSeconds': 30, 'maxHeight': 150})

        Private images can be shared for a limited time by setting
        expire_at or expire_after_seconds; the url is then signed with the
        secret key and served by the service host.
        """
        options = FormatOptions.from_value(options, **kwargs)
        return format_url(self._key, image_url, options, server_url=self.server_url, now=now)

    # --- Images ---------------------------------------------------------------

    def upload(
        self,
        filename: str,
        data: Union[bytes, BinaryIO],
        is_private: bool = False
    ) -> ImageMetadata:
        """
        Upload an image.

        Args:
            filename: Filename to store with the image
            data: Image bytes or a binary file object
            is_private: Store as private (default: public)

        Returns:
            Metadata of the uploaded image
        """
        if not isinstance(filename, str) or not filename:
            raise InvalidArgument("filename should be a non-empty string")
        if hasattr(data, 'read'):
            data = data.read()
        if not isinstance(data, (bytes, bytearray)):
            raise InvalidArgument("data should be bytes or a binary file object")

        query = canonical_query({
            'filename': filename,
            'isPrivate': 'true' if is_private else 'false',
        })
        # Raw image body; the service detects the actual image type.
        images = self.transport.call(
            'POST',
            self.images_url + query,
            headers={'Content-Type': 'image/jpeg'},
            body=bytes(data),
        )
        if not images:
            raise OspryError("Upload response contained no image")
        if 'error' in images[0]:
            raise APIError.from_dict(images[0]['error'])

        metadata = ImageMetadata.from_dict(images[0])
        self.logger.info(f"Uploaded {filename} as {metadata.id} (private={metadata.is_private})")
        return metadata

    def download(
        self,
        image_url: str,
        out: Optional[BinaryIO] = None,
        chunk_size: int = 64 * 1024,
        now: Optional[datetime] = None,
        **kwargs
    ) -> Union[bytes, int]:
        """
        Download an image, optionally formatted/resized.

        Args:
            image_url: Image url (plain, formatted or signed)
            out: Optional binary file object to write to
            chunk_size: Read size for the streamed body
            now: Current time, for expire_after_seconds
            **kwargs: Format options (format, max_width, max_height, ...)

        Returns:
            The image bytes, or the number of bytes written when out is given
        """
        url = self.format_url(image_url, now=now, **kwargs)
        chunks = self.transport.stream(url, chunk_size=chunk_size)

        if out is None:
            return b''.join(chunks)

        written = 0
        for chunk in chunks:
            out.write(chunk)
            written += len(chunk)
        self.logger.debug(f"Downloaded {written} bytes from {image_url.split('?', 1)[0]}")
        return written

    def get_metadata(self, ids: Sequence[str]) -> List[ImageMetadata]:
        """Fetch metadata for the given image ids."""
        ids = self._check_ids(ids)
        images = self.transport.call('GET', self.images_url + canonical_query({'ids[]': ids}))
        return [ImageMetadata.from_dict(image) for image in images]

    def claim(self, ids: Sequence[str]) -> List[ImageMetadata]:
        """
        Claim uploaded images.

        When claiming is enabled on the account, images not claimed with the
        secret key within the claiming window are deleted by the service.
        """
        return self._patch(ids, isClaimed=True)

    def make_private(self, ids: Sequence[str]) -> List[ImageMetadata]:
        """Private images can only be downloaded with the key or a signed url."""
        return self._patch(ids, isPrivate=True)

    def make_public(self, ids: Sequence[str]) -> List[ImageMetadata]:
        return self._patch(ids, isPrivate=False)

    def delete(self, ids: Sequence[str]) -> None:
        """Delete the given images."""
        ids = self._check_ids(ids)
        self.transport.call('DELETE', self.images_url + canonical_query({'ids[]': ids}))
        self.logger.info(f"Deleted {len(ids)} image(s)")

    # --- Internal helpers -----------------------------------------------------

    def _patch(self, ids: Sequence[str], **changes) -> List[ImageMetadata]:
        ids = self._check_ids(ids)
        patches = [dict(id=image_id, **changes) for image_id in ids]
        images = self.transport.call('PUT', self.images_url, json_body=patches)
        return [ImageMetadata.from_dict(image) for image in images]

    @staticmethod
    def _check_ids(ids) -> List[str]:
        if not isinstance(ids, (list, tuple)) or not ids:
            raise InvalidArgument("ids should be a non-empty list of image ids")
        if not all(isinstance(image_id, str) and image_id for image_id in ids):
            raise InvalidArgument("every image id should be a non-empty string")
        return list(ids)

"""
Transport - Authenticated HTTP calls to the Ospry API.

Every API call is made with HTTP basic auth, the secret key as username and
an empty password. Responses use a JSON envelope:

    success:  {"images": [{...}, ...]}
    failure:  {"error": {"httpStatusCode": 404, "cause": "not-found",
                         "message": "...", "docsUrl": "..."}}
"""

import json
import logging
from typing import Iterator, List, Optional, Tuple

import urllib3

from .errors import APIError, InternalError, NetworkError


class Transport:
    """
    Thin wrapper around a urllib3 PoolManager.

    The pool is thread-safe, so one transport may be shared by threads.
    """

    def __init__(
        self,
        key: Optional[str],
        verify_ssl: bool = True,
        timeout: Optional[float] = None,
        pool: Optional[urllib3.PoolManager] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize transport.

        Args:
            key: Secret API key used for basic auth
            verify_ssl: Verify TLS certificates (default: True)
            timeout: Socket timeout in seconds, None for urllib3's default
            pool: Optional pre-built PoolManager
            logger: Optional logger instance
        """
        self.key = key
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)
        self._pool = pool or urllib3.PoolManager(
            cert_reqs='CERT_REQUIRED' if verify_ssl else 'CERT_NONE'
        )

    def _options(self) -> dict:
        options = {'retries': False}
        if self.timeout is not None:
            options['timeout'] = self.timeout
        return options

    def auth_headers(self) -> dict:
        return urllib3.make_headers(basic_auth=f"{self.key or ''}:")

    def request(
        self,
        method: str,
        url: str,
        headers: Optional[dict] = None,
        body: Optional[bytes] = None
    ) -> Tuple[int, bytes]:
        """
        Send an authenticated request.

        Returns:
            Tuple of (status, body bytes)

        Raises:
            NetworkError: if the request could not be completed
        """
        all_headers = self.auth_headers()
        all_headers.update(headers or {})

        self.logger.debug(f"{method} {url}")
        try:
            response = self._pool.request(
                method, url, headers=all_headers, body=body, **self._options()
            )
        except urllib3.exceptions.HTTPError as e:
            self.logger.error(f"{method} {url} failed: {e}")
            raise NetworkError() from e

        return response.status, response.data

    def call(
        self,
        method: str,
        url: str,
        headers: Optional[dict] = None,
        body: Optional[bytes] = None,
        json_body=None
    ) -> List[dict]:
        """
        Call the API and unwrap its envelope.

        Returns:
            The list of image objects from the response

        Raises:
            APIError: error envelope or unexpected response
        """
        headers = dict(headers or {})
        if json_body is not None:
            body = json.dumps(json_body).encode('utf-8')
            headers['Content-Type'] = 'application/json'

        status, data = self.request(method, url, headers=headers, body=body)

        try:
            payload = json.loads(data.decode('utf-8')) if data else {}
        except (UnicodeDecodeError, ValueError):
            self.logger.error(f"{method} {url}: undecodable response (status {status})")
            if status != 200:
                raise APIError.for_status(status)
            raise InternalError('Undecodable response', status_code=status)

        if not isinstance(payload, dict):
            raise InternalError('Unexpected response', status_code=status)

        if status != 200:
            error = APIError.from_dict(payload.get('error'))
            self.logger.warning(f"{method} {url}: {error}")
            raise error

        images = payload.get('images')
        if not isinstance(images, list):
            raise InternalError('Response has no images', status_code=status)
        return images

    def stream(self, url: str, chunk_size: int = 64 * 1024) -> Iterator[bytes]:
        """
        Stream a GET response body in chunks.

        On a non-200 status the transfer is aborted before the body is read.

        Raises:
            NotFound, NotAuthorized, InternalError: non-200 status
            NetworkError: connection failure before or during the transfer
        """
        # Signed urls carry their grant in the query; keep it out of the logs.
        shown = url.split('?', 1)[0]
        self.logger.debug(f"GET {shown}")
        try:
            response = self._pool.request(
                'GET', url, preload_content=False, **self._options()
            )
        except urllib3.exceptions.HTTPError as e:
            self.logger.error(f"GET {shown} failed: {e}")
            raise NetworkError() from e

        try:
            if response.status != 200:
                self.logger.warning(f"GET {shown}: status {response.status}, aborting download")
                response.close()
                raise APIError.for_status(response.status)
            for chunk in response.stream(chunk_size):
                yield chunk
        except urllib3.exceptions.HTTPError as e:
            self.logger.error(f"GET {shown} interrupted: {e}")
            raise NetworkError() from e
        finally:
            response.release_conn()

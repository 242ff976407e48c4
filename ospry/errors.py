"""
Exceptions raised by the Ospry client.

Local failures (bad arguments, unparseable URLs) are raised synchronously by
the formatting code. API failures mirror the error envelope returned by the
service.
"""

from typing import Optional


DOCS_URL = 'https://ospry.io/docs'


class OspryError(Exception):
    """Base class for every error raised by this package."""
    pass


class InvalidArgument(OspryError, ValueError):
    """Raised when a caller passes an argument of the wrong type or value."""
    pass


class MalformedInput(OspryError, ValueError):
    """Raised when an image URL (or a value embedded in it) cannot be parsed."""
    pass


class APIError(OspryError):
    """
    Error reported by (or while talking to) the Ospry service.

    Attributes:
        cause: Machine readable error name, e.g. 'not-found'
        status_code: HTTP status code (0 for network failures)
        docs_url: Link to the documentation for this error
        message: Human readable message
    """

    cause = 'api-error'
    default_status = 0
    default_message = 'API error'

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        cause: Optional[str] = None,
        docs_url: Optional[str] = None
    ):
        self.message = message or self.default_message
        self.status_code = self.default_status if status_code is None else status_code
        if cause:
            self.cause = cause
        self.docs_url = docs_url or f"{DOCS_URL}#{self.cause}"
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.message} ({self.cause}, status {self.status_code})"

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> 'APIError':
        """Build the matching error from the service's error envelope."""
        if not isinstance(data, dict):
            return InternalError('Malformed error response')

        cause = data.get('cause') or cls.cause
        try:
            status_code = int(data.get('httpStatusCode', 0))
        except (TypeError, ValueError):
            status_code = 0

        error_cls = _ERRORS_BY_CAUSE.get(cause, APIError)
        return error_cls(
            message=data.get('message'),
            status_code=status_code,
            cause=cause,
            docs_url=data.get('docsUrl'),
        )

    @classmethod
    def for_status(cls, status_code: int) -> 'APIError':
        """Map a bare HTTP status (no envelope) to an error."""
        if status_code == 404:
            return NotFound()
        if status_code == 403:
            return NotAuthorized()
        return InternalError(status_code=status_code)


class NetworkError(APIError):
    cause = 'network-error'
    default_status = 0
    default_message = 'Network error.'


class NotFound(APIError):
    cause = 'not-found'
    default_status = 404
    default_message = 'Not found'


class NotAuthorized(APIError):
    cause = 'not-authorized'
    default_status = 403
    default_message = 'Forbidden'


class InternalError(APIError):
    cause = 'internal-error'
    default_status = 500
    default_message = 'Internal error'


_ERRORS_BY_CAUSE = {
    err.cause: err for err in (NetworkError, NotFound, NotAuthorized, InternalError)
}

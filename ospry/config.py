"""
OspryConfig - Client configuration loaded from the environment.

Environment variables:
    OSPRY_SECRET      secret API key
    OSPRY_SERVER_URL  API base url (default: https://api.ospry.io/v1)
    OSPRY_VERIFY_SSL  verify TLS certificates (default: true)
    OSPRY_TIMEOUT     socket timeout in seconds (default: none)
"""

import os
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import urlsplit

from .url_format import DEFAULT_SERVER_URL


def str2bool(value, raise_exc=False):
    """converts diverse string values into boolean True or False."""
    true_set = {'yes', 'true', 't', 'y', '1', 'on'}
    false_set = {'no', 'false', 'f', 'n', '0', 'off'}

    if isinstance(value, str):
        value = value.strip().lower()
        if value in true_set:
            return True
        if value in false_set:
            return False

    if raise_exc:
        raise ValueError('Expected "%s"' % '", "'.join(sorted(true_set | false_set)))
    return None


@dataclass
class OspryConfig:
    """
    Configuration for an Ospry client.

    Attributes:
        api_key: Secret API key
        server_url: API base url
        verify_ssl: Verify TLS certificates
        timeout: Socket timeout in seconds, None for no explicit timeout
    """
    api_key: Optional[str] = None
    server_url: str = DEFAULT_SERVER_URL
    verify_ssl: bool = True
    timeout: Optional[float] = None

    @classmethod
    def from_env(cls) -> 'OspryConfig':
        """Load configuration from environment variables."""
        verify = str2bool(os.getenv('OSPRY_VERIFY_SSL', 'true'))
        timeout = os.getenv('OSPRY_TIMEOUT')
        try:
            timeout = float(timeout) if timeout else None
        except ValueError:
            timeout = -1.0  # reported by validate()

        return cls(
            api_key=os.getenv('OSPRY_SECRET') or None,
            server_url=os.getenv('OSPRY_SERVER_URL', DEFAULT_SERVER_URL),
            verify_ssl=True if verify is None else verify,
            timeout=timeout,
        )

    def validate(self, require_key: bool = True) -> List[str]:
        """
        Check the configuration.

        Returns:
            List of error messages, empty when the configuration is usable
        """
        errors = []
        if require_key and not self.api_key:
            errors.append("OSPRY_SECRET is not set (or pass --key)")

        parts = urlsplit(self.server_url or '')
        if parts.scheme not in ('http', 'https') or not parts.netloc:
            errors.append(f"OSPRY_SERVER_URL is not a valid url: {self.server_url!r}")

        if self.timeout is not None and self.timeout <= 0:
            errors.append("OSPRY_TIMEOUT must be a positive number of seconds")

        return errors

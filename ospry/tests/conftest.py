"""
Pytest fixtures for ospry tests.
"""

import json
import pytest
from datetime import datetime, timezone


@pytest.fixture
def api_key():
    """Fixture providing a secret API key."""
    return 'test-secret-key'


@pytest.fixture
def fixed_now():
    """Fixture providing a fixed 'now' for expiry computations."""
    return datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def image_url():
    """Fixture providing a plain image url."""
    return 'https://img.example/i/abc'


@pytest.fixture
def metadata_dict():
    """Fixture providing an image object as returned by the service."""
    return {
        'id': 'img-1',
        'url': 'https://img.example/i/abc',
        'httpsUrl': 'https://img.example/i/abc',
        'filename': 'cat.jpg',
        'format': 'jpeg',
        'size': 12345,
        'width': 100,
        'height': 80,
        'isClaimed': False,
        'isPrivate': True,
        'timeCreated': '2024-01-01T12:30:00.250Z',
    }


@pytest.fixture
def mock_transport(mocker):
    """Fixture providing a mocked Transport."""
    from ospry.transport import Transport
    return mocker.MagicMock(spec=Transport)


@pytest.fixture
def client(api_key, mock_transport):
    """Fixture providing an Ospry client with a mocked transport."""
    from ospry.client import Ospry
    return Ospry(api_key, transport=mock_transport)


@pytest.fixture
def mock_pool(mocker):
    """Fixture providing a mocked urllib3 PoolManager."""
    return mocker.MagicMock()


@pytest.fixture
def make_response(mocker):
    """Fixture building fake urllib3 responses."""
    def _make(status=200, payload=None, data=None, chunks=None):
        response = mocker.MagicMock()
        response.status = status
        if data is None and payload is not None:
            data = json.dumps(payload).encode('utf-8')
        response.data = data if data is not None else b''
        response.stream.return_value = iter(chunks or [])
        return response
    return _make


@pytest.fixture
def sample_image_bytes():
    """Fixture providing sample JPEG image bytes."""
    from PIL import Image
    import io

    img = Image.new('RGB', (100, 100), color='red')
    buffer = io.BytesIO()
    img.save(buffer, format='JPEG')
    return buffer.getvalue()


@pytest.fixture
def clean_env(monkeypatch):
    """Fixture removing OSPRY_* variables from the environment."""
    for name in ('OSPRY_SECRET', 'OSPRY_SERVER_URL', 'OSPRY_VERIFY_SSL', 'OSPRY_TIMEOUT'):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch

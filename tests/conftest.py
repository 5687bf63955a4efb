"""
pytest configuration and fixtures.
"""

from typing import Callable, Optional

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from listenkit import Extender, ExtendConfig
from listenkit.http import HTTPRequest


@pytest.fixture
def make_request() -> Callable[..., HTTPRequest]:
    """Factory for requests with a body and headers."""
    def _make(
        method: str = "GET",
        path: str = "/",
        body: bytes = b"",
        headers: Optional[dict] = None,
        **kwargs,
    ) -> HTTPRequest:
        return HTTPRequest.with_body(method, path, body, headers=headers or {}, **kwargs)
    return _make


@pytest.fixture
def sample_json_request(make_request) -> HTTPRequest:
    """POST request with a JSON body."""
    return make_request(
        "POST",
        "/api/users",
        b'{"name": "John", "email": "john@example.com"}',
        headers={"Content-Type": "application/json", "User-Agent": "pytest"},
        client_address=("127.0.0.1", 12345),
    )


@pytest.fixture
def extender() -> Extender:
    """An Extender with default settings and no hooks."""
    return Extender()


@pytest.fixture
def cors_extender() -> Extender:
    """An Extender with CORS handling enabled."""
    return Extender(ExtendConfig(enable_cors=True))

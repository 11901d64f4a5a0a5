"""
Pytest configuration and fixtures for Stashboard client tests.
"""

from typing import Any, Dict, List, Optional
from urllib.parse import parse_qsl

import httpx
import pytest

BASE_URL = "https://status.example.com"
TOKEN = "long-access-token"
SECRET = "short-secret"


class FakeStashboard:
    """Transport double: records every request and answers with a canned reply."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.status_code = 200
        self.payload: Any = {}
        self.content: Optional[bytes] = None
        self.error: Optional[Exception] = None

    def reply(self, payload: Any = None, status_code: int = 200, content: Optional[bytes] = None):
        self.payload = payload
        self.status_code = status_code
        self.content = content

    def fail_with(self, error: Exception):
        self.error = error

    def handle(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.content is not None:
            return httpx.Response(self.status_code, content=self.content)
        return httpx.Response(self.status_code, json=self.payload)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def form(self, request: Optional[httpx.Request] = None) -> Dict[str, str]:
        request = request or self.last
        return dict(parse_qsl(request.content.decode("utf-8")))

    def query(self, request: Optional[httpx.Request] = None) -> Dict[str, str]:
        request = request or self.last
        return dict(request.url.params)


@pytest.fixture
def server():
    """A fresh transport double."""
    return FakeStashboard()


@pytest.fixture
def http_client(server):
    """httpx client wired to the transport double."""
    client = httpx.Client(transport=httpx.MockTransport(server.handle))
    yield client
    client.close()


@pytest.fixture
def stashboard(http_client):
    """Stashboard client sending through the transport double."""
    from stashboard.client import Stashboard

    return Stashboard(BASE_URL, TOKEN, SECRET, http_client=http_client)

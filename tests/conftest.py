"""Shared fixtures for Auth0 Management Tool tests."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

# Add project root to path so we can import modules directly
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))


class FakeClock:
    """Manually advanced clock; its sleep() advances time instead of waiting."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def _make_mock_response(status, data=None, headers=None, text=""):
    """Create a mock aiohttp response usable as an async context manager."""
    resp = AsyncMock()
    resp.status = status
    resp.headers = headers or {}
    resp.json_calls = 0

    async def json_func(content_type=None):
        resp.json_calls += 1
        return data

    async def text_func():
        return text

    resp.json = json_func
    resp.text = text_func
    resp.__aenter__ = AsyncMock(return_value=resp)
    resp.__aexit__ = AsyncMock(return_value=False)
    return resp


@pytest.fixture
def make_response():
    """Factory for mocked aiohttp responses."""
    return _make_mock_response


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def token_payload():
    """Successful /oauth/token response body."""
    return {
        "access_token": "test-token",
        "token_type": "Bearer",
        "expires_in": 86400,
    }


@pytest.fixture
def tenant():
    return {
        "domain": "test.auth0.com",
        "client_id": "test-client-id",
        "client_secret": "test-client-secret",
    }

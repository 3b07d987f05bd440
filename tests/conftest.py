"""
Test configuration and shared fixtures for pytest
"""
import json
import shutil
import tempfile
from datetime import datetime, timezone
from pathlib import Path

import pytest
import requests

from artist_sync.core.config import Config
from artist_sync.storage.tokens import TokenStore


class FakeRedis:
    """In-memory stand-in for the few redis-py calls the token store makes."""

    def __init__(self):
        self.data = {}

    def set(self, key, value):
        self.data[key] = value
        return True

    def get(self, key):
        return self.data.get(key)

    def exists(self, *keys):
        return sum(1 for key in keys if key in self.data)

    def ping(self):
        return True


class FrozenClock:
    """Callable clock whose time only moves when told to."""

    def __init__(self, now=None):
        self.now = now or datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now


def build_response(status_code=200, payload=None, text=None, url="http://test"):
    """Create a real requests.Response carrying the given body."""
    response = requests.Response()
    response.status_code = status_code
    response.reason = "OK" if status_code < 400 else "Error"
    response.url = url
    if text is None:
        text = json.dumps(payload) if payload is not None else ""
    response._content = text.encode("utf-8")
    response.encoding = "utf-8"
    return response


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests"""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def config(temp_dir):
    """Fully populated configuration pointing at a temp database"""
    return Config(
        lastfm_username="test_user",
        lastfm_api_key="lastfm_key_123",
        spotify_client_id="client_id_123",
        spotify_client_secret="client_secret_123",
        redirect_uri="http://127.0.0.1:7979/callback",
        redis_url="redis://localhost:6379/0",
        database_path=temp_dir / "data" / "artists.db",
        page_limit=50,
        request_timeout=5,
    )


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def token_store(fake_redis):
    return TokenStore(fake_redis)


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture
def make_response():
    """Factory for canned HTTP responses"""
    return build_response

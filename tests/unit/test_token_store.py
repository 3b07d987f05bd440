"""
Tests for the Redis-backed token store.
"""
from unittest.mock import Mock

import pytest
import redis

from artist_sync.core.exceptions import StoreError, TokenNotFoundError
from artist_sync.storage.tokens import TokenKey, TokenStore


def test_set_and_get(token_store, fake_redis):
    token_store.set(TokenKey.ACCESS_TOKEN, "abc")

    assert fake_redis.data == {"access_token": "abc"}
    assert token_store.get(TokenKey.ACCESS_TOKEN) == "abc"
    assert token_store.get("access_token") == "abc"


def test_get_strips_whitespace(token_store, fake_redis):
    fake_redis.data["auth_code"] = "  code123\n"

    assert token_store.get(TokenKey.AUTH_CODE) == "code123"


def test_get_decodes_bytes(token_store, fake_redis):
    fake_redis.data["refresh_token"] = b"refresh"

    assert token_store.get(TokenKey.REFRESH_TOKEN) == "refresh"


def test_get_missing_key_raises_not_found(token_store):
    with pytest.raises(TokenNotFoundError) as exc_info:
        token_store.get(TokenKey.EXPIRY)

    assert exc_info.value.key == "expiry"
    assert isinstance(exc_info.value, StoreError)


def test_exists(token_store):
    assert token_store.exists(TokenKey.AUTH_CODE) is False

    token_store.set(TokenKey.AUTH_CODE, "code")

    assert token_store.exists(TokenKey.AUTH_CODE) is True


def test_redis_errors_become_store_errors():
    client = Mock()
    client.get.side_effect = redis.ConnectionError("down")
    client.set.side_effect = redis.ConnectionError("down")
    client.exists.side_effect = redis.TimeoutError("slow")
    client.ping.side_effect = redis.ConnectionError("down")
    store = TokenStore(client)

    with pytest.raises(StoreError):
        store.get(TokenKey.ACCESS_TOKEN)
    with pytest.raises(StoreError):
        store.set(TokenKey.ACCESS_TOKEN, "x")
    with pytest.raises(StoreError):
        store.exists(TokenKey.ACCESS_TOKEN)
    with pytest.raises(StoreError):
        store.ping()


def test_from_url_builds_decoding_client(monkeypatch):
    created = {}

    def fake_from_url(url, **kwargs):
        created["url"] = url
        created["kwargs"] = kwargs
        return Mock()

    monkeypatch.setattr(redis, "from_url", fake_from_url)

    TokenStore.from_url("redis://cache:6379/1")

    assert created == {"url": "redis://cache:6379/1", "kwargs": {"decode_responses": True}}


def test_from_url_rejects_bad_url():
    with pytest.raises(StoreError):
        TokenStore.from_url("not-a-redis-url")

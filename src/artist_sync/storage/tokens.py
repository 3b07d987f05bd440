"""
Redis-backed key/value store for OAuth credentials.

Each credential lives under its own key so that the presence of any one
of them can be checked independently. Expiry is kept as an ISO-8601
string rather than a Redis TTL.
"""
import logging
from enum import Enum
from typing import Any, Union

import redis

from ..core.exceptions import StoreError, TokenNotFoundError

logger = logging.getLogger(__name__)


class TokenKey(str, Enum):
    """Keys held in the token store."""

    AUTH_CODE = "auth_code"
    REFRESH_TOKEN = "refresh_token"
    ACCESS_TOKEN = "access_token"
    EXPIRY = "expiry"


KeyLike = Union[TokenKey, str]


def _key(key: KeyLike) -> str:
    return key.value if isinstance(key, TokenKey) else key


class TokenStore:
    """Thin wrapper around a Redis client with project error semantics."""

    def __init__(self, client: Any):
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "TokenStore":
        """Create a store connected to the Redis instance at url."""
        try:
            client = redis.from_url(url, decode_responses=True)
        except (ValueError, redis.RedisError) as e:
            raise StoreError(f"Invalid token store URL: {e}") from e
        return cls(client)

    def set(self, key: KeyLike, value: str) -> None:
        try:
            self._client.set(_key(key), value)
        except redis.RedisError as e:
            raise StoreError(f"Failed to set {_key(key)}: {e}") from e
        logger.debug(f"Key set: {_key(key)}")

    def get(self, key: KeyLike) -> str:
        """
        Read a value.

        Raises:
            TokenNotFoundError: If the key is absent
            StoreError: If the store cannot be reached
        """
        try:
            value = self._client.get(_key(key))
        except redis.RedisError as e:
            raise StoreError(f"Failed to get {_key(key)}: {e}") from e

        if value is None:
            raise TokenNotFoundError(_key(key))
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value.strip()

    def exists(self, key: KeyLike) -> bool:
        try:
            return bool(self._client.exists(_key(key)))
        except redis.RedisError as e:
            raise StoreError(f"Failed to check {_key(key)}: {e}") from e

    def ping(self) -> bool:
        """Check connectivity to the backing store."""
        try:
            return bool(self._client.ping())
        except redis.RedisError as e:
            raise StoreError(f"Token store unreachable: {e}") from e

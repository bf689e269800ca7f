"""
Session stores for cart content.

The cart writes JSON-compatible payloads, so both stores hold plain data:
- MemorySessionStore for tests and single-process hosts
- RedisSessionStore backed by Upstash Redis (REST)
"""

import copy
import json
import os
from typing import Any, Dict, Optional

from upstash_redis import Redis

from .exceptions import CartStorageError
from .logging import get_logger, sanitize_id_for_logging, sanitize_string_for_logging

logger = get_logger(__name__)

UPSTASH_REDIS_REST_URL = os.environ.get("UPSTASH_REDIS_REST_URL", "")
UPSTASH_REDIS_REST_TOKEN = os.environ.get("UPSTASH_REDIS_REST_TOKEN", "")

_sync_redis_client: Optional[Redis] = None


def get_redis_sync() -> Redis:
    """
    Get sync Upstash Redis client (singleton).

    Uses standard Upstash env var names:
    - UPSTASH_REDIS_REST_URL
    - UPSTASH_REDIS_REST_TOKEN
    """
    global _sync_redis_client

    if _sync_redis_client is None:
        if not UPSTASH_REDIS_REST_URL or not UPSTASH_REDIS_REST_TOKEN:
            raise ValueError("UPSTASH_REDIS_REST_URL and UPSTASH_REDIS_REST_TOKEN must be set")
        _sync_redis_client = Redis(url=UPSTASH_REDIS_REST_URL, token=UPSTASH_REDIS_REST_TOKEN)

    return _sync_redis_client


class RedisKeys:
    """Redis key prefixes."""

    SESSION = "session:"  # session:{session_id}:{key}

    @staticmethod
    def session_key(session_id: str, key: str) -> str:
        return f"{RedisKeys.SESSION}{session_id}:{key}"


class TTL:
    """Time-to-live constants for Redis keys (seconds)."""

    CART = 86400  # 24 hours


class MemorySessionStore:
    """
    Dict-backed session store.

    Values are deep-copied on the way in and out, so callers never share
    state with the store between calls.
    """

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = copy.deepcopy(data) if data else {}

    def get(self, key: str) -> Any:
        return copy.deepcopy(self._data.get(key))

    def put(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def has(self, key: str) -> bool:
        return key in self._data

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def forget(self, prefix: str) -> None:
        for key in [k for k in self._data if k.startswith(prefix)]:
            del self._data[key]

    def keys(self) -> list:
        return list(self._data)


class RedisSessionStore:
    """
    Session store for one user session in Redis.

    Every key is namespaced by the session id and expires after `ttl`
    seconds without writes (abandoned carts).
    """

    def __init__(self, session_id: str, redis: Optional[Redis] = None, ttl: int = TTL.CART):
        if not session_id:
            raise ValueError("session_id must be a non-empty string")
        self.session_id = session_id
        self.ttl = ttl
        self._redis = redis  # Lazy initialization

    @property
    def redis(self) -> Redis:
        """Get Redis client (lazy initialization)."""
        if self._redis is None:
            try:
                self._redis = get_redis_sync()
            except ValueError as e:
                raise CartStorageError(f"Redis not available: {e}") from e
        return self._redis

    def _key(self, key: str) -> str:
        return RedisKeys.session_key(self.session_id, key)

    def get(self, key: str) -> Any:
        redis_key = self._key(key)
        try:
            data = self.redis.get(redis_key)
        except CartStorageError:
            raise
        except Exception as e:
            logger.error(f"Failed to read session key from Redis: {e}")
            raise CartStorageError(f"Cart storage unavailable: {e}") from e

        if data is None:
            return None

        try:
            return json.loads(data)
        except (json.JSONDecodeError, TypeError) as e:
            # Corrupted data - clear it and treat as absent
            logger.warning(
                f"Corrupted session data for {sanitize_id_for_logging(self.session_id)}/{sanitize_string_for_logging(key)}: {e}"
            )
            self.remove(key)
            return None

    def put(self, key: str, value: Any) -> None:
        try:
            self.redis.set(self._key(key), json.dumps(value), ex=self.ttl)
        except CartStorageError:
            raise
        except Exception as e:
            logger.error(f"Failed to write session key to Redis: {e}")
            raise CartStorageError(f"Cart storage unavailable: {e}") from e

    def has(self, key: str) -> bool:
        try:
            return self.redis.exists(self._key(key)) > 0
        except CartStorageError:
            raise
        except Exception as e:
            logger.error(f"Failed to check session key in Redis: {e}")
            raise CartStorageError(f"Cart storage unavailable: {e}") from e

    def remove(self, key: str) -> None:
        try:
            self.redis.delete(self._key(key))
        except CartStorageError:
            raise
        except Exception as e:
            logger.error(f"Failed to delete session key from Redis: {e}")
            raise CartStorageError(f"Cart storage unavailable: {e}") from e

    def forget(self, prefix: str) -> None:
        try:
            keys = self.redis.keys(f"{self._key(prefix)}*")
            if keys:
                self.redis.delete(*keys)
        except CartStorageError:
            raise
        except Exception as e:
            logger.error(f"Failed to forget session keys in Redis: {e}")
            raise CartStorageError(f"Cart storage unavailable: {e}") from e


__all__ = [
    "MemorySessionStore",
    "RedisSessionStore",
    "RedisKeys",
    "TTL",
    "get_redis_sync",
]

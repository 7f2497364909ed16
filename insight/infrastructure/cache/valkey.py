# ==============================================================================
# Valkey Cache Implementation
# ==============================================================================
"""
Valkey/Redis implementation of the Cache interface.

Provides:
- Generic key-value storage with TTL
- Pattern-based deletion (used to invalidate a site's cached stats)

Uses JSON serialization for storing dict values.
"""

import json
import logging

import redis
from redis.backoff import ExponentialBackoff
from redis.retry import Retry

from insight.base import Cache, CacheError
from insight.utils.config import get_settings
from insight.utils.retry import REDIS_RETRY_EXCEPTIONS, VALKEY_RETRIES

logger = logging.getLogger(__name__)


class ValkeyCache(Cache):
    """
    Valkey/Redis implementation of the Cache interface.

    Configured with:
    - Short socket timeouts; the cache must never stall a stats request
    - Automatic retries with exponential backoff for transient failures
    - Health check interval to keep connections alive

    All values are stored as JSON strings and deserialized on retrieval.
    Backend failures surface as CacheError.
    """

    def __init__(
        self,
        url: str | None = None,
        socket_timeout: int = 2,
        retries: int | None = None,
        health_check_interval: int = 30,
    ):
        """
        Initialize Valkey cache.

        Args:
            url: Valkey/Redis connection URL. If None, uses settings.
            socket_timeout: Socket timeout in seconds (default: 2)
            retries: Number of retries for transient failures (default: from settings)
            health_check_interval: Health check interval in seconds (default: 30)
        """
        if url is None:
            url = get_settings().valkey.url

        retry_count = retries if retries is not None else VALKEY_RETRIES
        retry_strategy = Retry(ExponentialBackoff(cap=4, base=0.1), retries=retry_count)

        self._client = redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
            retry=retry_strategy,
            retry_on_error=list(REDIS_RETRY_EXCEPTIONS),
            health_check_interval=health_check_interval,
        )
        self._url = url

    @property
    def client(self) -> redis.Redis:
        """Get the underlying Redis client for advanced operations."""
        return self._client

    def get(self, key: str) -> dict | None:
        try:
            value = self._client.get(key)
        except redis.RedisError as e:
            raise CacheError(f"Valkey GET {key} failed: {e}") from e
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            logger.warning("Failed to decode JSON for key %s", key)
            return None

    def set(self, key: str, value: dict, ttl_seconds: int | None = None) -> None:
        json_value = json.dumps(value)
        try:
            if ttl_seconds is not None:
                self._client.setex(key, ttl_seconds, json_value)
            else:
                self._client.set(key, json_value)
        except redis.RedisError as e:
            raise CacheError(f"Valkey SET {key} failed: {e}") from e

    def delete(self, key: str) -> bool:
        try:
            return self._client.delete(key) > 0
        except redis.RedisError as e:
            raise CacheError(f"Valkey DEL {key} failed: {e}") from e

    def delete_pattern(self, pattern: str) -> int:
        try:
            keys = list(self._client.scan_iter(pattern))
            if keys:
                return self._client.delete(*keys)
            return 0
        except redis.RedisError as e:
            raise CacheError(f"Valkey delete of {pattern} failed: {e}") from e

    def ping(self) -> bool:
        """
        Check if the cache is reachable.

        Returns:
            True if ping succeeds, False otherwise
        """
        try:
            return self._client.ping()
        except redis.RedisError:
            return False

    def close(self) -> None:
        """Close the connection."""
        self._client.close()

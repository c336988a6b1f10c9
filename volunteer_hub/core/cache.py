"""Redis cache manager with connection pooling and retry logic.

Used for short-lived, expiring keys such as view debounce markers.
Every operation degrades to a no-op when Redis is disabled or unreachable,
so callers must treat the cache as advisory.
"""

import json
import logging
from typing import Any, Optional

import redis
from redis.connection import ConnectionPool
from redis.exceptions import ConnectionError, RedisError, TimeoutError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from volunteer_hub.config import Settings

logger = logging.getLogger(__name__)

_redis_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((ConnectionError, TimeoutError)),
    reraise=True,
)


class CacheManager:
    """
    Redis cache manager:
    - Connection pooling
    - Retry with exponential backoff on transient connection errors
    - Graceful degradation on failures
    - Keys namespaced with CACHE_KEY_PREFIX
    """

    def __init__(self, settings: Settings):
        """Initialize cache manager with settings."""
        self.settings = settings
        self.enabled = settings.CACHE_ENABLED
        self._pool: Optional[ConnectionPool] = None
        self._client: Optional[redis.Redis] = None
        self._is_connected = False

        logger.info(f"CacheManager initialized. Enabled: {self.enabled}")

    def key(self, *parts: Any) -> str:
        """Build a namespaced cache key."""
        return ":".join([self.settings.CACHE_KEY_PREFIX, *(str(p) for p in parts)])

    def connect(self) -> None:
        """Establish Redis connection with connection pooling."""
        if not self.enabled:
            logger.info("Cache is disabled. Skipping Redis connection.")
            return

        try:
            self._pool = ConnectionPool(
                host=self.settings.REDIS_HOST,
                port=self.settings.REDIS_PORT,
                db=self.settings.REDIS_DB,
                password=self.settings.REDIS_PASSWORD or None,
                max_connections=self.settings.REDIS_MAX_CONNECTIONS,
                socket_keepalive=self.settings.REDIS_SOCKET_KEEPALIVE,
                socket_timeout=self.settings.REDIS_SOCKET_TIMEOUT,
                retry_on_timeout=self.settings.REDIS_RETRY_ON_TIMEOUT,
                health_check_interval=self.settings.REDIS_HEALTH_CHECK_INTERVAL,
                decode_responses=True,
            )
            self._client = redis.Redis(connection_pool=self._pool)

            # Test connection
            self._client.ping()
            self._is_connected = True

            logger.info(
                f"Redis cache connected successfully to {self.settings.REDIS_HOST}:{self.settings.REDIS_PORT}"
            )

        except RedisError as e:
            logger.error(f"Failed to connect to Redis cache: {e}")
            logger.warning("Cache will operate in degraded mode (no caching)")
            self._is_connected = False
            self.enabled = False

    def disconnect(self) -> None:
        """Close Redis connection and cleanup resources."""
        if self._client:
            try:
                self._client.close()
                logger.info("Redis cache connection closed")
            except RedisError as e:
                logger.error(f"Error closing Redis connection: {e}")

        if self._pool:
            self._pool.disconnect()

        self._is_connected = False

    @_redis_retry
    def set_if_absent(self, key: str, ttl: int, value: Any = 1) -> bool:
        """
        Atomically create `key` with an expiry unless it already exists.

        Returns True when the key was created by this call. When the cache is
        unavailable this returns True, i.e. callers behave as if no marker
        existed.
        """
        if not self.enabled or not self._client:
            return True

        try:
            created = self._client.set(key, json.dumps(value, default=str), nx=True, ex=ttl)
            logger.debug(f"Cache SET NX: {key} -> {bool(created)}")
            return bool(created)

        except (ConnectionError, TimeoutError):
            raise

        except RedisError as e:
            logger.warning(f"Redis error on SET NX '{key}': {e}. Continuing without cache.")
            return True

    def get_stats(self) -> dict:
        """Get cache statistics for the health endpoint."""
        if not self.enabled or not self._client:
            return {
                "enabled": False,
                "connected": False,
            }

        try:
            keyspace = self._client.info("keyspace")
            db_info = keyspace.get(f"db{self.settings.REDIS_DB}", {})
            return {
                "enabled": True,
                "connected": self._is_connected,
                "keys": db_info.get("keys", 0),
                "expires": db_info.get("expires", 0),
            }

        except RedisError as e:
            logger.error(f"Error getting cache stats: {e}")
            return {
                "enabled": True,
                "connected": False,
                "error": str(e),
            }


# Singleton instance (initialized by main.py)
_cache_manager_instance: Optional[CacheManager] = None


def get_cache_manager() -> Optional[CacheManager]:
    """Get the global cache manager instance."""
    return _cache_manager_instance


def set_cache_manager(manager: CacheManager) -> None:
    """Set the global cache manager instance."""
    global _cache_manager_instance
    _cache_manager_instance = manager

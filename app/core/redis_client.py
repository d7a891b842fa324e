"""Redis client and the availability cache helpers."""

import json
from typing import Any

import redis
import structlog

from app.config import settings

logger = structlog.get_logger()

# Global Redis client instance
_redis_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis:
    """
    Get or create Redis client instance.

    Returns:
        Redis client instance
    """
    global _redis_client

    if _redis_client is None:
        _redis_client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            username=settings.redis_username,
            password=settings.redis_password,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
            health_check_interval=30,
        )

    return _redis_client


def close_redis_connection() -> None:
    """Close Redis connection."""
    global _redis_client

    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None


class CacheManager:
    """JSON cache on Redis with every key under ``CACHE_KEY_PREFIX``.

    The cache is an optimisation only. Every helper fails open: a Redis
    error is logged and reads as a miss, so callers fall through to the
    database.
    """

    def __init__(self, redis_client: redis.Redis, prefix: str | None = None):
        """Initialize cache manager with Redis client and key namespace."""
        self.redis = redis_client
        self.prefix = settings.cache_key_prefix if prefix is None else prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}:{key}" if self.prefix else key

    def ping(self) -> bool:
        """Check if Redis answers a ping."""
        try:
            return bool(self.redis.ping())
        except redis.RedisError:
            return False

    def get_json(self, key: str) -> Any | None:
        """
        Get JSON value from cache and deserialize.

        Args:
            key: Cache key, without the namespace

        Returns:
            Deserialized object, or None on a miss or error
        """
        try:
            value = self.redis.get(self._key(key))
        except redis.RedisError as e:
            logger.warning("cache_read_failed", key=key, error=str(e))
            return None

        if value is None:
            return None
        try:
            return json.loads(value)
        except ValueError:
            logger.warning("cache_value_corrupt", key=key)
            return None

    def set_json(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """
        Serialize and store a value.

        Args:
            key: Cache key, without the namespace
            value: JSON-serializable value
            ttl: Time to live in seconds; falsy stores without expiry

        Returns:
            True if stored
        """
        payload = json.dumps(value, default=str)
        try:
            if ttl:
                self.redis.setex(self._key(key), ttl, payload)
            else:
                self.redis.set(self._key(key), payload)
        except redis.RedisError as e:
            logger.warning("cache_write_failed", key=key, error=str(e))
            return False
        return True

    def delete(self, key: str) -> bool:
        """Delete one key."""
        try:
            self.redis.delete(self._key(key))
        except redis.RedisError as e:
            logger.warning("cache_delete_failed", key=key, error=str(e))
            return False
        return True

    def delete_pattern(self, pattern: str) -> int:
        """
        Delete all keys matching a glob pattern.

        Uses SCAN so a large keyspace does not block Redis.

        Args:
            pattern: Pattern without the namespace (e.g., 'availability:*')

        Returns:
            Number of keys deleted
        """
        try:
            keys = list(self.redis.scan_iter(match=self._key(pattern), count=500))
            if not keys:
                return 0
            return int(self.redis.delete(*keys))
        except redis.RedisError as e:
            logger.warning("cache_invalidation_failed", pattern=pattern, error=str(e))
            return 0

"""
Redis caching layer for event snapshots.

Only display data is served from the cache. Booking and admission decisions
always go to the database.
"""

import json
import logging
from typing import Any, Optional

import redis.asyncio as redis
from redis.asyncio import Redis
from redis.exceptions import RedisError
from redis.exceptions import ConnectionError as RedisConnectionError

from .config import get_settings

logger = logging.getLogger(__name__)


class CacheKeyBuilder:
    """Helper class for building consistent cache keys."""

    @staticmethod
    def event_detail(event_id: str) -> str:
        """Build cache key for event details."""
        return f"event:detail:{event_id}"

    @staticmethod
    def event_stats(event_id: str) -> str:
        """Build cache key for organizer ticket statistics."""
        return f"event:stats:{event_id}"


class RedisCache:
    """Redis cache manager with connection handling and operations."""

    def __init__(self):
        self.client: Optional[Redis] = None
        self.pool: Optional[redis.ConnectionPool] = None

    async def initialize(self) -> None:
        """Initialize Redis connection pool and client."""
        settings = get_settings()

        try:
            self.pool = redis.ConnectionPool.from_url(
                settings.redis_url,
                max_connections=settings.redis_max_connections,
                retry_on_timeout=True,
                socket_keepalive=True,
                health_check_interval=30
            )

            self.client = Redis(connection_pool=self.pool)

            await self.client.ping()
            logger.info("Redis cache initialized successfully")

        except RedisConnectionError as e:
            logger.error("Failed to connect to Redis: %s", e)
            self.client = None
            raise

    async def close(self) -> None:
        """Close Redis connections."""
        if self.client:
            await self.client.aclose()
        if self.pool:
            await self.pool.disconnect()
        self.client = None
        self.pool = None
        logger.info("Redis cache connections closed")

    async def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found
        """
        if not self.client:
            logger.debug("Redis client not initialized")
            return None

        try:
            value = await self.client.get(key)
            if value:
                return json.loads(value.decode('utf-8'))
            return None
        except (RedisError, ValueError) as e:
            logger.warning("Failed to get cache key %s: %s", key, e)
            return None

    async def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[int] = None
    ) -> bool:
        """
        Set value in cache.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds

        Returns:
            True if successful, False otherwise
        """
        if not self.client:
            logger.debug("Redis client not initialized")
            return False

        try:
            serialized_value = json.dumps(value, default=str)
            if ttl:
                await self.client.setex(key, ttl, serialized_value)
            else:
                await self.client.set(key, serialized_value)
            return True
        except (RedisError, TypeError) as e:
            logger.warning("Failed to set cache key %s: %s", key, e)
            return False

    async def delete(self, *keys: str) -> bool:
        """
        Delete keys from cache.

        Returns:
            True if successful, False otherwise
        """
        if not self.client:
            return False

        try:
            await self.client.delete(*keys)
            return True
        except RedisError as e:
            logger.warning("Failed to delete cache keys %s: %s", keys, e)
            return False


# Global cache instance
cache = RedisCache()


async def init_cache() -> None:
    """Initialize the global cache instance."""
    await cache.initialize()


async def close_cache() -> None:
    """Close the global cache instance."""
    await cache.close()


def get_cache() -> RedisCache:
    """Get the global cache instance."""
    return cache


class CacheInvalidator:
    """Helper class for cache invalidation."""

    def __init__(self, cache: RedisCache):
        self.cache = cache

    async def invalidate_event(self, event_id: str) -> None:
        """Drop every cached view of one event after its counters change."""
        await self.cache.delete(
            CacheKeyBuilder.event_detail(event_id),
            CacheKeyBuilder.event_stats(event_id),
        )
        logger.debug(f"Invalidated caches for event {event_id}")


class CacheTTL:
    """Cache TTL constants (in seconds)."""

    # Remaining capacity changes with every booking, so keep this short
    EVENT_DETAIL = 15
    EVENT_STATS = 30

import json
import logging
from typing import Any, Optional

import redis

from inventory_api.config import get_settings

logger = logging.getLogger(__name__)

settings = get_settings()

# Create Redis client (connects lazily on first command)
redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)


class CacheService:
    """
    Redis cache service for read-mostly lookups such as the category list.

    Redis errors are treated as cache misses so an unavailable Redis never
    fails a request.
    """

    def __init__(self, client: redis.Redis = None, ttl: int = None, enabled: bool = None):
        self.client = client or redis_client
        self.ttl = ttl or settings.CACHE_TTL
        self.enabled = settings.CACHE_ENABLED if enabled is None else enabled

    def _make_key(self, prefix: str, key: str) -> str:
        """Create a namespaced cache key."""
        return f"{prefix}:{key}"

    def get(self, prefix: str, key: str) -> Optional[Any]:
        """
        Get a value from cache.

        Args:
            prefix: Cache key prefix (e.g., 'categories')
            key: Unique identifier

        Returns:
            Cached value or None if not found
        """
        if not self.enabled:
            return None
        cache_key = self._make_key(prefix, key)
        try:
            value = self.client.get(cache_key)
            if value:
                return json.loads(value)
            return None
        except (redis.RedisError, json.JSONDecodeError) as e:
            logger.warning(f"Cache read failed for {cache_key}: {e}")
            return None

    def set(self, prefix: str, key: str, value: Any, ttl: int = None) -> bool:
        """
        Set a value in cache with TTL.

        Returns:
            True if successful, False otherwise
        """
        if not self.enabled:
            return False
        cache_key = self._make_key(prefix, key)
        ttl = ttl or self.ttl
        try:
            serialized = json.dumps(value, default=str)
            self.client.setex(cache_key, ttl, serialized)
            return True
        except (redis.RedisError, TypeError) as e:
            logger.warning(f"Cache write failed for {cache_key}: {e}")
            return False

    def get_generation(self, prefix: str) -> Optional[int]:
        """
        Current generation number of a key namespace.

        Readers build keys from the generation they saw before loading the
        value, and writers bump it after committing. A reader that loaded
        stale data therefore fills a key no later reader will ask for.

        Returns:
            The generation (0 if never bumped) or None when caching is off
            or Redis is unreachable
        """
        if not self.enabled:
            return None
        cache_key = self._make_key(prefix, "generation")
        try:
            value = self.client.get(cache_key)
            return int(value) if value else 0
        except (redis.RedisError, ValueError) as e:
            logger.warning(f"Cache read failed for {cache_key}: {e}")
            return None

    def bump_generation(self, prefix: str) -> Optional[int]:
        """Start a new generation, orphaning every key of the previous one."""
        if not self.enabled:
            return None
        cache_key = self._make_key(prefix, "generation")
        try:
            return self.client.incr(cache_key)
        except redis.RedisError as e:
            logger.warning(f"Cache generation bump failed for {cache_key}: {e}")
            return None

    def ping(self) -> bool:
        """Check that Redis answers."""
        try:
            return bool(self.client.ping())
        except redis.RedisError:
            return False


# Singleton cache service instance
cache_service = CacheService()

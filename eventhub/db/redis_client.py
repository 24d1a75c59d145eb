"""
Redis client for EventHub.
Handles caching of event views and the per-event locks that serialize
attendance changes.
"""

import asyncio
import hashlib
import json
import logging
import time
import uuid
import weakref
from typing import Any, Dict, Optional
import redis.asyncio as redis
from redis.asyncio import Redis

logger = logging.getLogger(__name__)


class LockAcquisitionError(RuntimeError):
    """Raised when a per-event lock cannot be acquired in time."""
    pass


class RedisConnection:
    """
    Redis connection manager for EventHub.
    """

    def __init__(self):
        self.redis_client: Optional[Redis] = None
        self._initialized = False

    def initialize(self, redis_url: str):
        """
        Initialize Redis connection.

        Args:
            redis_url: Redis connection URL
        """
        try:
            self.redis_client = redis.from_url(
                redis_url,
                encoding="utf-8",
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5,
                retry_on_timeout=True,
                health_check_interval=30
            )
            self._initialized = True
            logger.info("Redis connection initialized successfully")

        except Exception as e:
            logger.error(f"Failed to initialize Redis connection: {e}")
            raise

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def health_check(self) -> bool:
        """Check Redis connection health."""
        if not self._initialized:
            return False
        try:
            return await self.redis_client.ping() is True
        except Exception as e:
            logger.error(f"Redis health check failed: {e}")
            return False

    async def close(self):
        """Close Redis connection."""
        if self.redis_client:
            await self.redis_client.aclose()
            logger.info("Redis connection closed")
        self.redis_client = None
        self._initialized = False


class CacheManager:
    """
    Cache manager for event views.
    A manager built without a Redis client is disabled: reads miss and
    writes are dropped.
    """

    def __init__(self, redis_client: Optional[Redis], cache_config: Optional[Dict[str, Any]] = None):
        self.redis = redis_client
        self.cache_config = cache_config or {}

    @property
    def enabled(self) -> bool:
        return self.redis is not None

    def _serialize(self, data: Any) -> str:
        """Serialize data for caching."""
        return json.dumps(data, default=str)

    def _deserialize(self, data: str) -> Any:
        """Deserialize cached data."""
        return json.loads(data)

    async def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None
        """
        if not self.enabled:
            return None
        try:
            value = await self.redis.get(key)
            if value:
                return self._deserialize(value)
            return None
        except Exception as e:
            logger.error(f"Failed to get cache key {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """
        Set value in cache.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds

        Returns:
            True if successful
        """
        if not self.enabled:
            return False
        try:
            await self.redis.set(key, self._serialize(value), ex=ttl)
            return True
        except Exception as e:
            logger.error(f"Failed to set cache key {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        """Delete key from cache."""
        if not self.enabled:
            return False
        try:
            await self.redis.delete(key)
            return True
        except Exception as e:
            logger.error(f"Failed to delete cache key {key}: {e}")
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """
        Delete keys matching pattern.

        Returns:
            Number of keys deleted
        """
        if not self.enabled:
            return 0
        try:
            keys = [key async for key in self.redis.scan_iter(match=pattern)]
            if keys:
                return await self.redis.delete(*keys)
            return 0
        except Exception as e:
            logger.error(f"Failed to delete cache pattern {pattern}: {e}")
            return 0

    def get_events_cache_key(self, filters: Dict[str, Optional[str]]) -> str:
        """Generate cache key for an events list, independent of filter order."""
        normalized = {key: value for key, value in sorted(filters.items()) if value}
        digest = hashlib.sha1(json.dumps(normalized).encode("utf-8")).hexdigest()
        return f"events:list:{digest}"

    def get_event_cache_key(self, event_id: int) -> str:
        """Generate cache key for single event."""
        return f"event:detail:{event_id}"

    async def cache_events_list(self, events: list, filters: Dict[str, Optional[str]]):
        """Cache events list."""
        ttl = self.cache_config.get("events_ttl", 300)
        await self.set(self.get_events_cache_key(filters), events, ttl)

    async def get_cached_events_list(self, filters: Dict[str, Optional[str]]) -> Optional[list]:
        """Get cached events list."""
        return await self.get(self.get_events_cache_key(filters))

    async def cache_event_detail(self, event: dict, event_id: int):
        """Cache event detail."""
        ttl = self.cache_config.get("event_details_ttl", 600)
        await self.set(self.get_event_cache_key(event_id), event, ttl)

    async def get_cached_event_detail(self, event_id: int) -> Optional[dict]:
        """Get cached event detail."""
        return await self.get(self.get_event_cache_key(event_id))

    async def invalidate_event_cache(self, event_id: Optional[int] = None):
        """Invalidate an event's detail entry and every list entry."""
        if event_id is not None:
            await self.delete(self.get_event_cache_key(event_id))
        await self.delete_pattern("events:list:*")

    async def invalidate_all_events(self):
        """Drop every cached event detail and list. Details embed organizer profiles."""
        await self.delete_pattern("event:detail:*")
        await self.delete_pattern("events:list:*")


class DistributedLock:
    """
    Redis lock (SET NX EX) usable as an async context manager.
    """

    def __init__(self, redis_client: Redis, lock_key: str, timeout: int = 30, blocking_timeout: int = 10):
        self.redis = redis_client
        self.lock_key = f"lock:{lock_key}"
        self.timeout = timeout
        self.blocking_timeout = blocking_timeout
        self.lock_value = uuid.uuid4().hex
        self.acquired = False

    async def acquire(self) -> bool:
        """Try to take the lock until the blocking timeout elapses."""
        end_time = time.monotonic() + self.blocking_timeout

        while time.monotonic() < end_time:
            result = await self.redis.set(self.lock_key, self.lock_value, nx=True, ex=self.timeout)
            if result:
                logger.debug(f"Distributed lock acquired: {self.lock_key}")
                return True
            await asyncio.sleep(0.05)

        logger.warning(f"Failed to acquire lock {self.lock_key} within {self.blocking_timeout}s")
        return False

    async def release(self):
        """Release the lock if it is still ours."""
        try:
            current = await self.redis.get(self.lock_key)
            if current == self.lock_value:
                await self.redis.delete(self.lock_key)
                logger.debug(f"Distributed lock released: {self.lock_key}")
        except Exception as e:
            logger.error(f"Error releasing lock {self.lock_key}: {e}")

    async def __aenter__(self):
        self.acquired = await self.acquire()
        if not self.acquired:
            raise LockAcquisitionError(f"Failed to acquire lock: {self.lock_key}")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self.acquired:
            await self.release()
            self.acquired = False


class LocalLock:
    """
    In-process asyncio lock usable as an async context manager.
    """

    def __init__(self, lock: asyncio.Lock, lock_key: str, blocking_timeout: int = 10):
        self.lock = lock
        self.lock_key = lock_key
        self.blocking_timeout = blocking_timeout

    async def __aenter__(self):
        try:
            await asyncio.wait_for(self.lock.acquire(), timeout=self.blocking_timeout)
        except asyncio.TimeoutError:
            raise LockAcquisitionError(f"Failed to acquire lock: {self.lock_key}")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.lock.release()


class LockProvider:
    """
    Hands out per-key locks.
    Uses Redis when distributed locking is enabled and a Redis connection
    exists, otherwise asyncio locks shared by the current process.
    """

    def __init__(self):
        self._local_locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = weakref.WeakValueDictionary()
        self.redis_connection: Optional[RedisConnection] = None
        self.timeout = 30
        self.blocking_timeout = 10

    def configure(self, consistency_config: Dict[str, Any], redis_connection: Optional[RedisConnection] = None):
        """Apply lock settings from configuration."""
        self.timeout = consistency_config.get("lock_timeout_seconds", 30)
        self.blocking_timeout = consistency_config.get("lock_blocking_timeout_seconds", 10)
        if consistency_config.get("enable_distributed_locks") and redis_connection is not None:
            self.redis_connection = redis_connection
            logger.info("Using Redis distributed locks for attendance")
        else:
            self.redis_connection = None
            logger.info("Using in-process locks for attendance")

    def lock(self, lock_key: str):
        """Get an async context manager guarding ``lock_key``."""
        if self.redis_connection is not None and self.redis_connection.is_initialized:
            return DistributedLock(
                self.redis_connection.redis_client, lock_key, self.timeout, self.blocking_timeout
            )

        local_lock = self._local_locks.get(lock_key)
        if local_lock is None:
            local_lock = asyncio.Lock()
            self._local_locks[lock_key] = local_lock
        return LocalLock(local_lock, lock_key, self.blocking_timeout)

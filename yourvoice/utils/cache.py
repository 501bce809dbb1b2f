"""
Cache tools
Redis when enabled and reachable, otherwise an in-process dictionary.
Values must be JSON serializable.
"""

import json
import time
from typing import Any, Optional, Dict, Tuple
import logging

import redis

from yourvoice.config import settings

logger = logging.getLogger(__name__)


class CacheManager:
    """
    Cache manager
    Prefers Redis and falls back to a process-local dictionary
    """

    def __init__(self):
        self._redis_client = None
        self._use_redis = False
        # key -> (value, expires_at_monotonic or None)
        self._fallback_cache: Dict[str, Tuple[Any, Optional[float]]] = {}

        if settings.REDIS_ENABLED:
            try:
                self._redis_client = redis.Redis(
                    host=settings.REDIS_HOST,
                    port=settings.REDIS_PORT,
                    db=settings.REDIS_DB,
                    password=settings.REDIS_PASSWORD if settings.REDIS_PASSWORD else None,
                    decode_responses=True,
                    socket_connect_timeout=2,
                    socket_timeout=2
                )
                self._redis_client.ping()
                self._use_redis = True
                logger.info("Redis cache enabled")
            except redis.RedisError as e:
                logger.warning(f"Redis connection failed, using in-memory cache: {e}")
                self._redis_client = None
                self._use_redis = False
        else:
            logger.info("Redis disabled, using in-memory cache")

    @property
    def uses_redis(self) -> bool:
        return self._use_redis

    def _get_key(self, prefix: str, key: str) -> str:
        return f"yourvoice:{prefix}:{key}"

    def set(self, prefix: str, key: str, value: Any, ttl_seconds: Optional[int] = None) -> bool:
        """
        Store a value

        Parameters:
        - prefix: namespace, e.g. 'stats'
        - key: cache key inside the namespace
        - value: JSON serializable value
        - ttl_seconds: lifetime, None keeps the value until deleted
        """
        cache_key = self._get_key(prefix, key)

        if self._use_redis and self._redis_client:
            try:
                serialized = json.dumps(value, default=str)
                if ttl_seconds:
                    self._redis_client.setex(cache_key, ttl_seconds, serialized)
                else:
                    self._redis_client.set(cache_key, serialized)
                return True
            except redis.RedisError as e:
                logger.warning(f"Redis set failed, falling back to in-memory cache: {e}")
                self._use_redis = False

        expires_at = time.monotonic() + ttl_seconds if ttl_seconds else None
        self._fallback_cache[cache_key] = (value, expires_at)
        return True

    def get(self, prefix: str, key: str) -> Optional[Any]:
        cache_key = self._get_key(prefix, key)

        if self._use_redis and self._redis_client:
            try:
                raw = self._redis_client.get(cache_key)
                return json.loads(raw) if raw is not None else None
            except redis.RedisError as e:
                logger.warning(f"Redis get failed, falling back to in-memory cache: {e}")
                self._use_redis = False

        entry = self._fallback_cache.get(cache_key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and time.monotonic() >= expires_at:
            del self._fallback_cache[cache_key]
            return None
        return value

    def delete(self, prefix: str, key: str) -> None:
        cache_key = self._get_key(prefix, key)

        if self._use_redis and self._redis_client:
            try:
                self._redis_client.delete(cache_key)
            except redis.RedisError as e:
                logger.warning(f"Redis delete failed: {e}")

        self._fallback_cache.pop(cache_key, None)

    def clear(self) -> None:
        """Drop every in-memory entry (Redis keys expire on their own)"""
        self._fallback_cache.clear()


cache_manager = CacheManager()

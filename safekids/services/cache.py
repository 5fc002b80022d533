"""Search result cache with Redis backend and in-memory fallback.

Keys are derived from the normalized query; every entry shares one TTL
(AI_CACHE_TTL_SECONDS). Expiry is the only invalidation.

Graceful degradation: if Redis is unavailable, uses cachetools.TTLCache in-memory.
"""

import hashlib
import json
import logging
import time

from cachetools import TTLCache

from safekids.config import settings

logger = logging.getLogger(__name__)


class CacheService:
    """Async cache with Redis primary and in-memory fallback."""

    KEY_PREFIX = "sk:search:"

    def __init__(self, ttl: int | None = None, maxsize: int | None = None, timer=time.monotonic):
        self.ttl = ttl or settings.ai_cache_ttl_seconds
        self._redis = None
        self._fallback = TTLCache(
            maxsize=maxsize or settings.ai_cache_max_entries, ttl=self.ttl, timer=timer,
        )
        self._available = False

    @property
    def backend(self) -> str:
        return "redis" if self._available else "memory"

    async def connect(self) -> bool:
        """Connect to Redis. Returns True on success."""
        try:
            import redis.asyncio as aioredis

            self._redis = aioredis.from_url(
                settings.redis_url,
                decode_responses=True,
                socket_connect_timeout=3,
            )
            await self._redis.ping()
            self._available = True
            return True
        except Exception as e:
            logger.warning("Redis connection failed — using in-memory fallback: %s", str(e)[:100])
            self._redis = None
            self._available = False
            return False

    async def disconnect(self):
        """Close Redis connection."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None
            self._available = False

    def make_key(self, normalized_query: str) -> str:
        """Deterministic cache key for an already-normalized query."""
        digest = hashlib.sha256(normalized_query.encode("utf-8")).hexdigest()[:32]
        return f"{self.KEY_PREFIX}{digest}"

    async def get(self, key: str) -> dict | None:
        """Read from cache. Returns None on miss."""
        if self._available and self._redis:
            try:
                data = await self._redis.get(key)
                if data:
                    logger.info("Cache HIT (Redis) | key=%s", key)
                    return json.loads(data)
            except Exception as e:
                logger.debug("Redis GET error: %s", str(e)[:100])

        data = self._fallback.get(key)
        if data is not None:
            logger.info("Cache HIT (memory) | key=%s", key)
            return data

        return None

    async def set(self, key: str, data: dict, ttl: int | None = None):
        """Write to cache with TTL."""
        ttl = ttl or self.ttl

        if self._available and self._redis:
            try:
                await self._redis.setex(key, ttl, json.dumps(data, ensure_ascii=False))
                logger.info("Cache SET (Redis) | key=%s | ttl=%ds", key, ttl)
            except Exception as e:
                logger.debug("Redis SET error: %s", str(e)[:100])

        # Always write to in-memory fallback too
        self._fallback[key] = data

    def clear(self):
        """Drop in-memory entries (Redis entries expire on their own)."""
        self._fallback.clear()


cache_service = CacheService()

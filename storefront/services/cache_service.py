# services/cache_service.py
"""
Key-value cache used for refresh tokens and the featured products list.

RedisCache talks to a real Redis server. MemoryCache is a stand-in for
local development when no REDIS_URL is configured: values live in this
process only and expiry times are not enforced.
"""

from typing import Dict, Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from storefront.utils.logger import logger


class RedisCache:
    """Cache backed by a Redis server"""

    backend = "redis"

    def __init__(self, url: str):
        self.url = url
        self.client = redis.from_url(url, decode_responses=True)

    async def get(self, key: str) -> Optional[str]:
        return await self.client.get(key)

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> None:
        await self.client.set(key, value, ex=ex)

    async def delete(self, key: str) -> bool:
        return await self.client.delete(key) > 0

    async def ping(self) -> bool:
        try:
            return bool(await self.client.ping())
        except RedisError as e:
            logger.warning(f"Redis ping failed: {e}")
            return False

    async def close(self) -> None:
        await self.client.aclose()


class MemoryCache:
    """
    In-process cache with the same interface as RedisCache.

    Limitations: `ex` is accepted and ignored, and nothing is shared
    between worker processes.
    """

    backend = "memory"

    def __init__(self):
        self._store: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._store.get(key)

    async def set(self, key: str, value: str, ex: Optional[int] = None) -> None:
        self._store[key] = value

    async def delete(self, key: str) -> bool:
        return self._store.pop(key, None) is not None

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        self._store.clear()


def build_cache(redis_url: Optional[str]):
    """Pick the cache backend for the configured URL"""
    if redis_url:
        logger.info("Using Redis cache")
        return RedisCache(redis_url)
    logger.warning("REDIS_URL not set - using in-memory cache. Entries do not expire and are not shared between processes.")
    return MemoryCache()

"""
Redis-backed cache for session listings.

Recent-session listings are read far more often than sessions are written,
so they are cached under the ``sessions:`` prefix and the whole prefix is
dropped after every successful ingestion. Without Redis the cache is a
pass-through.
"""

import asyncio
import json
from typing import Any, Awaitable, Callable, List, Optional

import redis.asyncio as redis

from tracker.config import Config
from tracker.utils.logger import setup_logger

logger = setup_logger(__name__)

LOCAL_REDIS_URL = 'redis://localhost:6379'


def resolve_redis_url(redis_url: Optional[str] = None) -> Optional[str]:
    """
    Pick the Redis URL to connect to, or None to run without a cache.

    Production (DEBUG off) only accepts TLS URLs with credentials. In
    development an unset URL falls back to a local server.
    """
    url = redis_url if redis_url is not None else Config.REDIS_URL
    if not url:
        if Config.DEBUG:
            logger.warning(f"REDIS_URL not set, using {LOCAL_REDIS_URL} (development only)")
            return LOCAL_REDIS_URL
        logger.warning("REDIS_URL not set; session listings will not be cached")
        return None

    if Config.DEBUG:
        return url

    if not url.startswith('rediss://'):
        logger.error("Production Redis must use the rediss:// (TLS) scheme; cache disabled")
        return None
    if '@' not in url:
        logger.error("Production Redis URL must include credentials; cache disabled")
        return None
    return url


async def connect_redis(redis_url: Optional[str] = None) -> Optional['redis.Redis']:
    """Connected client, or None when Redis is not configured or unreachable"""
    url = resolve_redis_url(redis_url)
    if not url:
        return None

    try:
        client = redis.from_url(url, decode_responses=True)
        await client.ping()
    except Exception as e:
        logger.error(f"Failed to connect to Redis: {e}")
        return None

    logger.info("Connected to Redis for session listing cache")
    return client


class SessionCache:
    """Caches session listings and invalidates them on writes"""

    def __init__(self, redis_client=None, ttl: Optional[int] = None, prefix: Optional[str] = None):
        self.redis_client = redis_client
        self.ttl = ttl or Config.SESSION_CACHE_TTL
        self.prefix = prefix or Config.SESSION_CACHE_PREFIX
        self._connect_attempted = redis_client is not None
        self._connect_lock = asyncio.Lock()

    async def _get_redis_client(self):
        """Get Redis client. Returns None if Redis is unavailable."""
        if self._connect_attempted:
            return self.redis_client
        async with self._connect_lock:
            if not self._connect_attempted:
                self.redis_client = await connect_redis()
                self._connect_attempted = True
        return self.redis_client

    def listing_key(self, limit: int) -> str:
        return f"{self.prefix}recent:{limit}"

    async def get_recent_sessions(
        self,
        loader: Callable[[], Awaitable[List[Any]]],
        limit: int
    ) -> List[Any]:
        """Return the cached listing, loading and caching it on a miss"""
        client = await self._get_redis_client()
        key = self.listing_key(limit)

        if client:
            try:
                cached = await client.get(key)
                if cached:
                    logger.debug(f"Cache hit for {key}")
                    return json.loads(cached)
            except Exception as e:
                logger.warning(f"Failed to read {key} from Redis: {e}")

        data = await loader()

        if client:
            try:
                await client.set(key, json.dumps(data, default=str), ex=self.ttl)
            except Exception as e:
                logger.warning(f"Failed to cache {key}: {e}")

        return data

    async def invalidate_session_listings(self) -> int:
        """Drop every cached session listing. Returns the number of keys removed."""
        client = await self._get_redis_client()
        if not client:
            return 0

        deleted = 0
        async for key in client.scan_iter(match=f"{self.prefix}*"):
            deleted += await client.delete(key)
        logger.info(f"Invalidated {deleted} cached session listing(s)")
        return deleted

    async def close(self):
        if self.redis_client is not None:
            await self.redis_client.aclose()

"""
Redis-backed job store

Primitives only (list push/pop, TTL'd key/value). Key layout and queue
policy live in JobQueue; the suggestion cache shares the same store.

Atomicity: RPOP is a single Redis command, so one pushed job is returned to
at most one caller even when many worker processes poll the same list.

Every Redis failure is re-raised as QueueUnavailableError so workers can
back off instead of crashing.
"""
import functools
import logging
from typing import Optional

import redis.asyncio as redis
from redis.exceptions import RedisError

from curator.errors import QueueUnavailableError

logger = logging.getLogger(__name__)


def _store_call(func):
    """Translate Redis client errors into QueueUnavailableError"""
    @functools.wraps(func)
    async def wrapper(self, *args, **kwargs):
        if self.redis is None:
            raise QueueUnavailableError("Job store is not connected")
        try:
            return await func(self, *args, **kwargs)
        except RedisError as e:
            raise QueueUnavailableError(f"Job store unavailable: {e}") from e
    return wrapper


class JobStore:
    """
    Thin async wrapper around one Redis connection pool.

    Lifecycle is explicit: construct, `await connect()`, use, `await close()`
    (or use as an async context manager). A pre-built client can be passed
    for tests.
    """

    def __init__(self, redis_url: str = "redis://localhost:6379", client=None):
        self.redis_url = redis_url
        self.redis = client

    async def connect(self):
        """Initialize Redis connection"""
        if self.redis is None:
            self.redis = redis.from_url(self.redis_url, decode_responses=True)
        try:
            await self.redis.ping()
        except RedisError as e:
            raise QueueUnavailableError(f"Cannot reach Redis at {self.redis_url}: {e}") from e
        logger.info("✅ Job store connected")

    async def close(self):
        """Close Redis connection"""
        if self.redis is not None:
            await self.redis.aclose()
            self.redis = None

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    @_store_call
    async def push(self, key: str, value: str) -> int:
        """LPUSH: newest at the head, so RPOP yields FIFO order"""
        return await self.redis.lpush(key, value)

    @_store_call
    async def pop(self, key: str) -> Optional[str]:
        """Atomic remove-and-return of the oldest element, or None"""
        return await self.redis.rpop(key)

    @_store_call
    async def length(self, key: str) -> int:
        return await self.redis.llen(key)

    @_store_call
    async def put(self, key: str, value: str, ttl: Optional[int] = None):
        """SET with optional expiry; overwrites (last write wins)"""
        await self.redis.set(key, value, ex=ttl)

    @_store_call
    async def get(self, key: str) -> Optional[str]:
        return await self.redis.get(key)

    @_store_call
    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return await self.redis.delete(*keys)

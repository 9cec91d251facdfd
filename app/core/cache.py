import json
from typing import Any
from cachetools import TTLCache
import redis.asyncio as aioredis
from .config import settings

class Cache:
    """
    Thin abstraction over Redis/in-memory so swapping is one flag away.
    Each instance has its own TTL; Redis keys are namespaced by `prefix`.
    Calls are awaited so the Redis backend never blocks the event loop.
    """
    def __init__(self, ttl_seconds: int, prefix: str = "", maxsize: int = 4096, backend=None):
        self.ttl_seconds = ttl_seconds
        self.prefix = prefix
        self._local = TTLCache(maxsize=maxsize, ttl=ttl_seconds)
        self.backend = backend

    @classmethod
    def from_settings(cls, ttl_seconds: int, prefix: str = "") -> "Cache":
        backend = None
        if settings.USE_REDIS:
            backend = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
        return cls(ttl_seconds, prefix=prefix, backend=backend)

    async def get(self, key: str) -> Any | None:
        if self.backend is not None:
            return await self.backend.get(self.prefix + key)
        return self._local.get(key)

    async def set(self, key: str, value: str) -> None:
        if self.backend is not None:
            await self.backend.setex(self.prefix + key, self.ttl_seconds, value)
        else:
            self._local[key] = value

    async def incr(self, key: str) -> int:
        """Count a hit on `key` and return the new total."""
        if self.backend is not None:
            async with self.backend.pipeline(transaction=True) as pipe:
                pipe.incr(self.prefix + key)
                pipe.expire(self.prefix + key, self.ttl_seconds)
                count, _ = await pipe.execute()
            return int(count)
        count = int(self._local.get(key, 0)) + 1
        self._local[key] = count
        return count

    async def get_json(self, key: str) -> Any | None:
        raw = await self.get(key)
        return json.loads(raw) if raw is not None else None

    async def set_json(self, key: str, value: Any) -> None:
        await self.set(key, json.dumps(value, separators=(',',':')))

    async def aclose(self) -> None:
        if self.backend is not None:
            await self.backend.aclose()
            self.backend = None

# Rate-limit counters; a minute bucket never needs to outlive two minutes
rate_limit_cache = Cache.from_settings(120, prefix="rate:")

from typing import Optional
from redis.asyncio import Redis
from newsfeed.config import settings

class RedisService:
    """Thin async redis wrapper; every call is a no-op when redis is not configured"""

    def __init__(self, url: Optional[str] = None):
        url = url or settings.redis_url
        self.redis: Optional[Redis] = Redis.from_url(url, decode_responses=True) if url else None

    @property
    def enabled(self) -> bool:
        return self.redis is not None

    async def set(self, key: str, value: str, expire: int = None):
        """Set a key with optional expiration in seconds"""
        if self.redis is None:
            return
        await self.redis.set(name=key, value=value, ex=expire)

    async def get(self, key: str) -> Optional[str]:
        if self.redis is None:
            return None
        return await self.redis.get(key)

    async def delete(self, key: str):
        if self.redis is None:
            return
        await self.redis.delete(key)

    async def close(self):
        if self.redis is not None:
            await self.redis.aclose()

import redis.asyncio as redis
from dashboard.config import settings
from typing import Optional


class RedisClient:
    """Shared connection used by the event cache and the rate limiter; absent when redis is disabled or down."""

    def __init__(self, host: str = settings.redis_host, port: int = settings.redis_port):
        self.url = f"redis://{host}:{port}"
        self.redis: Optional[redis.Redis] = None

    @property
    def connected(self) -> bool:
        return self.redis is not None

    async def connect(self):
        self.redis = await redis.from_url(self.url, encoding="utf-8", decode_responses=True)

    async def ping(self) -> bool:
        return await self.redis.ping()

    async def close(self):
        if self.redis:
            await self.redis.close()
            self.redis = None

    async def get(self, key: str) -> Optional[str]:
        return await self.redis.get(key)

    async def set(self, key: str, value: str, ex: Optional[int] = None):
        await self.redis.set(key, value, ex=ex)

    async def incr(self, key: str) -> int:
        return await self.redis.incr(key)

    async def expire(self, key: str, seconds: int):
        await self.redis.expire(key, seconds)


redis_client = RedisClient()

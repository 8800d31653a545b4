"""Redis Idempotency Store

Tracks processed webhook events and per-event processing locks.
"""

import redis.asyncio as redis
from src.app.services.idempotency_store import IdempotencyStore


def create_redis_client(url: str) -> redis.Redis:
    return redis.from_url(url, decode_responses=True)


class RedisIdempotencyStore(IdempotencyStore):
    """
    Keys:
        {prefix}processed:{event_id}   set once an event was fully handled
        {prefix}processing:{event_id}  short lock held while handling it
    """

    def __init__(self, client: redis.Redis, prefix: str = ""):
        self.client = client
        self.prefix = prefix

    def _processed_key(self, event_id: str) -> str:
        return f"{self.prefix}processed:{event_id}"

    def _processing_key(self, event_id: str) -> str:
        return f"{self.prefix}processing:{event_id}"

    async def is_processed(self, event_id: str) -> bool:
        return await self.client.exists(self._processed_key(event_id)) > 0

    async def acquire(self, event_id: str, ttl_seconds: int) -> bool:
        acquired = await self.client.set(self._processing_key(event_id), "1", nx=True, ex=ttl_seconds)
        return bool(acquired)

    async def release(self, event_id: str) -> None:
        await self.client.delete(self._processing_key(event_id))

    async def mark_processed(self, event_id: str, ttl_seconds: int) -> None:
        await self.client.set(self._processed_key(event_id), "1", ex=ttl_seconds)

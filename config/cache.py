# config/cache.py
from typing import Optional
from redis.asyncio import Redis, from_url
from config.settings import settings

# Shared by the rate limiter and, when JOB_STORE=redis, the job store.
_client: Optional[Redis] = None


async def get_redis(url: Optional[str] = None) -> Redis:
    global _client
    if _client is None:
        client = from_url(
            url or settings.REDIS_URL,
            encoding="utf-8",
            decode_responses=False,  # job store decodes its own fields
            socket_keepalive=True,
            health_check_interval=30,
        )
        # Fail fast on startup if Redis is unreachable.
        await client.ping()
        _client = client
    return _client


async def close_redis() -> None:
    global _client
    if _client is not None:
        client, _client = _client, None
        await client.aclose()

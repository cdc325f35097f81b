from functools import lru_cache

from redis.asyncio import Redis

from app.core.settings import settings

REDIS_CONNECT_TIMEOUT_SECONDS = 2


@lru_cache(maxsize=1)
def get_redis_client() -> Redis:
    """Shared client for readiness probes. Rate-limit counters go through slowapi's own storage."""
    return Redis.from_url(
        settings.redis_url,
        decode_responses=True,
        socket_connect_timeout=REDIS_CONNECT_TIMEOUT_SECONDS,
    )


async def close_redis_client() -> None:
    if get_redis_client.cache_info().currsize:
        await get_redis_client().aclose()
        get_redis_client.cache_clear()

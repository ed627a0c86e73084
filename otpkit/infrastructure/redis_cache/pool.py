from __future__ import annotations

from typing import Optional

from redis.asyncio import Redis

from otpkit.settings import get_settings

_client: Optional[Redis] = None


def get_redis() -> Redis:
    """
    Lazy process-wide Redis client built from REDIS_URL.
    decode_responses=True -> hash fields come back as str.
    """
    global _client
    if _client is None:
        settings = get_settings()
        _client = Redis.from_url(
            settings.redis_url,
            encoding="utf-8",
            decode_responses=True,
            socket_timeout=settings.redis_socket_timeout,
            socket_connect_timeout=settings.redis_socket_timeout,
        )
    return _client


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None

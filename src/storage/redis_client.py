"""Redis client used by the rate limiter and the health check."""

from __future__ import annotations

from functools import lru_cache
from typing import Optional, Tuple

from redis import Redis
from redis.exceptions import RedisError

from src.core.config import get_settings


def build_client(redis_url: str, *, socket_timeout_seconds: float) -> Redis:
    # Consulted on every request by the rate limit middleware.
    return Redis.from_url(
        redis_url,
        decode_responses=True,
        socket_timeout=socket_timeout_seconds,
        socket_connect_timeout=socket_timeout_seconds,
    )


@lru_cache(maxsize=1)
def get_client() -> Redis:
    settings = get_settings()
    return build_client(settings.redis_url, socket_timeout_seconds=settings.redis_socket_timeout_seconds)


def test_connection() -> Tuple[bool, Optional[str]]:
    try:
        get_client().ping()
    except RedisError as exc:
        return False, exc.__class__.__name__
    return True, None

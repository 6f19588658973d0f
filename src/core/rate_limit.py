"""Per-IP fixed-window rate limiting for the HTTP middleware."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from threading import Lock
import time
from typing import Callable, Dict, Optional, Protocol, Tuple

from redis import Redis
from redis.exceptions import RedisError

from src.core.config import get_settings
from src.core.logger import get_logger
from src.storage.redis_client import get_client


REDIS_KEY_TEMPLATE = "roomblog:ratelimit:ip:{ip}:{window_id}"

logger = get_logger("roomblog.rate_limit")


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_seconds: int


class IPRateLimiter(Protocol):
    def check(self, *, ip: str) -> RateLimitDecision:
        """Count one request for ``ip`` and decide whether it may proceed."""


class _FixedWindowLimiter:
    def __init__(
        self,
        *,
        requests_per_window: int,
        window_seconds: int,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if requests_per_window <= 0:
            raise ValueError("requests_per_window must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self._limit = requests_per_window
        self._window = window_seconds
        self._clock = clock

    def _window_position(self) -> Tuple[int, int]:
        now = int(self._clock())
        return now // self._window, self._window - (now % self._window)

    def _decision(self, count: int, reset_seconds: int) -> RateLimitDecision:
        return RateLimitDecision(
            allowed=count <= self._limit,
            limit=self._limit,
            remaining=max(self._limit - count, 0),
            reset_seconds=reset_seconds,
        )


class InMemoryIPRateLimiter(_FixedWindowLimiter):
    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._lock = Lock()
        self._counts: Dict[Tuple[str, int], int] = {}

    def check(self, *, ip: str) -> RateLimitDecision:
        window_id, reset_seconds = self._window_position()
        with self._lock:
            for stale in [key for key in self._counts if key[1] < window_id]:
                del self._counts[stale]
            count = self._counts.get((ip, window_id), 0) + 1
            self._counts[(ip, window_id)] = count
        return self._decision(count, reset_seconds)


class RedisIPRateLimiter(_FixedWindowLimiter):
    def __init__(self, *, redis_client: Optional[Redis] = None, **kwargs) -> None:
        super().__init__(**kwargs)
        self._redis = redis_client if redis_client is not None else get_client()

    def check(self, *, ip: str) -> RateLimitDecision:
        window_id, reset_seconds = self._window_position()
        key = REDIS_KEY_TEMPLATE.format(ip=ip, window_id=window_id)
        try:
            count = int(self._redis.incr(key))
            if count == 1:
                self._redis.expire(key, self._window + 1)
        except RedisError as exc:
            # Fail open while redis is unavailable.
            logger.warning("rate_limit_backend_unavailable", error=str(exc))
            return self._decision(0, reset_seconds)
        return self._decision(count, reset_seconds)


@lru_cache(maxsize=1)
def get_ip_rate_limiter() -> IPRateLimiter:
    settings = get_settings()
    options = {
        "requests_per_window": settings.ip_rate_limit_requests_per_window,
        "window_seconds": settings.ip_rate_limit_window_seconds,
    }
    if settings.env.lower() in {"prod", "production"}:
        return RedisIPRateLimiter(**options)
    return InMemoryIPRateLimiter(**options)


def reset_ip_rate_limiter_cache() -> None:
    get_ip_rate_limiter.cache_clear()

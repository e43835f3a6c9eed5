"""Fixed-window rate limiting on a shared Redis counter."""

import logging
import time
from dataclasses import dataclass
from typing import Optional

from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitRule:
    limit: int
    window_ms: int


RATE_LIMIT_PRESETS = {
    # Reserved for a sign-in route; sessions are issued upstream and no route here uses it
    "auth": RateLimitRule(limit=5, window_ms=60_000),
    "api": RateLimitRule(limit=100, window_ms=60_000),
    "search": RateLimitRule(limit=30, window_ms=60_000),
    "upload": RateLimitRule(limit=10, window_ms=300_000),
}


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset_at: float  # epoch seconds

    @property
    def retry_after(self) -> int:
        return max(0, int(self.reset_at - time.time()) + 1)


class RateLimiter:
    """Counts requests per key in a TTL-bounded window.

    The counter store is best-effort: when Redis cannot be reached the
    request is allowed.
    """

    def __init__(self, client, enabled: bool = True, prefix: str = "rate_limit"):
        self.client = client
        self.enabled = enabled
        self.prefix = prefix

    def check(self, key: str, limit: int, window_ms: int) -> RateLimitResult:
        now = time.time()
        if not self.enabled or self.client is None:
            return RateLimitResult(True, limit, limit, now + window_ms / 1000)

        redis_key = f"{self.prefix}:{key}"
        try:
            pipe = self.client.pipeline()
            pipe.incr(redis_key)
            pipe.pttl(redis_key)
            count, ttl_ms = pipe.execute()

            if ttl_ms is None or ttl_ms < 0:
                # First hit in this window (or a key that lost its TTL)
                self.client.pexpire(redis_key, window_ms)
                ttl_ms = window_ms
        except (RedisError, OSError) as e:
            logger.warning(f"Rate limiter unavailable, allowing request for {key}: {e}")
            return RateLimitResult(True, limit, limit, now + window_ms / 1000)

        count = int(count)
        return RateLimitResult(
            allowed=count <= limit,
            limit=limit,
            remaining=max(0, limit - count),
            reset_at=now + int(ttl_ms) / 1000,
        )


def client_ip(headers, peer: Optional[str]) -> str:
    """Best guess of the caller's address behind proxies."""
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    for header in ("x-real-ip", "x-client-ip"):
        if headers.get(header):
            return headers[header].strip()
    return peer or "anonymous"

"""Fixed-window rate limiting for mutating endpoints.

The limiter is constructed once at application startup, stored on
``app.state`` and closed at shutdown. It counts in Redis when a client is
supplied and otherwise in a lock-guarded in-process table.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from threading import Lock

import redis

from devlink.core.settings import settings

logger = logging.getLogger(__name__)


@dataclass
class _Window:
    count: int
    reset_at: float


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a single rate-limit check."""

    allowed: bool
    remaining: int
    reset_at: float | None


class RateLimiter:
    """Count requests per identifier within a fixed time window."""

    def __init__(self, redis_client: redis.Redis | None = None) -> None:
        self._redis = redis_client
        self._windows: dict[str, _Window] = {}
        self._lock = Lock()

    @classmethod
    def from_settings(cls) -> RateLimiter:
        """Build a limiter backed by Redis when ``RATE_LIMIT_REDIS_URL`` is set."""
        if settings.rate_limit_redis_url:
            return cls(redis.from_url(settings.rate_limit_redis_url))
        return cls()

    def check(self, identifier: str, limit: int, window_seconds: int) -> RateLimitResult:
        """Record one request for ``identifier`` and report whether it is allowed."""
        if self._redis is not None:
            return self._check_redis(identifier, limit, window_seconds)

        now = time.time()
        with self._lock:
            self._purge(now)
            window = self._windows.get(identifier)
            if window is None or now > window.reset_at:
                window = _Window(count=0, reset_at=now + window_seconds)
                self._windows[identifier] = window
            if window.count >= limit:
                return RateLimitResult(False, 0, window.reset_at)
            window.count += 1
            return RateLimitResult(True, max(0, limit - window.count), window.reset_at)

    def _check_redis(self, identifier: str, limit: int, window_seconds: int) -> RateLimitResult:
        key = f"ratelimit:{identifier}"
        pipe = self._redis.pipeline()
        pipe.incr(key)
        pipe.expire(key, int(window_seconds), nx=True)
        pipe.ttl(key)
        count, _, ttl = pipe.execute()
        reset_at = time.time() + max(int(ttl), 0)
        if int(count) > limit:
            return RateLimitResult(False, 0, reset_at)
        return RateLimitResult(True, max(0, limit - int(count)), reset_at)

    def remaining(self, identifier: str, limit: int) -> int:
        """Return how many requests ``identifier`` may still make in its window."""
        if self._redis is not None:
            used = self._redis.get(f"ratelimit:{identifier}")
            return max(0, limit - int(used or 0))
        with self._lock:
            window = self._windows.get(identifier)
            if window is None or time.time() > window.reset_at:
                return limit
            return max(0, limit - window.count)

    def reset_at(self, identifier: str) -> float | None:
        """Return when the current window of ``identifier`` ends, if one is open."""
        if self._redis is not None:
            ttl = int(self._redis.ttl(f"ratelimit:{identifier}"))
            # Negative TTL: key missing or without expiry.
            return time.time() + ttl if ttl >= 0 else None
        with self._lock:
            window = self._windows.get(identifier)
            return window.reset_at if window else None

    def _purge(self, now: float) -> None:
        expired = [key for key, window in self._windows.items() if now > window.reset_at]
        for key in expired:
            del self._windows[key]

    def close(self) -> None:
        """Release the backing store."""
        with self._lock:
            self._windows.clear()
        if self._redis is not None:
            try:
                self._redis.close()
            except redis.RedisError:
                logger.warning("Error closing rate limiter redis connection", exc_info=True)
            self._redis = None

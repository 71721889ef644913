"""Tests for the fixed-window rate limiter."""

from unittest.mock import MagicMock

import redis

from devlink.services import rate_limit
from devlink.services.rate_limit import RateLimiter


class TestInProcessLimiter:
    """Lock-guarded in-process windows."""

    def test_requests_over_the_limit_are_rejected(self):
        limiter = RateLimiter()

        assert limiter.check("toggle:a", 2, 60).allowed is True
        assert limiter.check("toggle:a", 2, 60).allowed is True
        denied = limiter.check("toggle:a", 2, 60)

        assert denied.allowed is False
        assert denied.remaining == 0
        assert limiter.remaining("toggle:a", 2) == 0

    def test_identifiers_are_counted_separately(self):
        limiter = RateLimiter()
        limiter.check("toggle:a", 1, 60)

        assert limiter.check("toggle:b", 1, 60).allowed is True
        assert limiter.remaining("toggle:c", 5) == 5

    def test_window_expiry_resets_the_count(self, monkeypatch):
        now = [1_000.0]
        monkeypatch.setattr(rate_limit.time, "time", lambda: now[0])
        limiter = RateLimiter()

        limiter.check("toggle:a", 1, 10)
        assert limiter.check("toggle:a", 1, 10).allowed is False
        assert limiter.reset_at("toggle:a") == 1_010.0

        now[0] = 1_011.0
        assert limiter.check("toggle:a", 1, 10).allowed is True

    def test_close_clears_windows(self):
        limiter = RateLimiter()
        limiter.check("toggle:a", 1, 60)

        limiter.close()

        assert limiter.reset_at("toggle:a") is None


class TestRedisLimiter:
    """Redis-backed counting with a mocked client."""

    def _limiter(self, count: int, ttl: int = 42) -> tuple[RateLimiter, MagicMock]:
        redis_mock = MagicMock()
        redis_mock.pipeline.return_value.execute.return_value = [count, True, ttl]
        return RateLimiter(redis_mock), redis_mock

    def test_counts_within_limit_are_allowed(self):
        limiter, redis_mock = self._limiter(count=1)

        result = limiter.check("toggle:a", 3, 60)

        assert result.allowed is True
        assert result.remaining == 2
        pipe = redis_mock.pipeline.return_value
        pipe.incr.assert_called_with("ratelimit:toggle:a")
        pipe.expire.assert_called_with("ratelimit:toggle:a", 60, nx=True)

    def test_counts_over_limit_are_rejected(self):
        limiter, _ = self._limiter(count=4)
        assert limiter.check("toggle:a", 3, 60).allowed is False

    def test_close_swallows_redis_errors(self):
        limiter, redis_mock = self._limiter(count=1)
        redis_mock.close.side_effect = redis.RedisError("gone")

        limiter.close()

        redis_mock.close.assert_called_once()

    def test_reset_at_reads_the_key_ttl(self, monkeypatch):
        limiter, redis_mock = self._limiter(count=1)
        redis_mock.ttl.return_value = 30
        monkeypatch.setattr(rate_limit.time, "time", lambda: 1000.0)

        assert limiter.reset_at("toggle:a") == 1030.0
        redis_mock.ttl.assert_called_with("ratelimit:toggle:a")

    def test_reset_at_is_none_without_a_window(self):
        limiter, redis_mock = self._limiter(count=1)
        redis_mock.ttl.return_value = -2

        assert limiter.reset_at("toggle:a") is None

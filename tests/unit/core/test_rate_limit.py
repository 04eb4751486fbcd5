"""Unit tests for the fixed-window rate limiter."""

from __future__ import annotations

import threading

from app.core.rate_limit import DEFAULT_LIMIT, FixedWindowRateLimiter, RateLimitConfig

from tests.helpers.mock_factories import FakeClock


def _limiter(requests: int = 3, window: int = 60) -> tuple[FixedWindowRateLimiter, FakeClock]:
    clock = FakeClock()
    config = RateLimitConfig(requests=requests, window_seconds=window)
    return FixedWindowRateLimiter(config, clock), clock


class TestFirstRequest:
    """A client's first request opens a new window."""

    def test_allowed_with_max_minus_one_remaining(self):
        limiter, _ = _limiter(requests=3)
        result = limiter.check("1.2.3.4")

        assert result.allowed is True
        assert result.remaining == 2
        assert result.reset_in == 60

    def test_default_limit_is_100_per_minute(self):
        limiter = FixedWindowRateLimiter()
        assert limiter.config == DEFAULT_LIMIT
        assert limiter.check("client").remaining == 99


class TestWithinWindow:
    """Requests inside a live window."""

    def test_counts_down_to_zero_then_denies(self):
        limiter, _ = _limiter(requests=3)

        remaining = [limiter.check("c").remaining for _ in range(3)]
        denied = limiter.check("c")

        assert remaining == [2, 1, 0]
        assert denied.allowed is False
        assert denied.remaining == 0

    def test_denied_requests_do_not_grow_count(self):
        limiter, _ = _limiter(requests=2)
        for _ in range(10):
            limiter.check("c")

        window = limiter.get_window("c")
        assert window is not None
        assert window.count == 2

    def test_reset_in_shrinks_with_time(self):
        limiter, clock = _limiter(requests=5, window=60)
        limiter.check("c")
        clock.advance(45)

        assert limiter.check("c").reset_in == 15

    def test_clients_are_independent(self):
        limiter, _ = _limiter(requests=1)
        limiter.check("a")

        assert limiter.check("a").allowed is False
        assert limiter.check("b").allowed is True


class TestWindowExpiry:
    """Behaviour once the window has elapsed."""

    def test_expired_window_resets(self):
        limiter, clock = _limiter(requests=1, window=60)
        limiter.check("c")
        assert limiter.check("c").allowed is False

        clock.advance(60)
        result = limiter.check("c")

        assert result.allowed is True
        assert result.remaining == 0
        assert limiter.get_window("c").count == 1  # type: ignore[union-attr]

    def test_reset_clears_all_windows(self):
        limiter, _ = _limiter(requests=1)
        limiter.check("a")
        limiter.reset()

        assert limiter.get_window("a") is None
        assert limiter.check("a").allowed is True


class TestConcurrency:
    """Increments are atomic across threads."""

    def test_no_lost_updates(self):
        limiter, _ = _limiter(requests=1000)
        allowed: list[bool] = []
        lock = threading.Lock()

        def hammer():
            for _ in range(100):
                result = limiter.check("shared")
                with lock:
                    allowed.append(result.allowed)

        threads = [threading.Thread(target=hammer) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert allowed.count(True) == 800
        assert limiter.get_window("shared").count == 800  # type: ignore[union-attr]

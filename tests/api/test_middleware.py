"""Tests for RateLimiter and RequestLogger."""

import logging

from axion.api.middleware import RateLimiter, RequestLogger
from axion.routing import PatternRouter


class TestRateLimiter:
    """Tests for the sliding-window rate limiter."""

    def test_allows_up_to_limit(self, clock) -> None:
        limiter = RateLimiter(max_requests=2, window_seconds=60, clock=clock)
        assert limiter.is_allowed("a") is True
        assert limiter.is_allowed("a") is True
        assert limiter.is_allowed("a") is False

    def test_clients_are_independent(self, clock) -> None:
        limiter = RateLimiter(max_requests=1, window_seconds=60, clock=clock)
        assert limiter.is_allowed("a") is True
        assert limiter.is_allowed("b") is True
        assert limiter.is_allowed("a") is False

    def test_window_slides(self, clock) -> None:
        limiter = RateLimiter(max_requests=1, window_seconds=60, clock=clock)
        assert limiter.is_allowed("a") is True
        clock.advance(30)
        assert limiter.is_allowed("a") is False
        clock.advance(31)
        assert limiter.is_allowed("a") is True

    def test_rejected_requests_do_not_extend_window(self, clock) -> None:
        limiter = RateLimiter(max_requests=1, window_seconds=10, clock=clock)
        limiter.is_allowed("a")
        for _ in range(5):
            clock.advance(1)
            limiter.is_allowed("a")
        clock.advance(5)
        assert limiter.is_allowed("a") is True

    def test_retry_after(self, clock) -> None:
        limiter = RateLimiter(max_requests=1, window_seconds=60, clock=clock)
        assert limiter.retry_after("a") == 0
        limiter.is_allowed("a")
        clock.advance(20)
        assert limiter.retry_after("a") == 41


class TestRequestLogger:
    """Tests for the request-logging dispatcher middleware."""

    def test_counts_visits_and_continues(self, clock, caplog) -> None:
        router = PatternRouter()
        router.get("/api/users/:id", lambda request, params: None)
        match = router.match("GET", "/api/users/9")

        request_logger = RequestLogger(clock=clock)
        with caplog.at_level(logging.INFO, logger="axion.api.middleware"):
            assert request_logger(None, match) is True
            clock.advance(5)
            assert request_logger(None, match) is True

        snapshot = request_logger.snapshot()
        assert snapshot["total_visits"] == 2
        assert snapshot["last_activity"] == clock.now

        record = caplog.records[-1]
        assert record.getMessage() == "Dispatching request"
        assert record.path_pattern == "/api/users/:id"
        assert record.params == {"id": "9"}

    def test_fresh_snapshot(self) -> None:
        assert RequestLogger().snapshot() == {"total_visits": 0, "last_activity": None}


class TestRateLimiterSweep:
    """Idle clients are dropped once per window."""

    def test_idle_clients_are_forgotten(self, clock) -> None:
        limiter = RateLimiter(max_requests=5, window_seconds=60, clock=clock)
        for client_id in ("a", "b", "c"):
            limiter.is_allowed(client_id)
        assert limiter.tracked_clients == 3

        clock.advance(61)
        limiter.is_allowed("d")
        assert limiter.tracked_clients == 1

    def test_active_clients_survive_sweep(self, clock) -> None:
        limiter = RateLimiter(max_requests=5, window_seconds=60, clock=clock)
        limiter.is_allowed("old")
        clock.advance(30)
        limiter.is_allowed("recent")
        clock.advance(31)
        limiter.is_allowed("new")
        assert limiter.tracked_clients == 2
        assert limiter.retry_after("recent") >= 1

    def test_no_sweep_inside_window(self, clock) -> None:
        limiter = RateLimiter(max_requests=5, window_seconds=60, clock=clock)
        limiter.is_allowed("a")
        clock.advance(59)
        limiter.is_allowed("b")
        assert limiter.tracked_clients == 2

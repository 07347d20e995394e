"""Tests for the fixed-window RateLimiter."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from nexora_auth.security.rate_limiter import RateLimiter


def test_window_scenario(clock):
    limiter = RateLimiter(window_ms=1000, max_requests=2, clock=clock)
    start = clock.now

    assert limiter.is_allowed("login:a") is True
    clock.now = start + 0.1
    assert limiter.is_allowed("login:a") is True
    clock.now = start + 0.2
    assert limiter.is_allowed("login:a") is False
    clock.now = start + 1.001
    assert limiter.is_allowed("login:a") is True


def test_admits_max_requests_per_window(clock):
    limiter = RateLimiter(window_ms=60_000, max_requests=5, clock=clock)

    assert [limiter.is_allowed("k") for _ in range(7)] == [True] * 5 + [False] * 2

    clock.advance(61)
    assert [limiter.is_allowed("k") for _ in range(6)] == [True] * 5 + [False]


def test_rejection_does_not_increment_count(clock):
    limiter = RateLimiter(window_ms=60_000, max_requests=1, clock=clock)
    limiter.is_allowed("k")
    for _ in range(5):
        limiter.is_allowed("k")
    assert limiter.remaining("k") == 0


def test_keys_are_independent(clock):
    limiter = RateLimiter(window_ms=60_000, max_requests=1, clock=clock)
    assert limiter.is_allowed("login:a") is True
    assert limiter.is_allowed("login:b") is True
    assert limiter.is_allowed("signup:a") is True
    assert limiter.is_allowed("login:a") is False


def test_remaining(clock):
    limiter = RateLimiter(window_ms=60_000, max_requests=3, clock=clock)
    assert limiter.remaining("k") == 3

    limiter.is_allowed("k")
    assert limiter.remaining("k") == 2

    for _ in range(5):
        limiter.is_allowed("k")
    assert limiter.remaining("k") == 0


def test_remaining_does_not_roll_stale_window(clock):
    limiter = RateLimiter(window_ms=1000, max_requests=2, clock=clock)
    limiter.is_allowed("k")
    limiter.is_allowed("k")
    clock.advance(5)

    assert limiter.remaining("k") == 0
    assert limiter.is_allowed("k") is True
    assert limiter.remaining("k") == 1


def test_retry_after(clock):
    limiter = RateLimiter(window_ms=10_000, max_requests=1, clock=clock)
    assert limiter.retry_after("k") == 0

    limiter.is_allowed("k")
    clock.advance(3.5)
    assert limiter.retry_after("k") == 7

    clock.advance(7)
    assert limiter.retry_after("k") == 0


def test_concurrent_admissions_never_exceed_max(clock):
    limiter = RateLimiter(window_ms=60_000, max_requests=50, clock=clock)

    with ThreadPoolExecutor(max_workers=16) as pool:
        results = list(pool.map(lambda _: limiter.is_allowed("k"), range(2000)))

    assert results.count(True) == 50
    assert limiter.remaining("k") == 0


def test_sweep_drops_only_stale_windows(clock):
    limiter = RateLimiter(window_ms=10_000, max_requests=3, clock=clock)
    limiter.is_allowed("login:old")
    clock.advance(6)
    limiter.is_allowed("login:new")
    clock.advance(5)

    assert limiter.sweep_expired() == 1
    assert len(limiter) == 1
    assert limiter.remaining("login:old") == 3
    assert limiter.remaining("login:new") == 2

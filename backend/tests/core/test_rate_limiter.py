"""Sliding Window Rate Limiter — quota, window expiry, retry hints and sweeps."""

import pytest

from memo_api.infrastructure.rate_limiter import SlidingWindowRateLimiter


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


def test_allows_up_to_limit_then_rejects(clock):
    limiter = SlidingWindowRateLimiter(3, window=60, clock=clock)
    decisions = [limiter.hit("10.0.0.1") for _ in range(4)]
    assert [d.allowed for d in decisions] == [True, True, True, False]
    assert [d.remaining for d in decisions] == [2, 1, 0, 0]


def test_retry_after_counts_down_to_oldest_hit_expiry(clock):
    limiter = SlidingWindowRateLimiter(2, window=60, clock=clock)
    limiter.hit("ip")
    clock.now += 20
    limiter.hit("ip")
    clock.now += 10
    assert limiter.hit("ip").retry_after == 30


def test_window_slides(clock):
    limiter = SlidingWindowRateLimiter(2, window=60, clock=clock)
    limiter.hit("ip")
    clock.now += 30
    limiter.hit("ip")
    assert not limiter.hit("ip").allowed
    clock.now += 31
    assert limiter.hit("ip").allowed
    assert not limiter.hit("ip").allowed


def test_rejected_hits_do_not_extend_lockout(clock):
    limiter = SlidingWindowRateLimiter(1, window=60, clock=clock)
    limiter.hit("ip")
    for _ in range(10):
        clock.now += 5
        limiter.hit("ip")
    clock.now += 11
    assert limiter.hit("ip").allowed


def test_keys_are_independent(clock):
    limiter = SlidingWindowRateLimiter(1, window=60, clock=clock)
    assert limiter.hit("10.0.0.1").allowed
    assert limiter.hit("10.0.0.2").allowed
    assert not limiter.hit("10.0.0.1").allowed


def test_idle_keys_swept(clock):
    limiter = SlidingWindowRateLimiter(5, window=60, clock=clock, sweep_interval=120)
    for i in range(3):
        limiter.hit(f"10.0.0.{i}")
    clock.now += 121
    limiter.hit("10.0.0.9")
    assert list(limiter._hits) == ["10.0.0.9"]


def test_limit_must_be_positive():
    with pytest.raises(ValueError):
        SlidingWindowRateLimiter(0)

"""Rate Limiter — sliding window of request timestamps per client key.

Invariants:
    - At most `limit` accepted hits per key inside any `window` seconds
    - A rejected hit is not recorded: hammering does not extend the lockout
    - retry_after is the whole seconds until the oldest hit leaves the window (>= 1)
    - Keys idle for a full window are dropped on periodic sweeps

Design Decisions:
    - In-process deques: the quota is per worker process, a shared store would be
      needed for a cluster-wide quota
    - Monotonic clock injected: tests move time without sleeping
    - No lock: hit() never awaits, so the event loop runs it to completion
"""

import math
import time
from collections import deque
from dataclasses import dataclass
from typing import Callable


@dataclass(frozen=True)
class RateDecision:
    allowed: bool
    limit: int
    remaining: int
    retry_after: int = 0


class SlidingWindowRateLimiter:
    """Per-key request quota over a sliding time window."""

    def __init__(
        self,
        limit: int,
        window: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: float = 300.0,
    ):
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.limit = limit
        self.window = window
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._hits: dict[str, deque[float]] = {}
        self._last_sweep = clock()

    def hit(self, key: str) -> RateDecision:
        """Record one request for `key` if the quota allows it."""
        now = self._clock()
        self._maybe_sweep(now)
        hits = self._hits.setdefault(key, deque())
        cutoff = now - self.window
        while hits and hits[0] <= cutoff:
            hits.popleft()

        if len(hits) >= self.limit:
            retry_after = max(1, math.ceil(hits[0] + self.window - now))
            return RateDecision(False, self.limit, 0, retry_after)

        hits.append(now)
        return RateDecision(True, self.limit, self.limit - len(hits))

    def _maybe_sweep(self, now: float) -> None:
        if now - self._last_sweep < self._sweep_interval:
            return
        cutoff = now - self.window
        for key in [k for k, hits in self._hits.items() if not hits or hits[-1] <= cutoff]:
            del self._hits[key]
        self._last_sweep = now

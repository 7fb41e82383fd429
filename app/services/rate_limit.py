"""
Process-local request counters guarding the HTTP entry points.

Both structures are created at import time, live in this process's memory,
are never persisted and are lost on restart. They are NOT shared between
instances: with several workers each one enforces its own limits. If global
limits are ever required they have to move to a shared store (Redis).

Mutations happen synchronously inside a request handler with no await in
between, so a single event loop never observes a half-updated window.
"""

import time
from collections import deque
from collections.abc import Callable

from cachetools import TTLCache
from pydantic import BaseModel

from app.core.config import settings


class RateLimitStatus(BaseModel):
    limited: bool
    remaining: int


class RateLimiter:
    """
    Sliding window counter per identity (user id + network origin).

    Windows live in a bounded TTLCache: an identity disappears one window after
    its latest request, and the oldest identities are evicted first once
    ``max_identities`` is reached.
    """

    def __init__(
        self,
        max_requests: int | None = None,
        window_seconds: int | None = None,
        clock: Callable[[], float] = time.time,
        max_identities: int | None = None,
    ):
        self.max_requests = max_requests or settings.RATE_LIMIT_MAX
        self.window_seconds = window_seconds or settings.RATE_LIMIT_WINDOW_SECONDS
        self.clock = clock
        self._windows: TTLCache = TTLCache(
            maxsize=max_identities or settings.RATE_LIMIT_MAX_IDENTITIES,
            ttl=self.window_seconds,
            timer=clock,
        )

    @staticmethod
    def _identity(user_id: str, ip: str) -> str:
        return f"{user_id}:{ip}"

    def _prune(self, window: deque[float], now: float) -> deque[float]:
        while window and now - window[0] >= self.window_seconds:
            window.popleft()
        return window

    def _status(self, count: int) -> RateLimitStatus:
        return RateLimitStatus(limited=count > self.max_requests, remaining=max(0, self.max_requests - count))

    def hit(self, user_id: str, ip: str) -> RateLimitStatus:
        """Record one request and tell whether the identity is now over the limit."""
        key = self._identity(user_id, ip)
        now = self.clock()
        window = self._prune(self._windows.get(key) or deque(), now)
        window.append(now)
        # Re-set so the entry expires one window after this request
        self._windows[key] = window
        return self._status(len(window))

    def check(self, user_id: str, ip: str) -> RateLimitStatus:
        """Non consuming status lookup."""
        window = self._windows.get(self._identity(user_id, ip))
        count = len(self._prune(window, self.clock())) if window else 0
        return self._status(count)

    def reset(self) -> None:
        self._windows.clear()


class QueueEstimator:
    """
    Soft "people waiting" hint for the UI: requests seen in the last few seconds.

    Not an admission control mechanism.
    """

    def __init__(
        self,
        window_seconds: int | None = None,
        max_waiting: int | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.window_seconds = window_seconds or settings.QUEUE_WINDOW_SECONDS
        self.max_waiting = max_waiting or settings.QUEUE_MAX_WAITING
        self.clock = clock
        self._timestamps: deque[float] = deque()

    def _prune(self, now: float) -> None:
        while self._timestamps and now - self._timestamps[0] > self.window_seconds:
            self._timestamps.popleft()

    def track(self) -> None:
        now = self.clock()
        self._timestamps.append(now)
        self._prune(now)

    def waiting(self) -> int:
        self._prune(self.clock())
        return min(self.max_waiting, len(self._timestamps))

    def reset(self) -> None:
        self._timestamps.clear()


rate_limiter = RateLimiter()
queue_estimator = QueueEstimator()

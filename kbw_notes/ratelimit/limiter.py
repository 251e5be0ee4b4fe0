"""Fixed-window rate limiters.

The first request for a new (or expired) window sets the count to 1 and the
reset time to ``now + window``; later requests increment the count and are
refused once it passes ``max_requests``. There is no smoothing across
windows.
"""

import threading
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

import redis.asyncio as redis
import structlog

from kbw_notes.core.redis import rate_limit_key


logger = structlog.get_logger(__name__)


@dataclass
class RateLimitWindow:
    """Counter state for one identifier."""

    count: int
    reset_at: float


class RateLimiter(ABC):
    """Decides whether an identifier may make another request."""

    def __init__(self, max_requests: int, window_seconds: int):
        self.max_requests = max_requests
        self.window_seconds = window_seconds

    @abstractmethod
    async def check_and_consume(self, identifier: str) -> bool:
        """Consume one request for ``identifier``; False once over the cap."""


class InMemoryRateLimiter(RateLimiter):
    """Per-process limiter.

    Each key is updated under a lock, so concurrent requests for the same
    identifier cannot both observe the pre-increment count.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(max_requests, window_seconds)
        self._clock = clock
        self._windows: dict[str, RateLimitWindow] = {}
        self._lock = threading.Lock()

    async def check_and_consume(self, identifier: str) -> bool:
        return self.consume(identifier)

    def consume(self, identifier: str) -> bool:
        now = self._clock()
        with self._lock:
            window = self._windows.get(identifier)
            if window is None or now >= window.reset_at:
                self._windows[identifier] = RateLimitWindow(
                    count=1, reset_at=now + self.window_seconds
                )
                self._prune(now)
                return True

            window.count += 1
            allowed = window.count <= self.max_requests

        if not allowed:
            logger.info("rate_limit_exceeded", identifier=identifier)
        return allowed

    def window(self, identifier: str) -> RateLimitWindow | None:
        """Current window for an identifier (None if never seen or expired)."""
        with self._lock:
            window = self._windows.get(identifier)
            if window is None or self._clock() >= window.reset_at:
                return None
            return RateLimitWindow(window.count, window.reset_at)

    def _prune(self, now: float) -> None:
        # Caller holds the lock
        expired = [k for k, w in self._windows.items() if now >= w.reset_at]
        for key in expired:
            del self._windows[key]


class RedisRateLimiter(RateLimiter):
    """Limiter shared by every API instance through Redis.

    ``INCR`` and ``EXPIRE NX`` run in one transaction, so the key gets its TTL
    when the window opens and the TTL is never extended afterwards.
    """

    def __init__(self, client: redis.Redis, max_requests: int, window_seconds: int):
        super().__init__(max_requests, window_seconds)
        self.client = client

    async def check_and_consume(self, identifier: str) -> bool:
        key = rate_limit_key(identifier)

        pipe = self.client.pipeline(transaction=True)
        pipe.incr(key)
        pipe.expire(key, self.window_seconds, nx=True)
        count, _ = await pipe.execute()

        allowed = int(count) <= self.max_requests
        if not allowed:
            logger.info("rate_limit_exceeded", identifier=identifier)
        return allowed

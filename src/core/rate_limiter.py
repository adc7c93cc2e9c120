"""Token bucket rate limiting for outbound calls."""

from __future__ import annotations

import asyncio
import logging
import time
from functools import wraps
from typing import Any, Awaitable, Callable

from core.config import RateBudget
from core.ports import Call

LOGGER = logging.getLogger(__name__)


class RateLimiter:
    """Async token bucket shared by every outbound call of one client.

    The bucket starts full with ``budget.burst`` tokens and gains one token
    every ``budget.interval`` seconds. ``acquire`` suspends until a token is
    available and never raises. Ordering between waiters is best effort.

    Example:
        limiter = RateLimiter(RateBudget(interval=0.1, burst=5))
        await limiter.acquire()
        await make_api_call()
    """

    def __init__(
        self,
        budget: RateBudget,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._budget = budget
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(budget.burst)
        self._last_refill = clock()
        self._lock = asyncio.Lock()

    @property
    def budget(self) -> RateBudget:
        return self._budget

    def _refill(self, now: float) -> None:
        elapsed = now - self._last_refill
        if elapsed > 0:
            self._tokens = min(float(self._budget.burst), self._tokens + elapsed / self._budget.interval)
        self._last_refill = now

    def _try_take(self) -> float:
        """Consume a token if one is available, else return the wait time."""

        self._refill(self._clock())
        if self._tokens >= 1.0:
            self._tokens -= 1.0
            return 0.0
        return (1.0 - self._tokens) * self._budget.interval

    async def acquire(self) -> None:
        """Wait for a token and consume it."""

        while True:
            async with self._lock:
                wait_time = self._try_take()
            if wait_time <= 0:
                return
            LOGGER.debug("Rate limit reached, waiting %.3fs", wait_time)
            # Sleep outside the lock so other callers can refill and check.
            await self._sleep(wait_time)

    def wrap(self, call: Call) -> Call:
        @wraps(call)
        async def limited(request: Any) -> Any:
            await self.acquire()
            return await call(request)

        return limited

    def __repr__(self) -> str:
        return f"RateLimiter(interval={self._budget.interval}, burst={self._budget.burst})"

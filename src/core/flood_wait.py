"""Flood-wait handling for outbound calls.

When the remote service answers with a flood signal ("retry after N
seconds") every later call through the same waiter is held back until the
cooldown has passed. The failed call itself is not retried: the caller gets
the original exception and decides what to do.
"""

from __future__ import annotations

import asyncio
import logging
import time
from functools import wraps
from typing import Any, Awaitable, Callable, Optional

from core.models import FloodWait
from core.ports import Call

LOGGER = logging.getLogger(__name__)

# Returns the wait in seconds when the exception is a flood signal, else None.
FloodClassifier = Callable[[BaseException], Optional[float]]


class FloodWaiter:
    """Interceptor that turns flood signals into a shared pending delay."""

    def __init__(
        self,
        classify: FloodClassifier,
        on_wait: Optional[Callable[[FloodWait], None]] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._classify = classify
        self._on_wait = on_wait
        self._clock = clock
        self._sleep = sleep
        self._resume_at = 0.0

    @property
    def remaining(self) -> float:
        """Seconds left before calls may go out again."""

        return max(0.0, self._resume_at - self._clock())

    def record(self, wait: FloodWait) -> None:
        """Register a flood signal. A shorter wait never cuts a longer one."""

        resume_at = self._clock() + wait.seconds
        if resume_at > self._resume_at:
            self._resume_at = resume_at
        LOGGER.warning(
            "Flood wait of %.1fs requested by %s",
            wait.seconds,
            wait.origin,
            extra={"status": "flood.waiting", "wait": wait.seconds},
        )
        if self._on_wait is not None:
            self._on_wait(wait)

    async def wait(self) -> None:
        """Suspend until no flood wait is pending."""

        # The deadline may move forward while we sleep, so check again after.
        while True:
            remaining = self._resume_at - self._clock()
            if remaining <= 0:
                return
            await self._sleep(remaining)

    def wrap(self, call: Call) -> Call:
        @wraps(call)
        async def guarded(request: Any) -> Any:
            await self.wait()
            try:
                return await call(request)
            except Exception as exc:
                seconds = self._classify(exc)
                if seconds is not None:
                    self.record(FloodWait(seconds=float(seconds), origin=type(request).__name__))
                raise

        return guarded

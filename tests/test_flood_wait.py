from __future__ import annotations

import asyncio
import logging
from typing import Optional

import pytest

from core.flood_wait import FloodWaiter
from core.models import FloodWait
from fakes import FakeClock


class FloodSignal(Exception):
    def __init__(self, seconds: int) -> None:
        super().__init__(f"wait {seconds}")
        self.seconds = seconds


class SendMessageRequest:
    pass


def classify(exc: BaseException) -> Optional[float]:
    if isinstance(exc, FloodSignal):
        return exc.seconds
    return None


def _failing(seconds: int):
    async def call(request):
        # Stay in flight for one loop turn so concurrent calls overlap.
        await asyncio.sleep(0)
        raise FloodSignal(seconds)

    return call


def test_flood_signal_is_reraised_and_delays_next_call(caplog: pytest.LogCaptureFixture) -> None:
    clock = FakeClock()
    waiter = FloodWaiter(classify, clock=clock, sleep=clock.sleep)
    completed: list[float] = []

    async def ok(request):
        completed.append(clock.now)
        return "sent"

    async def scenario() -> str:
        with pytest.raises(FloodSignal):
            await waiter.wrap(_failing(10))(SendMessageRequest())
        assert waiter.remaining == 10
        return await waiter.wrap(ok)(SendMessageRequest())

    with caplog.at_level(logging.WARNING, logger="core.flood_wait"):
        result = asyncio.run(scenario())

    assert result == "sent"
    assert completed == [10.0]
    record = next(r for r in caplog.records if getattr(r, "status", None) == "flood.waiting")
    assert record.levelno == logging.WARNING
    assert record.wait == 10.0
    assert "SendMessageRequest" in record.getMessage()


def test_shorter_overlapping_signal_does_not_shorten_wait() -> None:
    clock = FakeClock()
    waiter = FloodWaiter(classify, clock=clock, sleep=clock.sleep)

    async def scenario() -> list[object]:
        return await asyncio.gather(
            waiter.wrap(_failing(30))(object()),
            waiter.wrap(_failing(5))(object()),
            return_exceptions=True,
        )

    results = asyncio.run(scenario())

    assert [type(result) for result in results] == [FloodSignal, FloodSignal]
    assert clock.now == 0.0
    assert waiter.remaining == 30


def test_signals_recorded_at_the_same_time_keep_the_longest() -> None:
    clock = FakeClock()
    waiter = FloodWaiter(classify, clock=clock)

    waiter.record(FloodWait(seconds=30, origin="a"))
    waiter.record(FloodWait(seconds=5, origin="b"))

    assert waiter.remaining == 30


def test_longer_signal_extends_wait() -> None:
    clock = FakeClock()
    waiter = FloodWaiter(classify, clock=clock)

    waiter.record(FloodWait(seconds=5, origin="a"))
    clock.now = 2.0
    waiter.record(FloodWait(seconds=10, origin="b"))

    assert waiter.remaining == 10


def test_other_errors_pass_through_without_delay() -> None:
    clock = FakeClock()
    waiter = FloodWaiter(classify, clock=clock, sleep=clock.sleep)

    async def broken(request):
        raise ValueError("boom")

    async def scenario() -> None:
        with pytest.raises(ValueError):
            await waiter.wrap(broken)(object())

    asyncio.run(scenario())

    assert waiter.remaining == 0
    assert clock.sleeps == []


def test_callback_receives_each_signal() -> None:
    clock = FakeClock()
    seen: list[FloodWait] = []
    waiter = FloodWaiter(classify, on_wait=seen.append, clock=clock, sleep=clock.sleep)

    async def scenario() -> None:
        with pytest.raises(FloodSignal):
            await waiter.wrap(_failing(3))(SendMessageRequest())

    asyncio.run(scenario())

    assert seen == [FloodWait(seconds=3.0, origin="SendMessageRequest")]

from __future__ import annotations

import asyncio

import pytest

from commands import SpamReactionHook, SpamReactionTracker, build_registry
from core.errors import AuthenticationError, TransportError
from core.models import UpdateKind
from core.presentation import Presentation
from fakes import FakeTransport, make_update, wait_for

FLOW = object()


def _presentation(transport: FakeTransport, middlewares=()) -> Presentation:
    tracker = SpamReactionTracker()
    return Presentation(
        transport=transport,
        registry=build_registry(tracker),
        auth_flow=FLOW,
        middlewares=middlewares,
        message_hook=SpamReactionHook(tracker, transport),
    )


def _subscribed(transport: FakeTransport) -> bool:
    return len(transport.subscriptions) == 2


def test_ping_round_trip_then_plain_chat_keeps_loop_alive() -> None:
    transport = FakeTransport(authorized=True)
    presentation = _presentation(transport)

    async def scenario() -> None:
        running = asyncio.create_task(presentation.run())
        await wait_for(lambda: _subscribed(transport))

        await transport.emit(make_update("hello world", chat_id=5, message_id=1))
        await transport.emit(make_update("!ping", chat_id=5, message_id=2))
        await wait_for(lambda: len(transport.sent) == 2)

        transport.disconnected.set()
        await running

    asyncio.run(scenario())

    assert transport.sent == [
        ("me", "Telegram client initialized", None),
        (5, "pong", 2),
    ]
    assert transport.events[-1] == "disconnect"


def test_fresh_session_authenticates_before_subscribing() -> None:
    transport = FakeTransport(authorized=False)
    presentation = _presentation(transport)

    async def scenario() -> None:
        running = asyncio.create_task(presentation.run())
        await wait_for(lambda: _subscribed(transport))
        transport.disconnected.set()
        await running

    asyncio.run(scenario())

    assert transport.events[:7] == [
        "install_middlewares",
        "connect",
        "is_authorized",
        "authenticate",
        "send_text",
        f"subscribe:{UpdateKind.NEW_CHANNEL_MESSAGE.value}",
        f"subscribe:{UpdateKind.NEW_MESSAGE.value}",
    ]
    assert transport.flows == [FLOW]


def test_authentication_failure_is_fatal() -> None:
    transport = FakeTransport(authorized=False)
    transport.auth_error = PermissionError("2FA required")
    presentation = _presentation(transport)

    with pytest.raises(AuthenticationError):
        asyncio.run(presentation.run())

    assert transport.subscriptions == {}
    assert transport.events[-1] == "disconnect"


def test_transport_failure_is_fatal() -> None:
    transport = FakeTransport()
    transport.run_error = ConnectionResetError("gone")
    presentation = _presentation(transport)

    async def scenario() -> None:
        running = asyncio.create_task(presentation.run())
        await wait_for(lambda: _subscribed(transport))
        transport.disconnected.set()
        await running

    with pytest.raises(TransportError) as excinfo:
        asyncio.run(scenario())

    assert isinstance(excinfo.value.__cause__, ConnectionResetError)


def test_handler_error_does_not_end_session() -> None:
    class FlakyTransport(FakeTransport):
        async def _raw_send(self, request: tuple) -> None:
            if request[3] == 1:
                raise RuntimeError("send failed")
            await super()._raw_send(request)

    transport = FlakyTransport()
    presentation = _presentation(transport)

    async def scenario() -> None:
        running = asyncio.create_task(presentation.run())
        await wait_for(lambda: _subscribed(transport))

        await transport.emit(make_update("!ping", message_id=1))
        await transport.emit(make_update("!ping", message_id=2))
        await wait_for(lambda: len(transport.sent) == 2)

        assert not running.done()
        transport.disconnected.set()
        await running

    asyncio.run(scenario())

    assert transport.sent == [
        ("me", "Telegram client initialized", None),
        (100, "pong", 2),
    ]


def test_cancellation_unwinds_loop_and_transport() -> None:
    transport = FakeTransport()
    presentation = _presentation(transport)

    async def scenario() -> None:
        running = asyncio.create_task(presentation.run())
        await wait_for(lambda: _subscribed(transport))
        running.cancel()
        with pytest.raises(asyncio.CancelledError):
            await running

    asyncio.run(scenario())

    assert not presentation.event_loop.running
    assert transport.events[-1] == "disconnect"


def test_middlewares_are_installed_on_transport() -> None:
    transport = FakeTransport()
    seen: list[object] = []

    class Tap:
        def wrap(self, call):
            async def tapped(request):
                seen.append(request)
                return await call(request)

            return tapped

    tap = Tap()
    presentation = _presentation(transport, middlewares=[tap])

    async def scenario() -> None:
        running = asyncio.create_task(presentation.run())
        await wait_for(lambda: _subscribed(transport))
        transport.disconnected.set()
        await running

    asyncio.run(scenario())

    assert transport.interceptors == [tap]
    assert seen == [("send_text", "me", "Telegram client initialized", None)]


def test_registry_is_frozen_by_construction() -> None:
    presentation = _presentation(FakeTransport())

    assert presentation.router.registry.frozen

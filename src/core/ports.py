"""Ports (interfaces) used by the core.

Ports define the minimal contracts for the transport and command handlers so
that the core can be driven by Telethon in production and by fakes in tests.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Iterable, Optional, Protocol

from core.models import Identity, InboundUpdate, UpdateKind

# An outbound call as seen by the middleware chain: takes the request object
# and returns whatever the remote service answered.
Call = Callable[[Any], Awaitable[Any]]

UpdateCallback = Callable[[InboundUpdate], Awaitable[None]]


class Interceptor(Protocol):
    """Wraps an outbound call with extra behaviour."""

    def wrap(self, call: Call) -> Call:
        ...


class TransportPort(Protocol):
    """Session capabilities the core needs from the transport library."""

    def install_middlewares(self, interceptors: Iterable[Interceptor]) -> None:
        ...

    async def connect(self) -> None:
        ...

    async def disconnect(self) -> None:
        ...

    async def is_authorized(self) -> bool:
        ...

    async def authenticate(self, flow: Any) -> None:
        ...

    async def get_me(self) -> Identity:
        ...

    async def send_text(self, target: Any, text: str, reply_to: Optional[int] = None) -> None:
        ...

    async def send_reaction(self, chat_id: int, message_id: int, emoticon: str) -> None:
        ...

    async def get_sender_id(self, chat_id: int, message_id: int) -> Optional[int]:
        ...

    def subscribe(self, kind: UpdateKind, callback: UpdateCallback) -> None:
        ...

    async def run_until_disconnected(self) -> None:
        ...


class MessageHook(Protocol):
    """Side-effect handler run for every routed message before commands."""

    async def __call__(self, update: InboundUpdate) -> None:
        ...

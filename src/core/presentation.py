"""Session orchestrator.

``Presentation`` wires the middleware chain, the authenticator, the router and
the event loop around one transport, and exposes a single ``run`` coroutine
that blocks until the session ends.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from core.auth import SessionAuthenticator
from core.errors import TransportError
from core.event_loop import DEFAULT_KINDS, EventLoop
from core.models import UpdateKind
from core.ports import Interceptor, MessageHook, TransportPort
from core.router import CommandRegistry, CommandRouter

LOGGER = logging.getLogger(__name__)


class Presentation:
    """Owns the lifecycle of one authenticated session."""

    def __init__(
        self,
        transport: TransportPort,
        registry: CommandRegistry,
        auth_flow: Any,
        middlewares: Iterable[Interceptor] = (),
        message_hook: Optional[MessageHook] = None,
        kinds: Iterable[UpdateKind] = DEFAULT_KINDS,
    ) -> None:
        registry.freeze()
        self._transport = transport
        self._middlewares = list(middlewares)
        self.authenticator = SessionAuthenticator(transport, auth_flow)
        self.router = CommandRouter(registry, transport, message_hook)
        self.event_loop = EventLoop(self.router, kinds)

    async def run(self) -> None:
        """Connect, authenticate, subscribe and block until disconnected.

        Raises AuthenticationError or TransportError on fatal failures.
        Cancelling the task running this coroutine stops the session.
        """

        self._transport.install_middlewares(self._middlewares)
        try:
            try:
                await self._transport.connect()
            except Exception as exc:
                raise TransportError("could not connect") from exc

            await self.authenticator.authenticate()

            self.event_loop.start()
            self.event_loop.subscribe(self._transport)
            LOGGER.info("Listening for updates", extra={"status": "listening"})

            try:
                await self._transport.run_until_disconnected()
            except Exception as exc:
                raise TransportError("transport stopped with an error") from exc
            LOGGER.info("Transport disconnected", extra={"status": "disconnected"})
        finally:
            await self.event_loop.close()
            await self._transport.disconnect()

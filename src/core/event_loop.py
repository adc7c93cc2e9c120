"""Update intake between the transport and the router.

Each subscribed update kind gets its own queue and worker task. Updates of one
kind are dispatched in the order the transport delivered them; different kinds
run concurrently. A failing update is logged and dropped, the loop keeps going.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, Optional

from core.errors import BadUpdate
from core.models import InboundUpdate, UpdateKind
from core.ports import TransportPort
from core.router import CommandRouter

LOGGER = logging.getLogger(__name__)

DEFAULT_KINDS = (UpdateKind.NEW_CHANNEL_MESSAGE, UpdateKind.NEW_MESSAGE)

# Queue marker that tells a worker to exit.
_STOP = None


class EventLoop:
    """Feeds subscribed updates to the router, one worker per update kind."""

    def __init__(self, router: CommandRouter, kinds: Iterable[UpdateKind] = DEFAULT_KINDS) -> None:
        self._router = router
        self._kinds = tuple(kinds)
        self._queues: dict[UpdateKind, asyncio.Queue[Optional[InboundUpdate]]] = {}
        self._workers: list[asyncio.Task] = []
        self._closed = False

    @property
    def kinds(self) -> tuple[UpdateKind, ...]:
        return self._kinds

    @property
    def running(self) -> bool:
        return bool(self._workers) and not self._closed

    def start(self) -> None:
        """Create the per-kind queues and worker tasks."""

        if self._workers:
            raise RuntimeError("event loop already started")
        for kind in self._kinds:
            queue: asyncio.Queue[Optional[InboundUpdate]] = asyncio.Queue()
            self._queues[kind] = queue
            self._workers.append(asyncio.create_task(self._work(kind, queue), name=f"updates-{kind.value}"))

    def subscribe(self, transport: TransportPort) -> None:
        """Register one transport subscription per update kind."""

        for kind in self._kinds:
            transport.subscribe(kind, self.submit)

    async def submit(self, update: InboundUpdate) -> None:
        """Transport callback: enqueue the update for its kind."""

        if self._closed:
            return
        queue = self._queues.get(update.kind)
        if queue is None:
            LOGGER.debug("Ignoring update of unsubscribed kind %s", update.kind.value)
            return
        queue.put_nowait(update)

    async def _work(self, kind: UpdateKind, queue: asyncio.Queue[Optional[InboundUpdate]]) -> None:
        while True:
            update = await queue.get()
            if update is _STOP:
                return
            if self._closed:
                continue
            await self._handle(update)

    async def _handle(self, update: InboundUpdate) -> None:
        try:
            await self._router.dispatch(update)
        except BadUpdate as exc:
            LOGGER.warning("Dropping update: %s", exc, extra={"status": "bad.update"})
        except Exception:
            LOGGER.exception(
                "Error while processing %s update",
                update.kind.value,
                extra={"status": "error.while.processing.request"},
            )

    async def close(self) -> None:
        """Stop intake, let running handlers finish, drop the rest."""

        if self._closed:
            return
        self._closed = True
        for queue in self._queues.values():
            queue.put_nowait(_STOP)
        if self._workers:
            await asyncio.gather(*self._workers, return_exceptions=True)
        LOGGER.info("Event loop closed", extra={"status": "event.loop.closed"})

"""Command routing for inbound messages.

The router classifies one update at a time:
1) Reject updates without a regular message payload (BadUpdate)
2) Skip channel posts and empty text
3) Run the message hook on every remaining message
4) Skip plain chat (first word without the command prefix)
5) Look up and run the registered command handler

The router keeps no per-update state, so concurrent dispatches from different
update streams are safe.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterator, Optional

from core.config import COMMAND_PREFIX
from core.errors import BadUpdate, CommandRegistrationError
from core.models import InboundUpdate, IncomingMessage
from core.ports import MessageHook, TransportPort

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandContext:
    """Everything a command handler gets for one invocation."""

    transport: TransportPort
    update: InboundUpdate
    message: IncomingMessage
    command: str
    args: list[str] = field(default_factory=list)

    @property
    def entities(self) -> dict[int, Any]:
        return self.update.entities

    async def reply(self, text: str) -> None:
        """Answer in the chat the command came from, replying to it."""

        await self.transport.send_text(self.message.chat_id, text, reply_to=self.message.id)


CommandHandler = Callable[[CommandContext], Awaitable[None]]


class CommandRegistry:
    """Name to handler table, filled once and then frozen."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._frozen = False

    def register(self, name: str, handler: CommandHandler) -> None:
        if self._frozen:
            raise CommandRegistrationError(f"registry is frozen, cannot add {name!r}")
        if not name or name.startswith(COMMAND_PREFIX) or any(ch.isspace() for ch in name):
            raise CommandRegistrationError(f"invalid command name: {name!r}")
        if name in self._handlers:
            raise CommandRegistrationError(f"command already registered: {name!r}")
        self._handlers[name] = handler

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, name: str) -> Optional[CommandHandler]:
        return self._handlers.get(name)

    def names(self) -> list[str]:
        return sorted(self._handlers)

    def __contains__(self, name: object) -> bool:
        return name in self._handlers

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def __len__(self) -> int:
        return len(self._handlers)


def parse_command(text: str) -> tuple[Optional[str], list[str]]:
    """Return (command, args) for a message, or (None, words) for plain chat."""

    words = text.split()
    if not words or not words[0].startswith(COMMAND_PREFIX):
        return None, words
    return words[0][len(COMMAND_PREFIX):], words[1:]


class CommandRouter:
    """Routes messages to registered commands."""

    def __init__(
        self,
        registry: CommandRegistry,
        transport: TransportPort,
        message_hook: Optional[MessageHook] = None,
    ) -> None:
        self._registry = registry
        self._transport = transport
        self._message_hook = message_hook

    @property
    def registry(self) -> CommandRegistry:
        return self._registry

    async def dispatch(self, update: InboundUpdate) -> None:
        """Route one update. Raises BadUpdate or whatever a handler raised."""

        message = update.message
        if message is None:
            raise BadUpdate(update.kind.value)

        if message.post:
            return

        LOGGER.debug("Message received: %r", message.text, extra={"status": "message.got"})

        if not message.text.split():
            return

        # The hook runs for every message, commands or not.
        if self._message_hook is not None:
            await self._message_hook(update)

        command, args = parse_command(message.text)
        if command is None:
            return

        handler = self._registry.get(command)
        if handler is None:
            LOGGER.warning(
                "Unknown command %r in %r",
                command,
                message.text,
                extra={"status": "unknown.command", "command": command},
            )
            return

        LOGGER.info("Got command %s", command, extra={"status": "command.got", "command": command})
        started = time.perf_counter()
        await handler(
            CommandContext(
                transport=self._transport,
                update=update,
                message=message,
                command=command,
                args=args,
            )
        )
        duration = time.perf_counter() - started
        LOGGER.info(
            "Command %s done in %.3fs",
            command,
            duration,
            extra={"status": "ok", "command": command, "duration": duration},
        )

"""Telethon transport adapter.

Implements the core TransportPort on top of a Telethon client whose raw API
calls pass through the installed interceptor chain.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Optional

from telethon import TelegramClient, errors, events
from telethon.tl import functions, types

from adapters.telegram_mapper import UPDATE_TYPES, build_identity, build_message, build_update
from core.middleware import chain
from core.models import Identity, UpdateKind
from core.ports import Interceptor, UpdateCallback

LOGGER = logging.getLogger(__name__)


def flood_wait_seconds(exc: BaseException) -> Optional[float]:
    """Return the requested wait for Telegram 420 errors, else None."""

    if not isinstance(exc, errors.FloodError):
        return None
    seconds = getattr(exc, "seconds", None)
    if seconds is None:
        return None
    return float(seconds)


class InterceptingTelegramClient(TelegramClient):
    """TelegramClient whose API requests go through an interceptor chain.

    Telethon's own flood sleeping is disabled so flood errors reach the chain.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        kwargs.setdefault("flood_sleep_threshold", 0)
        super().__init__(*args, **kwargs)
        self._interceptors: list[Interceptor] = []

    def install_middlewares(self, interceptors: Iterable[Interceptor]) -> None:
        self._interceptors = list(interceptors)

    async def __call__(self, request, ordered=False, flood_sleep_threshold=None):
        send_raw = super().__call__
        if not self._interceptors:
            return await send_raw(request, ordered, flood_sleep_threshold)

        async def send(req):
            return await send_raw(req, ordered, flood_sleep_threshold)

        return await chain(send, self._interceptors)(request)


class TelethonTransport:
    """TransportPort backed by an InterceptingTelegramClient."""

    def __init__(self, client: InterceptingTelegramClient) -> None:
        self._client = client

    def install_middlewares(self, interceptors: Iterable[Interceptor]) -> None:
        self._client.install_middlewares(interceptors)

    async def connect(self) -> None:
        await self._client.connect()
        LOGGER.info("Connected to Telegram", extra={"status": "connected"})

    async def disconnect(self) -> None:
        if self._client.is_connected():
            await self._client.disconnect()

    async def is_authorized(self) -> bool:
        return await self._client.is_user_authorized()

    async def authenticate(self, flow: Any) -> None:
        await flow.authorize(self._client)

    async def get_me(self) -> Identity:
        me = await self._client.get_me()
        if me is None:
            raise RuntimeError("session is not authorized")
        return build_identity(me)

    async def send_text(self, target: Any, text: str, reply_to: Optional[int] = None) -> None:
        await self._client.send_message(target, text, reply_to=reply_to)

    async def send_reaction(self, chat_id: int, message_id: int, emoticon: str) -> None:
        await self._client(
            functions.messages.SendReactionRequest(
                peer=chat_id,
                msg_id=message_id,
                reaction=[types.ReactionEmoji(emoticon=emoticon)],
            )
        )

    async def get_sender_id(self, chat_id: int, message_id: int) -> Optional[int]:
        message = await self._client.get_messages(chat_id, ids=message_id)
        if message is None:
            return None
        mapped = build_message(message)
        return mapped.sender_id if mapped is not None else None

    def subscribe(self, kind: UpdateKind, callback: UpdateCallback) -> None:
        update_type = UPDATE_TYPES.get(kind)
        if update_type is None:
            raise ValueError(f"unsupported update kind: {kind.value}")

        async def on_update(update) -> None:
            await callback(build_update(update, kind))

        self._client.add_event_handler(on_update, events.Raw(types=update_type))

    async def run_until_disconnected(self) -> None:
        # Telethon subscribes to updates first and re-raises a fatal update-loop
        # error (e.g. a revoked session) once the client has disconnected.
        await self._client.run_until_disconnected()

"""Telegram client factory for teleout.

We explicitly manage the client's lifecycle (connect/run/disconnect) from the
Presentation so it is obvious when the session is created and when it ends.
"""

from __future__ import annotations

import logging

from adapters.telegram_transport import InterceptingTelegramClient, TelethonTransport
from settings import Settings


def build_client(settings: Settings) -> InterceptingTelegramClient:
    """Create the Telethon client with its session file in the storage dir."""

    logging.getLogger(__name__).info("Initializing Telegram client (session %s)", settings.session_path)

    return InterceptingTelegramClient(settings.session_path, settings.api_id, settings.api_hash)


def build_transport(settings: Settings) -> TelethonTransport:
    return TelethonTransport(build_client(settings))

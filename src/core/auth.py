"""One-shot session authentication.

The authenticator runs before any subscription is registered. It either finds
the stored session already authorized or drives the login flow once. There is
no automatic re-authentication: a failure is fatal for ``Presentation.run``.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any

from core.config import SELF_NOTIFICATION_TEXT
from core.errors import AuthenticationError
from core.ports import TransportPort

LOGGER = logging.getLogger(__name__)

# Telegram alias for the account's own chat (Saved Messages).
SELF_TARGET = "me"


class AuthState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHORIZED = "authorized"
    FAILED = "failed"


class SessionAuthenticator:
    """State machine: UNAUTHENTICATED -> AUTHENTICATING -> AUTHORIZED | FAILED."""

    def __init__(self, transport: TransportPort, flow: Any) -> None:
        self._transport = transport
        self._flow = flow
        self.state = AuthState.UNAUTHENTICATED

    async def authenticate(self) -> None:
        if self.state is not AuthState.UNAUTHENTICATED:
            raise RuntimeError(f"authenticator already ran (state={self.state.value})")

        self.state = AuthState.AUTHENTICATING
        try:
            if not await self._transport.is_authorized():
                LOGGER.info("Session is not authorized, starting login", extra={"status": "authorizing"})
                await self._transport.authenticate(self._flow)
        except asyncio.CancelledError:
            self.state = AuthState.FAILED
            raise
        except Exception as exc:
            self.state = AuthState.FAILED
            raise AuthenticationError() from exc

        self.state = AuthState.AUTHORIZED
        LOGGER.info("Session authorized", extra={"status": "authorized"})
        await self._notify_self()

    async def _notify_self(self) -> None:
        try:
            await self._transport.send_text(SELF_TARGET, SELF_NOTIFICATION_TEXT)
        except Exception:
            LOGGER.warning(
                "Could not send the startup notification to Saved Messages",
                exc_info=True,
                extra={"status": "self.notification.failed"},
            )

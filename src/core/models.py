"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to Telethon types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class UpdateKind(str, Enum):
    """Inbound update kinds the client subscribes to."""

    NEW_CHANNEL_MESSAGE = "new_channel_message"
    NEW_MESSAGE = "new_message"
    OTHER = "other"


@dataclass(frozen=True)
class IncomingMessage:
    """Minimal message view used by the router and command handlers."""

    id: int
    chat_id: int
    sender_id: Optional[int]
    text: str
    post: bool = False
    out: bool = False
    reply_to_msg_id: Optional[int] = None


@dataclass(frozen=True)
class InboundUpdate:
    """A single update received from the session.

    ``message`` is None when the update carries something other than a
    regular message (service messages, empty messages).
    """

    kind: UpdateKind
    message: Optional[IncomingMessage]
    entities: dict[int, Any] = field(default_factory=dict)
    raw: Any = None


@dataclass(frozen=True)
class FloodWait:
    """A flood signal: calls must pause for ``seconds``."""

    seconds: float
    origin: str


@dataclass(frozen=True)
class Identity:
    """The logged in account."""

    id: int
    username: Optional[str]
    first_name: Optional[str]
    last_name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return " ".join(part for part in [self.first_name, self.last_name] if part) or str(self.id)

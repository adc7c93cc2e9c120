"""Telegram-to-core update mapping adapter.

This keeps Telethon-specific details out of the core router.
"""

from __future__ import annotations

from typing import Any, Optional

from telethon import utils
from telethon.tl import types

from core.models import Identity, InboundUpdate, IncomingMessage, UpdateKind

# Raw Telethon update classes the client subscribes to, per update kind.
UPDATE_TYPES: dict[UpdateKind, type] = {
    UpdateKind.NEW_CHANNEL_MESSAGE: types.UpdateNewChannelMessage,
    UpdateKind.NEW_MESSAGE: types.UpdateNewMessage,
}


def kind_of(update: Any) -> UpdateKind:
    for kind, update_type in UPDATE_TYPES.items():
        if isinstance(update, update_type):
            return kind
    return UpdateKind.OTHER


def _peer_id(peer: Any) -> Optional[int]:
    if peer is None:
        return None
    return utils.get_peer_id(peer)


def _sender_id(message: types.Message, chat_id: int) -> Optional[int]:
    from_id = _peer_id(getattr(message, "from_id", None))
    if from_id is not None:
        return from_id
    # Incoming private messages carry no from_id: the sender is the chat peer.
    if not message.out and isinstance(message.peer_id, types.PeerUser):
        return chat_id
    return None


def build_message(message: Any) -> Optional[IncomingMessage]:
    """Map a Telethon message. Service and empty messages map to None."""

    if not isinstance(message, types.Message):
        return None

    chat_id = _peer_id(message.peer_id)
    reply_to = getattr(message, "reply_to", None)
    return IncomingMessage(
        id=message.id,
        chat_id=chat_id,
        sender_id=_sender_id(message, chat_id),
        text=message.message or "",
        post=bool(message.post),
        out=bool(message.out),
        reply_to_msg_id=getattr(reply_to, "reply_to_msg_id", None),
    )


def build_update(update: Any, kind: Optional[UpdateKind] = None) -> InboundUpdate:
    """Build a core InboundUpdate from a raw Telethon update."""

    return InboundUpdate(
        kind=kind or kind_of(update),
        message=build_message(getattr(update, "message", None)),
        # Telethon attaches the users/chats that came with the update here.
        entities=dict(getattr(update, "_entities", None) or {}),
        raw=update,
    )


def build_identity(user: Any) -> Identity:
    return Identity(
        id=user.id,
        username=getattr(user, "username", None),
        first_name=getattr(user, "first_name", None),
        last_name=getattr(user, "last_name", None),
    )

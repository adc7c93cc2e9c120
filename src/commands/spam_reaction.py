"""Automatic reactions to a chosen user's messages.

Reply to someone's message with ``!spamReaction`` to start reacting to
everything they write in that chat, and with ``!spamReaction stop`` to stop.
Targets are kept in memory only and reset on restart.
"""

from __future__ import annotations

import logging
import random
from typing import Optional

from core.models import InboundUpdate
from core.ports import TransportPort
from core.router import CommandContext

LOGGER = logging.getLogger(__name__)

DEFAULT_REACTIONS = ("👍", "❤", "🔥", "🤡", "💩", "🥱", "🤮")

USAGE = "Reply to a message with !spamReaction to start, or !spamReaction stop to stop."


class SpamReactionTracker:
    """(chat_id, sender_id) pairs whose messages get a reaction."""

    def __init__(self) -> None:
        self._targets: set[tuple[int, int]] = set()

    def add(self, chat_id: int, sender_id: int) -> None:
        self._targets.add((chat_id, sender_id))

    def discard(self, chat_id: int, sender_id: int) -> bool:
        if (chat_id, sender_id) not in self._targets:
            return False
        self._targets.discard((chat_id, sender_id))
        return True

    def __contains__(self, key: object) -> bool:
        return key in self._targets

    def __len__(self) -> int:
        return len(self._targets)


class SpamReactionCommand:
    """Toggles reactions for the author of the replied-to message."""

    def __init__(self, tracker: SpamReactionTracker) -> None:
        self._tracker = tracker

    async def __call__(self, ctx: CommandContext) -> None:
        message = ctx.message
        # Only the account owner may toggle this.
        if not message.out:
            return
        if message.reply_to_msg_id is None:
            await ctx.reply(USAGE)
            return

        sender_id = await ctx.transport.get_sender_id(message.chat_id, message.reply_to_msg_id)
        if sender_id is None:
            await ctx.reply("Could not find the author of that message.")
            return

        if ctx.args and ctx.args[0] == "stop":
            if self._tracker.discard(message.chat_id, sender_id):
                await ctx.reply("Stopped reacting.")
            else:
                await ctx.reply("Was not reacting to this user.")
            return

        self._tracker.add(message.chat_id, sender_id)
        LOGGER.info("Reacting to %s in %s", sender_id, message.chat_id)
        await ctx.reply("Started reacting.")


class SpamReactionHook:
    """Message hook: reacts to messages from tracked senders."""

    def __init__(
        self,
        tracker: SpamReactionTracker,
        transport: TransportPort,
        reactions: tuple[str, ...] = DEFAULT_REACTIONS,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._tracker = tracker
        self._transport = transport
        self._reactions = reactions
        self._rng = rng or random.Random()

    async def __call__(self, update: InboundUpdate) -> None:
        message = update.message
        if message is None or message.sender_id is None:
            return
        if (message.chat_id, message.sender_id) not in self._tracker:
            return
        emoticon = self._rng.choice(self._reactions)
        await self._transport.send_reaction(message.chat_id, message.id, emoticon)

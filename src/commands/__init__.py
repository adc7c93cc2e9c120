"""Built-in commands and the registry builder."""

from __future__ import annotations

from core.router import CommandRegistry

from commands.basic import GetMeCommand, HelpCommand, ping_command
from commands.spam_reaction import SpamReactionCommand, SpamReactionHook, SpamReactionTracker


def build_registry(tracker: SpamReactionTracker) -> CommandRegistry:
    """Register every built-in command. The Presentation freezes the result."""

    registry = CommandRegistry()
    registry.register("ping", ping_command)
    registry.register("help", HelpCommand(registry))
    registry.register("getMe", GetMeCommand())
    registry.register("spamReaction", SpamReactionCommand(tracker))
    return registry


__all__ = [
    "SpamReactionHook",
    "SpamReactionTracker",
    "build_registry",
]

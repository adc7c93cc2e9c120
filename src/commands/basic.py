"""Small informational commands."""

from __future__ import annotations

from core.config import COMMAND_PREFIX
from core.router import CommandContext, CommandRegistry


async def ping_command(ctx: CommandContext) -> None:
    await ctx.reply("pong")


class HelpCommand:
    """Lists the registered commands."""

    def __init__(self, registry: CommandRegistry) -> None:
        self._registry = registry

    async def __call__(self, ctx: CommandContext) -> None:
        lines = ["Available commands:"]
        lines.extend(f"{COMMAND_PREFIX}{name}" for name in self._registry.names())
        await ctx.reply("\n".join(lines))


class GetMeCommand:
    """Shows who the session is logged in as."""

    async def __call__(self, ctx: CommandContext) -> None:
        me = await ctx.transport.get_me()
        username = f"@{me.username}" if me.username else "-"
        await ctx.reply(f"id: {me.id}\nusername: {username}\nname: {me.display_name}")

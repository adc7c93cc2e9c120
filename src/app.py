"""Application entry point for the teleout client."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
from logging.handlers import RotatingFileHandler
from typing import Awaitable, Optional

from art import tprint

from adapters.telegram_transport import flood_wait_seconds
from client import build_transport
from commands import SpamReactionHook, SpamReactionTracker, build_registry
from core.auth import SessionAuthenticator
from core.errors import AuthenticationError, TransportError
from core.flood_wait import FloodWaiter
from core.presentation import Presentation
from core.rate_limiter import RateLimiter
from get_session import TerminalAuthFlow
from settings import Settings, load_settings

NAME = "TELEOUT"
FONT = "tarty-1"

LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 5


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


class _RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self._secrets = [secret for secret in secrets if secret]

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def _collect_redaction_values(names: tuple[str, ...]) -> list[str]:
    values = [os.getenv(name) for name in names]
    return sorted({value for value in values if value}, key=len, reverse=True)


def _configure_logging(settings: Settings) -> None:
    level = getattr(logging, settings.log_level, logging.INFO)

    fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"
    formatter = _RedactingFormatter(_collect_redaction_values(settings.redacted), fmt=fmt, datefmt=datefmt)

    handlers: list[logging.Handler] = []

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    handlers.append(console_handler)

    if settings.log_file:
        path = os.path.expanduser(settings.log_file)
        if not os.path.isabs(path):
            path = os.path.join(settings.storage_path, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)

        file_handler = RotatingFileHandler(
            path,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    # Telethon is chatty at INFO; keep its connection noise out of our log.
    logging.getLogger("telethon").setLevel(max(level, logging.WARNING))


def build_presentation(settings: Settings) -> Presentation:
    """Wire the Telethon transport, middlewares and commands together."""

    transport = build_transport(settings)
    tracker = SpamReactionTracker()
    return Presentation(
        transport=transport,
        registry=build_registry(tracker),
        auth_flow=TerminalAuthFlow.from_env(settings.login_method),
        # Rate limiting gates before flood-wait accounting.
        middlewares=[RateLimiter(settings.rate_budget), FloodWaiter(flood_wait_seconds)],
        message_hook=SpamReactionHook(tracker, transport),
    )


async def _serve(settings: Settings) -> None:
    await build_presentation(settings).run()


async def _login(settings: Settings) -> None:
    transport = build_transport(settings)
    transport.install_middlewares([RateLimiter(settings.rate_budget), FloodWaiter(flood_wait_seconds)])
    await transport.connect()
    try:
        await SessionAuthenticator(transport, TerminalAuthFlow.from_env(settings.login_method)).authenticate()
        me = await transport.get_me()
        logging.getLogger(__name__).info("Logged in as: %s", me.display_name)
    finally:
        await transport.disconnect()


def _run_until_signalled(main: Awaitable[None]) -> int:
    """Run ``main`` until it finishes or SIGINT/SIGTERM cancels it."""

    logger = logging.getLogger(__name__)

    async def _runner() -> None:
        task = asyncio.current_task()
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, task.cancel)
            except NotImplementedError:
                # Windows event loops do not support signal handlers.
                pass
        await main

    try:
        asyncio.run(_runner())
    except asyncio.CancelledError:
        logger.info("Stopped")
        return 0
    except (AuthenticationError, TransportError):
        logger.exception("Fatal error")
        return 1
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="teleout")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the client and listen for commands")
    subparsers.add_parser("login", help="Authorize the session and exit")

    args = parser.parse_args(argv)

    _print_banner()
    settings = load_settings()
    _configure_logging(settings)
    logging.getLogger(__name__).info("Starting teleout")

    if args.command == "login":
        return _run_until_signalled(_login(settings))
    return _run_until_signalled(_serve(settings))


if __name__ == "__main__":
    raise SystemExit(main())

"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RateBudget:
    """Token bucket settings shared by all outbound calls.

    One token is added every ``interval`` seconds, up to ``burst`` tokens.
    """

    interval: float
    burst: int

    def __post_init__(self) -> None:
        if self.interval <= 0:
            raise ValueError("interval must be positive")
        if self.burst < 1:
            raise ValueError("burst must be at least 1")


DEFAULT_RATE_BUDGET = RateBudget(interval=0.1, burst=5)

# Literal prefix that turns the first word of a message into a command.
COMMAND_PREFIX = "!"

# Sent to Saved Messages once the session is authorized.
SELF_NOTIFICATION_TEXT = "Telegram client initialized"

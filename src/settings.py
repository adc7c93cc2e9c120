"""Process configuration for teleout.

Everything is read from the environment; a local .env file is loaded first
via python-dotenv so secrets stay out of the repo.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from core.config import DEFAULT_RATE_BUDGET, RateBudget

DEFAULT_STORAGE_PATH = "~/.teleout"
DEFAULT_SESSION_NAME = "teleout"

# Values of these variables never show up in log output.
DEFAULT_REDACTED = ("API_HASH", "PHONE", "2FA")


@dataclass(frozen=True)
class Settings:
    api_id: int
    api_hash: str
    storage_path: str
    session_name: str
    log_level: str
    log_file: Optional[str]
    rate_budget: RateBudget
    login_method: Optional[str]
    redacted: tuple[str, ...]

    @property
    def session_path(self) -> str:
        """Session file location; Telethon appends the .session suffix."""

        return os.path.join(self.storage_path, self.session_name)


def _int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def resolve_storage_path(raw_path: str) -> str:
    """Expand ``~`` and env vars, and create the directory if absent."""

    path = os.path.abspath(os.path.expandvars(os.path.expanduser(raw_path)))
    os.makedirs(path, exist_ok=True)
    return path


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build Settings from ``environ`` (defaults to os.environ after .env)."""

    if environ is None:
        load_dotenv()
        environ = os.environ

    api_id = environ.get("API_ID")
    api_hash = environ.get("API_HASH")
    # Fail fast on missing credentials to avoid an ambiguous login prompt.
    if not api_id or not api_hash:
        raise RuntimeError("Missing API_ID or API_HASH in environment")

    interval_ms = _int(environ, "RATE_LIMIT_INTERVAL_MS", int(DEFAULT_RATE_BUDGET.interval * 1000))
    burst = _int(environ, "RATE_LIMIT_BURST", DEFAULT_RATE_BUDGET.burst)

    login_method = (environ.get("LOGIN_METHOD") or "").strip().lower() or None
    if login_method not in {None, "qr", "phone"}:
        raise ValueError(f"LOGIN_METHOD must be 'qr' or 'phone', got {login_method!r}")

    redacted = tuple(
        name.strip() for name in (environ.get("LOG_REDACT") or ",".join(DEFAULT_REDACTED)).split(",") if name.strip()
    )

    return Settings(
        api_id=_int(environ, "API_ID", 0),
        api_hash=api_hash,
        storage_path=resolve_storage_path(environ.get("FILE_STORAGE_PATH") or DEFAULT_STORAGE_PATH),
        session_name=environ.get("SESSION_NAME") or DEFAULT_SESSION_NAME,
        log_level=(environ.get("LOG_LEVEL") or "INFO").upper(),
        log_file=environ.get("LOG_FILE") or None,
        rate_budget=RateBudget(interval=interval_ms / 1000, burst=burst),
        login_method=login_method,
        redacted=redacted,
    )

"""Exceptions raised by the core."""

from __future__ import annotations


class BadUpdate(Exception):
    """The update does not carry a regular message payload."""

    def __init__(self, kind: object = None) -> None:
        super().__init__(f"bad update: {kind}" if kind is not None else "bad update")
        self.kind = kind


class AuthenticationError(Exception):
    """Authentication could not be completed. Fatal for the session."""

    def __init__(self, message: str = "error while authenticating") -> None:
        super().__init__(message)


class TransportError(Exception):
    """The transport stopped with an unrecoverable error."""


class CommandRegistrationError(Exception):
    """A command was registered twice or after the registry was frozen."""

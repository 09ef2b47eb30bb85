"""Exception types shared across repograph."""

from __future__ import annotations


class RepographError(Exception):
    """Base class for repograph errors."""


class RepositoryError(RepographError):
    """A repository operation was rejected.

    Backends may raise this instead of returning an error string. The
    dispatcher reports the message verbatim as the step's ErrorInfo.
    """


class ProtocolError(RepographError):
    """An inbound message could not be decoded into a known request."""

    def __init__(self, message: str, command: str | None = None) -> None:
        super().__init__(message)
        self.command = command

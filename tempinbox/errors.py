"""Exceptions raised by mailbox sessions and gateways."""

from typing import Any


class InboxError(Exception):
    """Base class for all tempinbox errors."""


class TransportFailure(InboxError):
    """Network or HTTP-level failure talking to the mail provider.

    ``status`` is None when no response was received at all. ``body`` holds
    the parsed JSON payload when the provider returned one, else the raw text.
    """

    def __init__(self, message: str, status: int | None = None, body: Any = None):
        super().__init__(message)
        self.status = status
        self.body = body


class UnknownIdentifier(InboxError, KeyError):
    """A local message identifier is not known to the session."""

    def __init__(self, local_id: str):
        super().__init__(local_id)
        self.local_id = local_id

    def __str__(self) -> str:
        return f"Unknown message identifier: {self.local_id}"


class InvalidState(InboxError):
    """Operation attempted in the wrong session or listener state."""

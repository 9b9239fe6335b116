"""Errors raised by the Golos client.

Everything derives from ``GolosClientError``. Transport failures come from
opening or writing the socket; ``GolosProtocolError`` is the node itself
refusing a call.
"""

from __future__ import annotations

from typing import Any


class GolosClientError(Exception):
    """Base error for Golos client failures."""


class GolosTimeout(GolosClientError):
    """The node did not complete the WebSocket handshake in time."""


class GolosConnectionError(GolosClientError):
    """The node could not be reached, or the socket dropped mid-write."""


class GolosHandshakeError(GolosClientError):
    """Bad node address, or the node refused the upgrade."""


class GolosTransportUnavailable(GolosClientError):
    """A request was sent while no open transport exists."""


class GolosConnectionClosed(GolosClientError):
    """The transport closed before its connect attempt completed."""


class GolosProtocolError(GolosClientError):
    """The node answered a call with an ``error`` payload.

    Golos nodes report ``{"code", "message", "data"}``; ``data`` carries the
    chain assertion (``name``, ``message``, ``stack``) when there is one.
    """

    def __init__(self, message: str, payload: dict[str, Any]) -> None:
        super().__init__(message)
        self.payload = payload

    @property
    def error(self) -> dict[str, Any]:
        error = self.payload.get("error")
        return error if isinstance(error, dict) else {}

    @property
    def code(self) -> int | None:
        return self.error.get("code")

    @property
    def data(self) -> Any:
        return self.error.get("data")

    @classmethod
    def from_message(cls, message: dict[str, Any]) -> GolosProtocolError:
        """Build the error for an inbound error frame."""
        cause = message.get("error")
        text = cause.get("message") if isinstance(cause, dict) else None
        return cls(
            (text or "Failed to complete operation")
            + " (see err.payload for the full error payload)",
            message,
        )

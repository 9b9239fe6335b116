"""Event-driven WebSocket transport for a Golos node."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any

from websockets.asyncio.client import ClientConnection
from websockets.exceptions import ConnectionClosed

from ..errors import (
    GolosClientError,
    GolosConnectionError,
    GolosTransportUnavailable,
)
from .events import EventSource
from .ws import connect_websocket

_LOGGER = logging.getLogger(__name__)


class GolosWsClient(EventSource):
    """Wrapper around the websockets library emitting transport events.

    Events:
        open: the handshake completed, no arguments
        message: one TEXT frame, receives the raw string
        close: the transport is gone, receives the causing exception or None
    """

    def __init__(
        self,
        url: str,
        *,
        ping_interval: int | None = 20,
        timeout: float = 15.0,
    ) -> None:
        super().__init__()
        self.url = url
        self._ping_interval = ping_interval
        self._timeout = timeout
        self._ws: ClientConnection | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def is_open(self) -> bool:
        """Check if the handshake completed and the socket is still alive."""
        return self._ws is not None

    def open(self) -> None:
        """Start connecting in the background; outcome arrives as events."""
        if self._task is not None:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def close(self) -> None:
        """Close the websocket connection, or abort a pending connect."""
        task = self._task
        if self._ws is not None:
            await self._ws.close()
        elif task is not None and not task.done():
            task.cancel()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def send(self, text: str) -> None:
        """Write one TEXT frame without waiting for any reply."""
        if self._ws is None:
            raise GolosTransportUnavailable("WebSocket is not connected")
        try:
            await self._ws.send(text)
        except ConnectionClosed as err:
            raise GolosConnectionError("WebSocket closed while sending") from err

    async def _run(self) -> None:
        try:
            ws = await connect_websocket(
                self.url,
                ping_interval=self._ping_interval,
                timeout=self._timeout,
            )
        except GolosClientError as err:
            _LOGGER.warning("Connection to %s failed: %s", self.url, err)
            self.emit("close", err)
            return

        self._ws = ws
        self.emit("open")

        error: Exception | None = None
        try:
            async for frame in ws:
                text = self._normalize_frame(frame)
                if text is None:
                    continue
                self.emit("message", text)
        except ConnectionClosed as err:
            error = err
        finally:
            self._ws = None

        self.emit("close", error)

    @staticmethod
    def _normalize_frame(frame: Any) -> str | None:
        """Return TEXT payloads, skip binary frames."""
        if isinstance(frame, bytes):
            return None
        if isinstance(frame, str):
            return frame
        return str(frame)

"""Lifecycle of the single shared transport."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import Enum

from .config import GolosConfig
from .errors import GolosConnectionClosed
from .transport import GolosWsClient, listen_to

_LOGGER = logging.getLogger(__name__)

TransportFactory = Callable[[str], GolosWsClient]


class ConnectionState(Enum):
    """Connection states, linear per attempt."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    OPEN = "open"


class ConnectionManager:
    """Owns at most one transport and the future of its connect attempt.

    Usage:
        manager = ConnectionManager(config, on_message=dispatcher.dispatch)
        await manager.start()
        await manager.transport.send(payload)
        await manager.stop()
    """

    def __init__(
        self,
        config: GolosConfig,
        on_message: Callable[[str], None],
        *,
        on_teardown: Callable[[], None] | None = None,
        transport_factory: TransportFactory = GolosWsClient,
    ) -> None:
        self._config = config
        self._on_message = on_message
        self._on_teardown = on_teardown
        self._transport_factory = transport_factory

        self._transport: GolosWsClient | None = None
        self._start_future: asyncio.Future[None] | None = None
        self._releases: list[Callable[[], None]] = []
        self._state = ConnectionState.DISCONNECTED

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def transport(self) -> GolosWsClient | None:
        return self._transport

    @property
    def is_open(self) -> bool:
        return self._state is ConnectionState.OPEN

    def start(self) -> asyncio.Future[None]:
        """Return the connect future, creating a transport only when none exists.

        The future resolves once the transport reports ``open`` and fails with
        ``GolosConnectionClosed`` if it closes first.
        """
        if self._start_future is not None:
            return self._start_future

        loop = asyncio.get_running_loop()
        future: asyncio.Future[None] = loop.create_future()
        url = self._config.get("websocket")
        transport = self._transport_factory(url)

        def on_open() -> None:
            _LOGGER.info("Opened WS connection with %s", url)
            self._set_state(ConnectionState.OPEN)
            if not future.done():
                future.set_result(None)

        def on_close(error: Exception | None = None) -> None:
            _LOGGER.info("Closed WS connection with %s", url)
            self._teardown()
            if not future.done():
                exc = GolosConnectionClosed(
                    "The WS connection was closed before this operation was made"
                )
                exc.__cause__ = error
                _reject(future, exc)

        self._transport = transport
        self._start_future = future
        self._releases.extend(
            [
                listen_to(transport, "open", on_open),
                listen_to(transport, "close", on_close),
                listen_to(transport, "message", self._on_message),
            ]
        )
        self._set_state(ConnectionState.CONNECTING)
        _LOGGER.debug("Connecting to %s", url)
        transport.open()
        return future

    async def stop(self) -> None:
        """Close the transport and forget the connect attempt.

        A connect attempt still pending fails with ``GolosConnectionClosed``.
        Calls already written to an open transport are left untouched.
        """
        _LOGGER.debug("Stopping...")
        transport = self._transport
        future = self._start_future
        self._teardown()

        if future is not None and not future.done():
            _reject(
                future,
                GolosConnectionClosed(
                    "The WS connection was closed before this operation was made"
                ),
            )

        if transport is not None:
            await transport.close()

    def _teardown(self) -> None:
        for release in self._releases:
            release()
        self._releases = []
        self._transport = None
        self._start_future = None
        self._set_state(ConnectionState.DISCONNECTED)
        if self._on_teardown is not None:
            self._on_teardown()

    def _set_state(self, state: ConnectionState) -> None:
        if self._state is not state:
            _LOGGER.debug("State: %s → %s", self._state.value, state.value)
            self._state = state


def _reject(future: asyncio.Future[None], error: Exception) -> None:
    """Fail the connect future; nobody may be awaiting it."""
    future.set_exception(error)
    future.exception()

"""Golos node client multiplexing calls over one WebSocket.

Usage:
    async with GolosClient() as client:
        props = await client.api["get_dynamic_global_properties"]()
        cancel = client.stream_operations("head", on_operation)
        ...
        cancel()
"""

from __future__ import annotations

import asyncio
import logging
import warnings
from collections.abc import AsyncIterator, Callable, Mapping
from typing import Any

from .api import GolosApi
from .compat import NodeCallback, nodeify
from .config import GolosConfig, load_config
from .connection import ConnectionManager, ConnectionState, TransportFactory
from .dispatcher import MessageDispatcher, PendingCall, PushCallback, Subscription
from .errors import GolosClientError, GolosTransportUnavailable
from .protocol import build_envelope, encode_envelope, is_subscription_method
from .streaming import (
    DEFAULT_INTERVAL,
    StreamCallback,
    StreamHandle,
    StreamMode,
    blocks,
    fill_gaps,
    operations,
    poll_block_numbers,
    transactions,
)
from .transport import GolosWsClient

_LOGGER = logging.getLogger(__name__)


class GolosClient:
    """Client for one Golos node.

    All calls share a single transport which is opened lazily by the first
    request and reopened by the first request after ``stop``.
    """

    def __init__(
        self,
        url: str | None = None,
        *,
        config: GolosConfig | None = None,
        transport_factory: TransportFactory = GolosWsClient,
    ) -> None:
        """Initialize client.

        Args:
            url: WebSocket URL of the node; overrides ``config``
            config: Settings (default: ``load_config()``)
            transport_factory: Builds the transport for a URL
        """
        self.config = config if config is not None else load_config()
        if url is not None:
            self.config.set("websocket", url)

        self._dispatcher = MessageDispatcher(
            expected_response_ms=self.config.get("expected_response_ms", 2000)
        )
        self._connection = ConnectionManager(
            self.config,
            self._dispatcher.dispatch,
            on_teardown=self._dispatcher.clear_subscriptions,
            transport_factory=transport_factory,
        )
        self._next_id = 0
        self._reserved: set[int] = set()
        self._streams: set[StreamHandle[Any]] = set()
        self.api = GolosApi(self.request)

    async def __aenter__(self) -> GolosClient:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Public API: Connection Management
    # -------------------------------------------------------------------------

    def start(self) -> asyncio.Future[None]:
        """Open the transport, or return the attempt already in progress."""
        return self._connection.start()

    async def stop(self) -> None:
        """Close the transport; the next request reconnects."""
        await self._connection.stop()

    async def close(self) -> None:
        """Cancel running streams and close the transport."""
        for handle in list(self._streams):
            await handle.close()
        await self.stop()

    async def set_websocket(self, url: str) -> None:
        """Point the client at another node. Deprecated: use ``config.set``."""
        warnings.warn(
            "set_websocket(url) is deprecated, use config.set('websocket', url)",
            DeprecationWarning,
            stacklevel=2,
        )
        _LOGGER.debug("Setting WS %s", url)
        self.config.set("websocket", url)
        await self.stop()

    @property
    def connection_state(self) -> ConnectionState:
        return self._connection.state

    @property
    def pending(self) -> Mapping[int, PendingCall]:
        """Read-only view of calls awaiting a reply."""
        return self._dispatcher.pending

    @property
    def subscriptions(self) -> Mapping[int, Subscription]:
        """Read-only view of registered subscriptions."""
        return self._dispatcher.subscriptions

    # -------------------------------------------------------------------------
    # Public API: Requests
    # -------------------------------------------------------------------------

    async def request(
        self,
        api: str,
        data: Mapping[str, Any],
        on_push: PushCallback | None = None,
    ) -> Any:
        """Send one call and wait for its result.

        Args:
            api: API namespace (e.g., "database_api")
            data: ``{"method": ..., "params": [...], "id": optional int}``
            on_push: Receives ``(None, result)`` for every push of a
                callback-style method; required for those methods

        Returns:
            The call result, or the request id for callback-style methods
            once registered.

        Raises:
            GolosTransportUnavailable: No open transport when sending
            GolosConnectionClosed: The connect attempt failed
            GolosProtocolError: The node answered with an error
        """
        data = dict(data)
        method = data["method"]
        subscribe = is_subscription_method(method)
        if subscribe and on_push is None:
            raise ValueError(f"{method} requires a push callback")

        request_id = self._assign_id(data, subscribe=subscribe)
        _LOGGER.debug("send %s %s (id=%d)", api, method, request_id)

        future: asyncio.Future[Any] | None = None
        try:
            await asyncio.shield(self._connection.start())

            transport = self._connection.transport
            if transport is None or not transport.is_open:
                raise GolosTransportUnavailable(
                    "The WS connection was closed while this request was pending"
                )

            payload = encode_envelope(
                build_envelope(
                    request_id=request_id,
                    api=api,
                    method=method,
                    params=data.get("params"),
                )
            )

            if subscribe:
                self._dispatcher.register_subscription(request_id, api, data, on_push)
            else:
                future = asyncio.get_running_loop().create_future()
                self._dispatcher.register_call(request_id, api, data, future)
        finally:
            self._reserved.discard(request_id)

        _LOGGER.debug("Sending message %s", payload)
        try:
            await transport.send(payload)
        except (GolosClientError, asyncio.CancelledError):
            self._dispatcher.discard(request_id)
            raise

        if future is None:
            return request_id

        try:
            return await future
        except asyncio.CancelledError:
            self._dispatcher.discard(request_id)
            raise

    def send(
        self,
        api: str,
        data: Mapping[str, Any],
        callback: NodeCallback | None = None,
    ) -> asyncio.Future[Any]:
        """Schedule ``request`` and return its future.

        ``callback`` is invoked once with ``(error, result)`` when the future
        settles; for callback-style methods it receives every push instead.
        """
        if is_subscription_method(data["method"]):
            future = asyncio.ensure_future(self.request(api, data, callback))
            if callback is not None:
                future.add_done_callback(
                    lambda done: _report_failure(done, callback)
                )
            return future
        return nodeify(self.request(api, data), callback)

    def _assign_id(self, data: dict[str, Any], *, subscribe: bool) -> int:
        """Pick the request id and hold it until the entry is registered.

        Ids held by calls still waiting on the connect step count as taken.
        """
        explicit = data.get("id")
        if explicit is not None:
            if not isinstance(explicit, int) or isinstance(explicit, bool):
                raise TypeError(
                    f"Request id must be an int, got {type(explicit).__name__}"
                )
            taken = explicit in self._reserved or (
                explicit in self._dispatcher.pending
                if subscribe
                else self._dispatcher.is_outstanding(explicit)
            )
            if taken:
                raise ValueError(f"Request id {explicit} is already outstanding")
            request_id = explicit
        else:
            while (
                self._next_id in self._reserved
                or self._dispatcher.is_outstanding(self._next_id)
            ):
                self._next_id += 1
            request_id = self._next_id
            self._next_id += 1

        self._reserved.add(request_id)
        return request_id

    # -------------------------------------------------------------------------
    # Public API: Subscriptions
    # -------------------------------------------------------------------------

    def set_block_applied_callback(
        self, block_type: str, callback: PushCallback
    ) -> asyncio.Future[Any]:
        """Receive every applied block (``block_type`` e.g. "header", "full")."""
        return self.send(
            "database_api",
            {"method": "set_block_applied_callback", "params": [block_type]},
            callback,
        )

    def set_pending_transaction_callback(
        self, callback: PushCallback
    ) -> asyncio.Future[Any]:
        """Receive every transaction entering the node's pending pool."""
        return self.send(
            "database_api",
            {"method": "set_pending_transaction_callback", "params": []},
            callback,
        )

    def set_private_message_callback(
        self, query: Mapping[str, Any], callback: PushCallback
    ) -> asyncio.Future[Any]:
        """Receive private messages matching ``query``."""
        return self.send(
            "private_message",
            {"method": "set_callback", "params": [dict(query)]},
            callback,
        )

    # -------------------------------------------------------------------------
    # Public API: Streams
    # -------------------------------------------------------------------------

    def stream_block_number(
        self,
        mode: StreamMode | str | StreamCallback = StreamMode.HEAD,
        callback: StreamCallback | None = None,
        interval: float = DEFAULT_INTERVAL,
    ) -> StreamHandle[int]:
        """Report every block number as the chain advances.

        Numbers produced between two polls are reported too, in order.
        """
        mode, callback = _mode_and_callback(mode, callback)
        return self._open_stream(
            lambda stop: fill_gaps(self._poll(mode, interval, stop)), callback
        )

    def stream_block(
        self,
        mode: StreamMode | str | StreamCallback = StreamMode.HEAD,
        callback: StreamCallback | None = None,
        interval: float = DEFAULT_INTERVAL,
    ) -> StreamHandle[Any]:
        """Report the block for each newly observed block number."""
        mode, callback = _mode_and_callback(mode, callback)
        return self._open_stream(
            lambda stop: self._blocks(mode, interval, stop), callback
        )

    def stream_transactions(
        self,
        mode: StreamMode | str | StreamCallback = StreamMode.HEAD,
        callback: StreamCallback | None = None,
        interval: float = DEFAULT_INTERVAL,
    ) -> StreamHandle[Any]:
        """Report every transaction of each streamed block."""
        mode, callback = _mode_and_callback(mode, callback)
        return self._open_stream(
            lambda stop: transactions(self._blocks(mode, interval, stop)), callback
        )

    def stream_operations(
        self,
        mode: StreamMode | str | StreamCallback = StreamMode.HEAD,
        callback: StreamCallback | None = None,
        interval: float = DEFAULT_INTERVAL,
    ) -> StreamHandle[Any]:
        """Report every operation of each streamed transaction."""
        mode, callback = _mode_and_callback(mode, callback)
        return self._open_stream(
            lambda stop: operations(
                transactions(self._blocks(mode, interval, stop))
            ),
            callback,
        )

    def _poll(
        self, mode: StreamMode, interval: float, stop: asyncio.Event
    ) -> AsyncIterator[int]:
        return poll_block_numbers(
            self.api["get_dynamic_global_properties"], mode, interval, stop
        )

    def _blocks(
        self, mode: StreamMode, interval: float, stop: asyncio.Event
    ) -> AsyncIterator[Any]:
        return blocks(self._poll(mode, interval, stop), self.api["get_block"])

    def _open_stream(
        self,
        build: Callable[[asyncio.Event], AsyncIterator[Any]],
        callback: StreamCallback,
    ) -> StreamHandle[Any]:
        handle: StreamHandle[Any] = StreamHandle(build, callback)
        self._streams.add(handle)
        handle.add_done_callback(self._streams.discard)
        return handle


def _mode_and_callback(
    mode: StreamMode | str | StreamCallback,
    callback: StreamCallback | None,
) -> tuple[StreamMode, StreamCallback]:
    if callable(mode):
        mode, callback = StreamMode.HEAD, mode
    if callback is None:
        raise TypeError("A stream callback is required")
    return StreamMode(mode), callback


def _report_failure(done: asyncio.Future[Any], callback: PushCallback) -> None:
    if done.cancelled():
        return
    error = done.exception()
    if error is not None:
        try:
            callback(error, None)
        except Exception as err:
            _LOGGER.exception("Callback error: %s", err)

"""Live block streaming built on polling the node.

Each layer is an async generator that owns its upstream through
``contextlib.aclosing``: closing an outer layer closes the whole chain, and
an exception raised anywhere ends every layer above it.

    observations = poll_block_numbers(fetch_properties, StreamMode.HEAD, 0.2, stop)
    async for op in operations(transactions(blocks(observations, fetch_block))):
        ...
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable, Mapping
from contextlib import aclosing, suppress
from enum import Enum
from typing import Any, Generic, TypeVar

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

FetchProperties = Callable[[], Awaitable[Mapping[str, Any]]]
FetchBlock = Callable[[int], Awaitable[Any]]
StreamCallback = Callable[[Exception | None, Any], None]

DEFAULT_INTERVAL = 0.2


class StreamMode(str, Enum):
    """Which block counter a stream follows."""

    HEAD = "head"
    IRREVERSIBLE = "irreversible"

    @property
    def field(self) -> str:
        """Property of the dynamic global properties holding the counter."""
        if self is StreamMode.IRREVERSIBLE:
            return "last_irreversible_block_num"
        return "head_block_number"


async def poll_block_numbers(
    fetch_properties: FetchProperties,
    mode: StreamMode | str = StreamMode.HEAD,
    interval: float = DEFAULT_INTERVAL,
    stop: asyncio.Event | None = None,
) -> AsyncIterator[int]:
    """Yield each block number observed to be higher than the previous one.

    Polls once, waits ``interval`` seconds, polls again; never more than one
    poll outstanding. Setting ``stop`` ends the generator without another
    poll; a poll already in flight completes but yields nothing.
    """
    mode = StreamMode(mode)
    stop = stop or asyncio.Event()
    last: int | None = None

    while not stop.is_set():
        properties = await fetch_properties()
        if stop.is_set():
            return

        number = int(properties[mode.field])
        if last is None or number > last:
            last = number
            yield number

        try:
            await asyncio.wait_for(stop.wait(), timeout=interval)
        except TimeoutError:
            pass


async def fill_gaps(observations: AsyncIterator[int]) -> AsyncIterator[int]:
    """Expand observations into every integer in ``(previous, current]``."""
    last: int | None = None
    async with aclosing(observations) as source:
        async for number in source:
            start = number if last is None else last + 1
            for value in range(start, number + 1):
                yield value
            last = number


async def blocks(
    observations: AsyncIterator[int], fetch_block: FetchBlock
) -> AsyncIterator[Any]:
    """Fetch one block per observed number; numbers skipped between polls are not fetched."""
    async with aclosing(observations) as source:
        async for number in source:
            _LOGGER.debug("Fetching block %d", number)
            yield await fetch_block(number)


async def transactions(block_source: AsyncIterator[Any]) -> AsyncIterator[Any]:
    """Flatten blocks into their transactions, in order."""
    async with aclosing(block_source) as source:
        async for block in source:
            if not block:
                continue
            for transaction in block.get("transactions") or ():
                yield transaction


async def operations(transaction_source: AsyncIterator[Any]) -> AsyncIterator[Any]:
    """Flatten transactions into their operations, in order."""
    async with aclosing(transaction_source) as source:
        async for transaction in source:
            for operation in transaction.get("operations") or ():
                yield operation


class StreamHandle(Generic[T]):
    """Drive a stream pipeline and report items to a callback.

    The handle is the cancel function: calling it (or ``cancel``) guarantees
    no further callback invocations. The first error from the pipeline is
    delivered as ``callback(error, None)`` and ends the stream.
    """

    def __init__(
        self,
        build: Callable[[asyncio.Event], AsyncIterator[T]],
        callback: StreamCallback,
    ) -> None:
        self._stop = asyncio.Event()
        self._callback = callback
        self._task = asyncio.get_running_loop().create_task(
            self._drive(build(self._stop))
        )

    def __call__(self) -> None:
        self.cancel()

    def cancel(self) -> None:
        """Stop delivering items and release the upstream chain."""
        if not self._stop.is_set():
            _LOGGER.debug("Stream cancelled")
            self._stop.set()

    @property
    def cancelled(self) -> bool:
        return self._stop.is_set()

    @property
    def done(self) -> bool:
        return self._task.done()

    async def wait(self) -> None:
        """Wait until the pipeline has shut down."""
        await asyncio.wait({self._task})

    async def close(self) -> None:
        """Cancel, aborting any call in flight, and wait for shutdown."""
        self.cancel()
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task

    def add_done_callback(self, fn: Callable[[StreamHandle[T]], None]) -> None:
        self._task.add_done_callback(lambda _task: fn(self))

    async def _drive(self, source: AsyncIterator[T]) -> None:
        try:
            async with aclosing(source) as items:
                async for item in items:
                    if self._stop.is_set():
                        break
                    self._deliver(None, item)
                    if self._stop.is_set():
                        break
        except Exception as err:
            if self._stop.is_set():
                _LOGGER.debug("Error after cancel dropped: %s", err)
                return
            _LOGGER.warning("Stream ended with error: %s", err)
            self._stop.set()
            self._deliver(err, None)

    def _deliver(self, error: Exception | None, item: Any) -> None:
        try:
            self._callback(error, item)
        except Exception as err:
            _LOGGER.exception("Stream callback error: %s", err)

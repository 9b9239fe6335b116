"""Adapters between awaitable results and ``(error, result)`` callbacks."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

NodeCallback = Callable[[Exception | None, Any], None]


def nodeify(
    awaitable: Awaitable[T], callback: NodeCallback | None = None
) -> asyncio.Future[T]:
    """Schedule ``awaitable`` and report its outcome to ``callback`` once.

    The returned future settles with the same outcome, so callers may use
    either style. Exceptions raised by the callback are logged.
    """
    future = asyncio.ensure_future(awaitable)
    if callback is None:
        return future

    def settle(done: asyncio.Future[T]) -> None:
        if done.cancelled():
            error: BaseException | None = asyncio.CancelledError()
            result = None
        else:
            error = done.exception()
            result = None if error is not None else done.result()
        try:
            callback(error, result)  # type: ignore[arg-type]
        except Exception as err:
            _LOGGER.exception("Callback error: %s", err)

    future.add_done_callback(settle)
    return future

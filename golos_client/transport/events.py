"""Event registration capability shared by transports."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Protocol

_LOGGER = logging.getLogger(__name__)

Handler = Callable[..., None]


class Subscribable(Protocol):
    """Anything that can register and unregister event handlers."""

    def on(self, event: str, handler: Handler) -> None: ...

    def off(self, event: str, handler: Handler) -> None: ...


def listen_to(target: Subscribable, event: str, handler: Handler) -> Callable[[], None]:
    """Register ``handler`` for ``event`` and return its disposer.

    The disposer undoes exactly this registration and is safe to call twice.
    """
    _LOGGER.debug("Adding listener for %s from %s", event, type(target).__name__)
    target.on(event, handler)
    released = False

    def release() -> None:
        nonlocal released
        if released:
            return
        released = True
        _LOGGER.debug(
            "Removing listener for %s from %s", event, type(target).__name__
        )
        target.off(event, handler)

    return release


class EventSource:
    """Minimal in-process event emitter satisfying ``Subscribable``."""

    def __init__(self) -> None:
        self._handlers: dict[str, list[Handler]] = {}

    def on(self, event: str, handler: Handler) -> None:
        self._handlers.setdefault(event, []).append(handler)

    def off(self, event: str, handler: Handler) -> None:
        handlers = self._handlers.get(event)
        if handlers and handler in handlers:
            handlers.remove(handler)

    def listener_count(self, event: str) -> int:
        return len(self._handlers.get(event, ()))

    def emit(self, event: str, *args: Any) -> None:
        """Invoke handlers registered for ``event`` in registration order."""
        for handler in list(self._handlers.get(event, ())):
            try:
                handler(*args)
            except Exception as err:
                _LOGGER.exception("Handler for %s failed: %s", event, err)

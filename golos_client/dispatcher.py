"""Routing of inbound frames to pending calls and subscriptions by id."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from .errors import GolosProtocolError
from .protocol import decode_message

_LOGGER = logging.getLogger(__name__)

PushCallback = Callable[[Exception | None, Any], None]


@dataclass(slots=True)
class PendingCall:
    """A one-shot call awaiting its single reply."""

    api: str
    data: dict[str, Any]
    future: asyncio.Future[Any]
    start_time: float = field(default_factory=time.monotonic)


@dataclass(slots=True)
class Subscription:
    """A callback-style registration receiving repeated pushes."""

    api: str
    data: dict[str, Any]
    callback: PushCallback


class MessageDispatcher:
    """Own the id tables and settle entries as replies arrive.

    Only the event loop thread mutates the tables; callers get read-only
    views through ``pending`` and ``subscriptions``.
    """

    def __init__(self, *, expected_response_ms: float = 2000) -> None:
        self.expected_response_ms = expected_response_ms
        self._pending: dict[int, PendingCall] = {}
        self._subscriptions: dict[int, Subscription] = {}

    @property
    def pending(self) -> Mapping[int, PendingCall]:
        return MappingProxyType(self._pending)

    @property
    def subscriptions(self) -> Mapping[int, Subscription]:
        return MappingProxyType(self._subscriptions)

    def is_outstanding(self, request_id: int) -> bool:
        return request_id in self._pending or request_id in self._subscriptions

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def register_call(
        self,
        request_id: int,
        api: str,
        data: dict[str, Any],
        future: asyncio.Future[Any],
    ) -> PendingCall:
        if self.is_outstanding(request_id):
            raise ValueError(f"Request id {request_id} is already outstanding")
        call = PendingCall(api=api, data=data, future=future)
        self._pending[request_id] = call
        return call

    def register_subscription(
        self,
        request_id: int,
        api: str,
        data: dict[str, Any],
        callback: PushCallback,
    ) -> Subscription:
        if request_id in self._pending:
            raise ValueError(f"Request id {request_id} is already outstanding")
        if request_id in self._subscriptions:
            _LOGGER.debug("Overwriting subscription %d", request_id)
        subscription = Subscription(api=api, data=data, callback=callback)
        self._subscriptions[request_id] = subscription
        return subscription

    def discard(self, request_id: int) -> None:
        """Forget an entry whose request never made it onto the wire."""
        self._pending.pop(request_id, None)
        self._subscriptions.pop(request_id, None)

    def clear_subscriptions(self) -> None:
        """Drop subscriptions registered on a connection that is gone."""
        if self._subscriptions:
            _LOGGER.debug("Dropping %d subscriptions", len(self._subscriptions))
        self._subscriptions.clear()

    # -------------------------------------------------------------------------
    # Inbound
    # -------------------------------------------------------------------------

    def dispatch(self, raw: str | bytes) -> None:
        """Handle one inbound frame; unknown or malformed frames are dropped."""
        _LOGGER.debug("Received message %s", raw)
        try:
            message = decode_message(raw)
        except ValueError as err:
            _LOGGER.warning("Dropping undecodable message: %s", err)
            return

        request_id = message.get("id")
        if not isinstance(request_id, int):
            _LOGGER.warning("Dropping message without numeric id: %s", request_id)
            return

        call = self._pending.get(request_id)
        if call is not None:
            self._settle_call(request_id, call, message)
            return

        subscription = self._subscriptions.get(request_id)
        if subscription is not None:
            self._push(request_id, subscription, message)
            return

        _LOGGER.warning("Dropping message for unknown request %s", request_id)

    def _settle_call(
        self, request_id: int, call: PendingCall, message: dict[str, Any]
    ) -> None:
        del self._pending[request_id]

        elapsed_ms = (time.monotonic() - call.start_time) * 1000
        if elapsed_ms > self.expected_response_ms:
            _LOGGER.warning(
                "Slow reply for %s.%s (id=%d): %.0fms",
                call.api,
                call.data.get("method"),
                request_id,
                elapsed_ms,
            )

        if call.future.done():
            _LOGGER.debug("Reply for abandoned request %d", request_id)
            return

        if message.get("error") is not None:
            call.future.set_exception(GolosProtocolError.from_message(message))
            return

        _LOGGER.debug(
            "Resolved %s.%s (id=%d) in %.0fms",
            call.api,
            call.data.get("method"),
            request_id,
            elapsed_ms,
        )
        call.future.set_result(message.get("result"))

    def _push(
        self, request_id: int, subscription: Subscription, message: dict[str, Any]
    ) -> None:
        if message.get("error") is not None:
            _LOGGER.warning(
                "Dropping error pushed for subscription %d: %s",
                request_id,
                message.get("error"),
            )
            return

        try:
            subscription.callback(None, message.get("result"))
        except Exception as err:
            _LOGGER.exception(
                "Subscription %d callback error: %s", request_id, err
            )

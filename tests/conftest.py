"""Pytest configuration and fixtures for golos_client tests."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from typing import Any

import pytest

from golos_client import GolosClient, GolosConfig
from golos_client.errors import GolosTransportUnavailable
from golos_client.transport import EventSource

Responder = Callable[[str, str, list[Any]], Any]


class FakeTransport(EventSource):
    """In-memory transport recording outbound envelopes.

    With ``auto_open`` the ``open`` event fires on the next loop iteration.
    With a ``responder`` every envelope is answered on the next iteration;
    exceptions raised by the responder become error frames.
    """

    def __init__(
        self,
        url: str,
        *,
        auto_open: bool = True,
        responder: Responder | None = None,
    ) -> None:
        super().__init__()
        self.url = url
        self.auto_open = auto_open
        self.responder = responder
        self.is_open = False
        self.open_calls = 0
        self.closed = False
        self.sent: list[dict[str, Any]] = []

    def open(self) -> None:
        self.open_calls += 1
        if self.auto_open:
            asyncio.get_running_loop().call_soon(self.simulate_open)

    def simulate_open(self) -> None:
        self.is_open = True
        self.emit("open")

    def simulate_close(self, error: Exception | None = None) -> None:
        self.is_open = False
        self.emit("close", error)

    def deliver(self, message: dict[str, Any]) -> None:
        self.emit("message", json.dumps(message))

    async def send(self, text: str) -> None:
        if not self.is_open:
            raise GolosTransportUnavailable("WebSocket is not connected")
        envelope = json.loads(text)
        self.sent.append(envelope)
        if self.responder is not None:
            asyncio.get_running_loop().call_soon(self._respond, envelope)

    async def close(self) -> None:
        self.closed = True
        self.is_open = False

    def _respond(self, envelope: dict[str, Any]) -> None:
        api, method, params = envelope["params"]
        try:
            result = self.responder(api, method, params)
        except Exception as err:
            self.deliver({"id": envelope["id"], "error": {"message": str(err)}})
        else:
            self.deliver({"id": envelope["id"], "result": result})


async def settle(rounds: int = 20) -> None:
    """Let scheduled callbacks and tasks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def transports() -> list[FakeTransport]:
    """Transports created by clients from ``make_client``, in order."""
    return []


@pytest.fixture
def make_client(
    transports: list[FakeTransport],
) -> Callable[..., GolosClient]:
    """Build clients backed by ``FakeTransport``."""

    def factory(
        *, auto_open: bool = True, responder: Responder | None = None
    ) -> GolosClient:
        def build(url: str) -> FakeTransport:
            transport = FakeTransport(url, auto_open=auto_open, responder=responder)
            transports.append(transport)
            return transport

        return GolosClient(
            "ws://node.test", config=GolosConfig(), transport_factory=build
        )

    return factory

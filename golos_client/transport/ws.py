"""Opening the WebSocket to a Golos node."""

from __future__ import annotations

import asyncio
import logging
from urllib.parse import urlsplit, urlunsplit

import websockets
from websockets.asyncio.client import ClientConnection
from websockets.exceptions import (
    InvalidHandshake,
    InvalidURI,
    WebSocketException,
)

from ..errors import (
    GolosConnectionError,
    GolosHandshakeError,
    GolosTimeout,
)

_LOGGER = logging.getLogger(__name__)

# Public nodes are often published with their HTTP(S) address.
_SCHEMES = {"ws": "ws", "wss": "wss", "http": "ws", "https": "wss"}


def node_url(url: str) -> str:
    """Return the WebSocket URL for a node address.

    ``http``/``https`` addresses map to ``ws``/``wss``; anything else without
    a host is rejected.

    Raises:
        GolosHandshakeError: The address cannot name a node endpoint.
    """
    parts = urlsplit(url.strip())
    scheme = _SCHEMES.get(parts.scheme.lower())
    if scheme is None or not parts.hostname:
        raise GolosHandshakeError(f"Not a node WebSocket address: {url!r}")
    return urlunsplit((scheme, parts.netloc, parts.path or "/", parts.query, ""))


async def connect_websocket(
    url: str,
    *,
    ping_interval: int | None = 20,
    timeout: float = 15.0,
) -> ClientConnection:
    """Connect to a Golos node; inbound frame size is unbounded.

    Args:
        url: Node address, see ``node_url``
        ping_interval: Interval for ping frames
        timeout: Handshake timeout in seconds
    """
    target = node_url(url)
    _LOGGER.debug("Opening %s", target)
    try:
        return await asyncio.wait_for(
            websockets.connect(
                target,
                ping_interval=ping_interval,
                close_timeout=5,
                max_size=None,
                open_timeout=None,
            ),
            timeout=timeout,
        )
    except TimeoutError as err:
        raise GolosTimeout(f"No handshake from {target} in {timeout}s") from err
    except (InvalidHandshake, InvalidURI) as err:
        raise GolosHandshakeError(f"Node {target} rejected the handshake") from err
    except (OSError, WebSocketException) as err:
        raise GolosConnectionError(f"Cannot reach node {target}") from err

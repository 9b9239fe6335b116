"""Transport layer for the Golos client.

Components:
- events: Subscribable capability and disposable listener registration
- ws: WebSocket connection helper
- ws_client: event-driven WebSocket transport
"""

from .events import EventSource, Subscribable, listen_to
from .ws import connect_websocket, node_url
from .ws_client import GolosWsClient

__all__ = [
    "EventSource",
    "GolosWsClient",
    "Subscribable",
    "connect_websocket",
    "listen_to",
    "node_url",
]

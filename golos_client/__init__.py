"""Asyncio client for Golos node JSON-RPC over a WebSocket."""

__version__ = "0.1.0"

from .api import GolosApi, RpcMethod, build_method_table
from .client import GolosClient
from .compat import nodeify
from .config import DEFAULT_CONFIG, GolosConfig, load_config
from .connection import ConnectionManager, ConnectionState
from .dispatcher import MessageDispatcher, PendingCall, Subscription
from .errors import (
    GolosClientError,
    GolosConnectionClosed,
    GolosConnectionError,
    GolosHandshakeError,
    GolosProtocolError,
    GolosTimeout,
    GolosTransportUnavailable,
)
from .methods import METHODS, MethodDescriptor
from .protocol import SUBSCRIPTION_METHODS, build_envelope
from .streaming import (
    StreamHandle,
    StreamMode,
    blocks,
    fill_gaps,
    operations,
    poll_block_numbers,
    transactions,
)
from .transport import GolosWsClient, Subscribable, listen_to

__all__ = [
    "DEFAULT_CONFIG",
    "METHODS",
    "SUBSCRIPTION_METHODS",
    "ConnectionManager",
    "ConnectionState",
    "GolosApi",
    "GolosClient",
    "GolosClientError",
    "GolosConfig",
    "GolosConnectionClosed",
    "GolosConnectionError",
    "GolosHandshakeError",
    "GolosProtocolError",
    "GolosTimeout",
    "GolosTransportUnavailable",
    "GolosWsClient",
    "MessageDispatcher",
    "MethodDescriptor",
    "PendingCall",
    "RpcMethod",
    "StreamHandle",
    "StreamMode",
    "Subscribable",
    "Subscription",
    "__version__",
    "blocks",
    "build_envelope",
    "build_method_table",
    "fill_gaps",
    "listen_to",
    "load_config",
    "nodeify",
    "operations",
    "poll_block_numbers",
    "transactions",
]

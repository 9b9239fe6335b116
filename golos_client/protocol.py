"""Wire format helpers for Golos node JSON-RPC frames.

Outbound calls always use the ``call`` method with ``[api, method, params]``
positional parameters; replies carry the same numeric ``id``.
"""

from __future__ import annotations

import json
from collections.abc import Sequence
from typing import Any

JSONRPC_VERSION = "2.0"

SUBSCRIPTION_METHODS: frozenset[str] = frozenset(
    {
        "set_block_applied_callback",
        "set_pending_transaction_callback",
        "set_callback",
    }
)


def is_subscription_method(method: str) -> bool:
    """Return True for methods whose replies are pushed repeatedly."""
    return method in SUBSCRIPTION_METHODS


def build_envelope(
    *,
    request_id: int,
    api: str,
    method: str,
    params: Sequence[Any] | None = None,
) -> dict[str, Any]:
    """Build the outbound envelope for one call.

    Args:
        request_id: Numeric id used to correlate replies.
        api: API namespace on the node (e.g., "database_api").
        method: RPC method name inside that namespace.
        params: Positional parameters for the method.

    Returns:
        Envelope dict ready for ``encode_envelope``.
    """
    return {
        "id": request_id,
        "method": "call",
        "jsonrpc": JSONRPC_VERSION,
        "params": [api, method, list(params or [])],
    }


def encode_envelope(envelope: dict[str, Any]) -> str:
    """Serialize an envelope to the TEXT frame sent on the wire."""
    return json.dumps(envelope)


def decode_message(raw: str | bytes) -> dict[str, Any]:
    """Parse one inbound frame.

    Raises:
        ValueError: The frame is not JSON or not a JSON object.
    """
    message = json.loads(raw)
    if not isinstance(message, dict):
        raise ValueError("Inbound frame is not a JSON object")
    return message

"""Error taxonomy surfaced to tool callers.

Every error carries the JSON-RPC code the transport reports it with.
"""

from __future__ import annotations

INVALID_PARAMS = -32602
METHOD_NOT_FOUND = -32601
INTERNAL_ERROR = -32603


class BridgeError(Exception):
    """Base class for failures reported back to the caller."""

    code = INTERNAL_ERROR


class NotReadyError(BridgeError):
    """The Discord session is not ready."""


class NotFoundError(BridgeError):
    """A channel or message does not exist."""

    code = INVALID_PARAMS


class InvalidParamsError(BridgeError):
    """Tool arguments failed schema validation."""

    code = INVALID_PARAMS


class MethodNotFoundError(BridgeError):
    """Unknown tool name."""

    code = METHOD_NOT_FOUND


class ConnectFailureError(BridgeError):
    """Login failed or timed out."""


class TransportFailureError(BridgeError):
    """A platform call failed after the session was established."""

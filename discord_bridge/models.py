"""Core domain models used across layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

READ_MARKER_EMOJI = "✅"


class SessionState(Enum):
    """Connection state of the single Discord session."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    READY = "ready"


class SessionEvent(Enum):
    """Signals emitted by the gateway and consumed by the session manager."""

    READY = "ready"
    ERROR = "error"
    DISCONNECTED = "disconnected"
    RECONNECTING = "reconnecting"


@dataclass(slots=True)
class PendingMessage:
    """Outbound message held back while the session is unavailable."""

    channel_name: str
    content: str


@dataclass(slots=True)
class MessageRecord:
    """Message fetched from a channel, normalized by the gateway adapter."""

    id: str
    created_at: datetime
    author: str
    content: str
    reactions: frozenset[str] = field(default_factory=frozenset)
    own_reactions: frozenset[str] = field(default_factory=frozenset)

    @property
    def is_read(self) -> bool:
        return READ_MARKER_EMOJI in self.own_reactions

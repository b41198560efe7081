"""In-memory queue of messages waiting for the session to recover."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

from discord_bridge.models import PendingMessage

LOGGER = logging.getLogger(__name__)

DELAY_NOTICE = "\n\n*(Note: This message was delayed due to connection issues)*"

Deliver = Callable[[PendingMessage], Awaitable[None]]


class PendingQueue:
    """FIFO buffer of sends made while disconnected.

    Not persisted, unbounded, and not deduplicated.
    """

    def __init__(self) -> None:
        self._messages: list[PendingMessage] = []

    def __len__(self) -> int:
        return len(self._messages)

    def enqueue(self, message: PendingMessage) -> None:
        self._messages.append(message)
        LOGGER.info("Queued message for #%s (%d pending)", message.channel_name, len(self._messages))

    def snapshot(self) -> list[PendingMessage]:
        return list(self._messages)

    async def drain(self, deliver: Deliver) -> None:
        """Deliver every queued message in order.

        Messages that fail are re-appended to the tail and wait for the next
        reconnect; the rest of the drain continues.
        """

        if not self._messages:
            return

        LOGGER.info("Flushing %d pending messages...", len(self._messages))
        messages = list(self._messages)
        self._messages.clear()

        for message in messages:
            delayed = PendingMessage(
                channel_name=message.channel_name,
                content=f"{message.content}{DELAY_NOTICE}",
            )
            try:
                await deliver(delayed)
            except Exception as exc:  # noqa: BLE001
                LOGGER.error("Failed to send pending message to #%s: %s", message.channel_name, exc)
                self._messages.append(message)

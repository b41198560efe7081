"""Message tools: read, send and delete."""

from __future__ import annotations

import logging
from typing import Any

from discord_bridge.channels import ChannelResolver
from discord_bridge.models import PendingMessage
from discord_bridge.pending_queue import PendingQueue
from discord_bridge.reader import read_recent
from discord_bridge.session import SessionManager
from discord_bridge.tools.base import Tool

LOGGER = logging.getLogger(__name__)

AUTH_SUGGESTION = "Please check the bot token configuration."
CONNECTIVITY_SUGGESTION = (
    "The connection to Discord seems unstable. Reloading the editor window may help."
)


class ReadRecentMessagesTool(Tool):
    """Reads recent messages, optionally only unread or reacted ones."""

    name = "read_recent_messages"
    description = "Read recent messages from a Discord channel."
    parameters_schema: dict[str, Any] = {
        "type": "object",
        "properties": {
            "channel_name": {
                "type": "string",
                "description": "Name of the channel to read from (e.g. 'inbox', 'general')",
            },
            "limit": {
                "type": "integer",
                "default": 10,
                "minimum": 1,
                "description": "Number of messages to retrieve (max 50)",
            },
            "unread_only": {
                "type": "boolean",
                "default": False,
                "description": "If true, skip messages the bot has marked with ✅",
            },
            "reaction_filter": {
                "type": "string",
                "description": "Only return messages carrying this reaction (e.g. '🔴')",
            },
        },
        "required": ["channel_name"],
    }

    def __init__(self, resolver: ChannelResolver) -> None:
        self._resolver = resolver

    async def run(self, **kwargs: Any) -> str:
        channel = self._resolver.resolve(kwargs["channel_name"])
        return await read_recent(
            channel,
            limit=int(kwargs.get("limit", 10)),
            unread_only=bool(kwargs.get("unread_only", False)),
            reaction_filter=kwargs.get("reaction_filter"),
        )


class SendMessageTool(Tool):
    """Sends a message, queueing it for later delivery when Discord is unreachable."""

    name = "send_message"
    description = "Send a message to a Discord channel. If offline, the message will be queued."
    parameters_schema: dict[str, Any] = {
        "type": "object",
        "properties": {
            "channel_name": {"type": "string", "description": "Name of the channel to send to"},
            "content": {"type": "string", "description": "Message content to send"},
            "project_name": {
                "type": "string",
                "description": "Shown as a [name] prefix; defaults to the configured project name",
            },
        },
        "required": ["channel_name", "content"],
    }
    requires_connection = False

    def __init__(
        self,
        session: SessionManager,
        resolver: ChannelResolver,
        queue: PendingQueue,
        project_name: str | None = None,
    ) -> None:
        self._session = session
        self._resolver = resolver
        self._queue = queue
        self._project_name = project_name

    async def run(self, **kwargs: Any) -> str:
        channel_name = kwargs["channel_name"]
        name = kwargs.get("project_name") or self._project_name
        content = f"[{name}] {kwargs['content']}" if name else kwargs["content"]

        try:
            await self._session.ensure_connected()
            await self.deliver(PendingMessage(channel_name=channel_name, content=content))
        except Exception as exc:  # noqa: BLE001
            LOGGER.error("Send failed, queuing message: %s", exc)
            self._queue.enqueue(PendingMessage(channel_name=channel_name, content=content))
            return _queued_notice(exc)
        return f"✅ Message sent to #{channel_name}"

    async def deliver(self, message: PendingMessage) -> None:
        channel = self._resolver.resolve(message.channel_name)
        await channel.send(message.content)

    async def flush_pending(self) -> None:
        """Replay queued messages; registered to run whenever the session becomes ready."""

        await self._queue.drain(self.deliver)


class DeleteMessageTool(Tool):
    """Deletes a message by id."""

    name = "delete_message"
    description = "Delete a message from a Discord channel."
    parameters_schema: dict[str, Any] = {
        "type": "object",
        "properties": {
            "channel_name": {"type": "string", "description": "Name of the channel"},
            "message_id": {"type": "string", "description": "ID of the message to delete"},
        },
        "required": ["channel_name", "message_id"],
    }

    def __init__(self, resolver: ChannelResolver) -> None:
        self._resolver = resolver

    async def run(self, **kwargs: Any) -> str:
        channel_name = kwargs["channel_name"]
        message_id = kwargs["message_id"]
        channel = self._resolver.resolve(channel_name)
        await channel.delete_message(message_id)
        return f"Deleted message {message_id} from #{channel_name}"


def _is_auth_failure(exc: BaseException) -> bool:
    text = str(exc).lower()
    return "token" in text or "auth" in text


def _queued_notice(exc: BaseException) -> str:
    suggestion = AUTH_SUGGESTION if _is_auth_failure(exc) else CONNECTIVITY_SUGGESTION
    return (
        "⚠️ [QUEUE] The message was saved to the pending queue.\n"
        f"{suggestion}\n"
        "(It will be delivered once the connection is restored.)"
    )

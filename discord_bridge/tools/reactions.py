"""Reaction tools."""

from __future__ import annotations

from typing import Any

from discord_bridge.channels import ChannelResolver
from discord_bridge.models import READ_MARKER_EMOJI
from discord_bridge.tools.base import Tool


def _reaction_schema(action: str) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "channel_name": {"type": "string", "description": "Name of the channel"},
            "message_id": {"type": "string", "description": f"ID of the message to {action}"},
            "emoji": {
                "type": "string",
                "default": READ_MARKER_EMOJI,
                "description": f"Emoji to use (default: {READ_MARKER_EMOJI})",
            },
        },
        "required": ["channel_name", "message_id"],
    }


class AddReactionTool(Tool):
    """Adds a reaction as the bot; ✅ marks a message as read."""

    name = "add_reaction"
    description = "Add a reaction to a message."
    parameters_schema = _reaction_schema("react to")

    def __init__(self, resolver: ChannelResolver) -> None:
        self._resolver = resolver

    async def run(self, **kwargs: Any) -> str:
        emoji = kwargs.get("emoji") or READ_MARKER_EMOJI
        channel = self._resolver.resolve(kwargs["channel_name"])
        await channel.add_reaction(kwargs["message_id"], emoji)
        return f"Added {emoji} to message {kwargs['message_id']}"


class RemoveReactionTool(Tool):
    """Removes one of the bot's own reactions."""

    name = "remove_reaction"
    description = "Remove the bot's reaction from a message."
    parameters_schema = _reaction_schema("remove the reaction from")

    def __init__(self, resolver: ChannelResolver) -> None:
        self._resolver = resolver

    async def run(self, **kwargs: Any) -> str:
        emoji = kwargs.get("emoji") or READ_MARKER_EMOJI
        channel = self._resolver.resolve(kwargs["channel_name"])
        await channel.remove_own_reaction(kwargs["message_id"], emoji)
        return f"Removed {emoji} from message {kwargs['message_id']}"

"""Discord gateway adapter.

The session manager and tools only see the abstract ``GatewayClient`` and
``Channel`` contracts; ``DiscordGateway`` implements them on top of
discord.py and translates its exceptions into the bridge error taxonomy.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable

import discord

from discord_bridge.errors import NotFoundError, TransportFailureError
from discord_bridge.models import MessageRecord, SessionEvent

LOGGER = logging.getLogger(__name__)

EventListener = Callable[[SessionEvent, "BaseException | None"], None]


class Channel(ABC):
    """Text-capable channel handle, borrowed for one operation."""

    name: str

    @property
    @abstractmethod
    def text_capable(self) -> bool:
        """Whether messages can be read from and sent to this channel."""

    @abstractmethod
    async def fetch_recent(self, limit: int) -> list[MessageRecord]:
        """Return up to ``limit`` messages, newest first."""

    @abstractmethod
    async def send(self, content: str) -> None:
        """Post a message."""

    @abstractmethod
    async def add_reaction(self, message_id: str, emoji: str) -> None:
        """React to a message as the bot."""

    @abstractmethod
    async def remove_own_reaction(self, message_id: str, emoji: str) -> None:
        """Remove the bot's own reaction from a message."""

    @abstractmethod
    async def delete_message(self, message_id: str) -> None:
        """Delete a message."""


@dataclass(slots=True)
class Guild:
    """Guild as exposed by the gateway cache."""

    name: str
    channels: list[Channel] = field(default_factory=list)


class GatewayClient(ABC):
    """Abstract chat platform client used by the session layer."""

    def __init__(self) -> None:
        self._listeners: list[EventListener] = []

    def subscribe(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def emit(self, event: SessionEvent, error: BaseException | None = None) -> None:
        for listener in list(self._listeners):
            listener(event, error)

    @abstractmethod
    async def login(self, token: str) -> None:
        """Authenticate and start the gateway connection.

        Returns once the credentials are accepted; readiness is signalled
        separately through a ``SessionEvent.READY`` event.
        """

    @abstractmethod
    async def close(self) -> None:
        """Close the platform session."""

    @abstractmethod
    def guilds(self) -> list[Guild]:
        """Return joined guilds in cache order."""


class DiscordChannel(Channel):
    """``Channel`` backed by a discord.py messageable guild channel."""

    def __init__(self, channel: Any, bot_user: Any) -> None:
        self._channel = channel
        self._bot_user = bot_user
        self.name = channel.name

    @property
    def text_capable(self) -> bool:
        return isinstance(self._channel, discord.abc.Messageable)

    async def fetch_recent(self, limit: int) -> list[MessageRecord]:
        try:
            return [_to_record(message) async for message in self._channel.history(limit=limit)]
        except discord.HTTPException as exc:
            raise TransportFailureError(f"Failed to fetch messages from #{self.name}: {exc}") from exc

    async def send(self, content: str) -> None:
        try:
            await self._channel.send(content)
        except discord.HTTPException as exc:
            raise TransportFailureError(f"Failed to send to #{self.name}: {exc}") from exc

    async def add_reaction(self, message_id: str, emoji: str) -> None:
        message = await self._fetch_message(message_id)
        try:
            await message.add_reaction(emoji)
        except discord.HTTPException as exc:
            raise TransportFailureError(f"Failed to add {emoji} to message {message_id}: {exc}") from exc

    async def remove_own_reaction(self, message_id: str, emoji: str) -> None:
        message = await self._fetch_message(message_id)
        try:
            await message.remove_reaction(emoji, self._bot_user)
        except discord.HTTPException as exc:
            raise TransportFailureError(
                f"Failed to remove {emoji} from message {message_id}: {exc}"
            ) from exc

    async def delete_message(self, message_id: str) -> None:
        message = await self._fetch_message(message_id)
        try:
            await message.delete()
        except discord.NotFound as exc:
            raise NotFoundError(f"Message {message_id} not found in #{self.name}.") from exc
        except discord.HTTPException as exc:
            raise TransportFailureError(f"Failed to delete message {message_id}: {exc}") from exc

    async def _fetch_message(self, message_id: str) -> Any:
        try:
            snowflake = int(message_id)
        except ValueError as exc:
            raise NotFoundError(f"Message {message_id} not found in #{self.name}.") from exc
        try:
            return await self._channel.fetch_message(snowflake)
        except discord.NotFound as exc:
            raise NotFoundError(f"Message {message_id} not found in #{self.name}.") from exc
        except discord.HTTPException as exc:
            raise TransportFailureError(f"Failed to fetch message {message_id}: {exc}") from exc


class DiscordGateway(GatewayClient):
    """discord.py client whose lifecycle events feed the session manager."""

    def __init__(self, client: discord.Client | None = None) -> None:
        super().__init__()
        if client is None:
            intents = discord.Intents.default()
            intents.guilds = True
            intents.guild_messages = True
            intents.guild_reactions = True
            intents.message_content = True
            client = discord.Client(intents=intents)
        self._client = client
        self._gateway_task: asyncio.Task[None] | None = None
        self._seen_disconnect = False
        self._register_events()

    def _register_events(self) -> None:
        client = self._client

        @client.event
        async def on_ready() -> None:
            LOGGER.info("Logged in as %s", client.user)
            self.emit(SessionEvent.READY)

        @client.event
        async def on_resumed() -> None:
            LOGGER.info("Gateway session resumed")
            self.emit(SessionEvent.READY)

        @client.event
        async def on_connect() -> None:
            if self._seen_disconnect:
                self.emit(SessionEvent.RECONNECTING)

        @client.event
        async def on_disconnect() -> None:
            self._seen_disconnect = True
            self.emit(SessionEvent.DISCONNECTED)

    async def login(self, token: str) -> None:
        if self._gateway_task is not None:
            await self._stop_gateway()
            self._client.clear()
        elif self._client.is_closed():
            self._client.clear()
        try:
            await self._client.login(token)
        except (discord.DiscordException, asyncio.CancelledError):
            await self._client.close()
            self._client.clear()
            raise
        self._gateway_task = asyncio.create_task(self._run_gateway(), name="discord-gateway")

    async def _run_gateway(self) -> None:
        try:
            await self._client.connect(reconnect=True)
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001
            LOGGER.error("Discord gateway stopped: %s", exc)
            self.emit(SessionEvent.ERROR, exc)

    async def _stop_gateway(self) -> None:
        # Cancel before closing so the old connection does not report an error.
        task, self._gateway_task = self._gateway_task, None
        if task is not None:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        await self._client.close()

    async def close(self) -> None:
        await self._stop_gateway()

    def guilds(self) -> list[Guild]:
        bot_user = self._client.user
        return [
            Guild(
                name=guild.name,
                channels=[DiscordChannel(channel, bot_user) for channel in guild.channels],
            )
            for guild in self._client.guilds
        ]


def _emoji_name(emoji: Any) -> str:
    if isinstance(emoji, str):
        return emoji
    return str(getattr(emoji, "name", emoji))


def _to_record(message: Any) -> MessageRecord:
    reactions = [(_emoji_name(r.emoji), r.me) for r in message.reactions]
    return MessageRecord(
        id=str(message.id),
        created_at=message.created_at,
        author=message.author.display_name,
        content=message.content,
        reactions=frozenset(name for name, _ in reactions),
        own_reactions=frozenset(name for name, me in reactions if me),
    )

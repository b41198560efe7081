"""Channel lookup by name across joined guilds."""

from __future__ import annotations

from discord_bridge.errors import NotFoundError, NotReadyError
from discord_bridge.gateway import Channel, GatewayClient
from discord_bridge.session import SessionManager


class ChannelResolver:
    """Resolves channel names to live handles.

    Nothing is cached; every call scans the gateway's guild cache. When two
    guilds share a channel name the first one in cache order wins.
    """

    def __init__(self, gateway: GatewayClient, session: SessionManager) -> None:
        self._gateway = gateway
        self._session = session

    def resolve(self, name: str) -> Channel:
        if not self._session.is_ready:
            raise NotReadyError("Discord client is not ready.")

        for guild in self._gateway.guilds():
            for channel in guild.channels:
                if channel.name == name and channel.text_capable:
                    return channel
        raise NotFoundError(f"Channel #{name} not found.")

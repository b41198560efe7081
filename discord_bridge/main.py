"""Application entrypoint."""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from typing import Sequence

from pydantic import ValidationError

from discord_bridge.channels import ChannelResolver
from discord_bridge.config import Settings, load_settings
from discord_bridge.dispatcher import RequestDispatcher
from discord_bridge.gateway import DiscordGateway, GatewayClient
from discord_bridge.pending_queue import PendingQueue
from discord_bridge.server import BridgeServer
from discord_bridge.session import SessionManager
from discord_bridge.tools.messages import DeleteMessageTool, ReadRecentMessagesTool, SendMessageTool
from discord_bridge.tools.reactions import AddReactionTool, RemoveReactionTool
from discord_bridge.tools.registry import ToolRegistry

LOGGER = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    """Log to stderr; stdout carries the MCP stream."""

    logging.basicConfig(level=settings.log_level.upper(), stream=sys.stderr)
    if settings.debug_log_path is not None:
        handler = logging.FileHandler(settings.debug_log_path, encoding="utf-8")
        handler.setLevel(logging.DEBUG)
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
        root = logging.getLogger()
        root.addHandler(handler)
        root.setLevel(logging.DEBUG)


def build_components(
    settings: Settings, gateway: GatewayClient
) -> tuple[SessionManager, PendingQueue, RequestDispatcher]:
    """Wire session, queue, tools and dispatcher around a gateway."""

    session = SessionManager(
        gateway,
        token=settings.discord_bot_token,
        login_timeout_seconds=settings.login_timeout_seconds,
    )
    queue = PendingQueue()
    resolver = ChannelResolver(gateway, session)

    send_tool = SendMessageTool(session, resolver, queue, project_name=settings.project_name)
    session.add_ready_listener(send_tool.flush_pending)

    tools = ToolRegistry()
    tools.register(ReadRecentMessagesTool(resolver))
    tools.register(send_tool)
    tools.register(AddReactionTool(resolver))
    tools.register(RemoveReactionTool(resolver))
    tools.register(DeleteMessageTool(resolver))

    return session, queue, RequestDispatcher(tools, session)


async def run(
    settings: Settings,
    gateway: GatewayClient | None = None,
    stop: asyncio.Event | None = None,
) -> None:
    """Serve until the transport closes or a termination signal arrives.

    Shutdown order: close the Discord session, then stop the transport.
    """

    session, _, dispatcher = build_components(settings, gateway or DiscordGateway())
    server = BridgeServer(
        dispatcher,
        session,
        initial_connect_delay_seconds=settings.initial_connect_delay_seconds,
    )

    if stop is None:
        stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    signals = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
        except (NotImplementedError, RuntimeError):
            continue
        signals.append(sig)

    server_task = asyncio.create_task(server.run(), name="mcp-server")
    stop_task = asyncio.create_task(stop.wait(), name="stop-signal")
    try:
        await asyncio.wait({server_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        LOGGER.info("Shutting down")
        await session.close()
        for task in (server_task, stop_task):
            task.cancel()
        await asyncio.gather(server_task, stop_task, return_exceptions=True)
        for sig in signals:
            loop.remove_signal_handler(sig)
        LOGGER.info("Discord MCP server shutdown complete")


def describe_settings_error(exc: ValidationError) -> str:
    """Human-readable startup error for invalid settings."""

    token_invalid = any(
        "DISCORD_BOT_TOKEN" in {str(part).upper() for part in error["loc"]} for error in exc.errors()
    )
    if token_invalid:
        return "Error: DISCORD_BOT_TOKEN environment variable is required"
    return f"Error: invalid configuration\n{exc}"


def main(argv: Sequence[str] | None = None) -> None:
    """Synchronous wrapper for asyncio entrypoint."""

    try:
        settings = load_settings(argv)
    except ValidationError as exc:
        print(describe_settings_error(exc), file=sys.stderr)
        sys.exit(1)

    configure_logging(settings)
    asyncio.run(run(settings))


if __name__ == "__main__":
    main()

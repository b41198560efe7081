"""MCP stdio transport wiring."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError

from discord_bridge.dispatcher import RequestDispatcher
from discord_bridge.errors import INTERNAL_ERROR, BridgeError
from discord_bridge.session import SessionManager

LOGGER = logging.getLogger(__name__)

SERVER_NAME = "discord-server"
SERVER_VERSION = "1.0.1"


def build_server(dispatcher: RequestDispatcher) -> Server:
    """Create the MCP server and register the tool handlers."""

    server: Server = Server(SERVER_NAME, version=SERVER_VERSION)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return [
            types.Tool(name=spec["name"], description=spec["description"], inputSchema=spec["inputSchema"])
            for spec in dispatcher.list_tool_specs()
        ]

    async def call_tool(request: types.CallToolRequest) -> types.ServerResult:
        text = await handle_call(dispatcher, request.params.name, request.params.arguments)
        return types.ServerResult(types.CallToolResult(content=[types.TextContent(type="text", text=text)]))

    # McpError raised here must reach the client as a JSON-RPC error, so the
    # call_tool decorator (which reports exceptions as isError results) is not used.
    server.request_handlers[types.CallToolRequest] = call_tool

    return server


async def handle_call(dispatcher: RequestDispatcher, name: str, arguments: dict[str, Any] | None) -> str:
    """Run a tool call, translating bridge errors into MCP errors."""

    try:
        return await dispatcher.dispatch(name, arguments)
    except BridgeError as exc:
        LOGGER.warning("Tool %s failed: %s", name, exc)
        raise McpError(types.ErrorData(code=exc.code, message=str(exc))) from exc
    except Exception as exc:
        LOGGER.exception("Unexpected error in tool %s", name)
        raise McpError(types.ErrorData(code=INTERNAL_ERROR, message=str(exc))) from exc


class BridgeServer:
    """Serves tool calls over stdio and kicks off the first Discord login."""

    def __init__(
        self,
        dispatcher: RequestDispatcher,
        session: SessionManager,
        initial_connect_delay_seconds: float = 2.0,
    ) -> None:
        self._server = build_server(dispatcher)
        self._session = session
        self._initial_connect_delay_seconds = initial_connect_delay_seconds

    async def run(self) -> None:
        async with stdio_server() as (read_stream, write_stream):
            LOGGER.info("Discord MCP server connected to stdio")
            initial = asyncio.create_task(self.initial_connect(), name="initial-connect")
            try:
                await self._server.run(
                    read_stream,
                    write_stream,
                    self._server.create_initialization_options(),
                )
            finally:
                initial.cancel()

    async def initial_connect(self) -> None:
        """Single delayed background login; failures wait for the next tool call."""

        await asyncio.sleep(self._initial_connect_delay_seconds)
        try:
            await self._session.ensure_connected()
        except BridgeError as exc:
            LOGGER.error("Initial connection failed (will retry on demand): %s", exc)

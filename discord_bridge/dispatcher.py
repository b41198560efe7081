"""Request dispatcher for MCP tool calls.

Every call goes through the same steps: look up the tool, make sure the
session is connected (unless the tool handles that itself), validate the
arguments and run the tool. Failures surface as ``BridgeError`` subclasses.
"""

from __future__ import annotations

import logging
from typing import Any

from discord_bridge.session import SessionManager
from discord_bridge.tools.registry import ToolRegistry

LOGGER = logging.getLogger(__name__)


class RequestDispatcher:
    """Routes tool calls to registered tools."""

    def __init__(self, registry: ToolRegistry, session: SessionManager) -> None:
        self._registry = registry
        self._session = session

    def list_tool_specs(self) -> list[dict[str, Any]]:
        return self._registry.list_tool_specs()

    async def dispatch(self, tool_name: str, arguments: dict[str, Any] | None) -> str:
        """Run one tool call and return its text result.

        Raises:
            MethodNotFoundError: unknown tool name.
            ConnectFailureError: the session could not be established.
            InvalidParamsError: arguments failed validation.
            BridgeError: any other failure reported by the tool.
        """

        tool = self._registry.get(tool_name)
        LOGGER.info("Tool call: %s", tool_name)

        if tool.requires_connection:
            await self._session.ensure_connected()

        validated = self._registry.validate(tool, arguments)
        return await tool.run(**validated)

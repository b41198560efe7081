"""Tool contracts."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class Tool(ABC):
    """Base class for all MCP tools."""

    name: str
    description: str
    parameters_schema: dict[str, Any]
    # Tools that manage their own connection handling set this to False.
    requires_connection: bool = True

    @abstractmethod
    async def run(self, **kwargs: Any) -> str:
        """Execute tool with validated arguments and return the text result."""

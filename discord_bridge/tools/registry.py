"""Registry for tool registration and argument validation."""

from __future__ import annotations

from typing import Any

from pydantic import Field, ValidationError, create_model

from discord_bridge.errors import InvalidParamsError, MethodNotFoundError
from discord_bridge.tools.base import Tool


class ToolRegistry:
    """Explicit registry of the tools served over MCP."""

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        self._tools[tool.name] = tool

    def get(self, tool_name: str) -> Tool:
        tool = self._tools.get(tool_name)
        if tool is None:
            raise MethodNotFoundError(f"Unknown tool: {tool_name}")
        return tool

    def list_tool_specs(self) -> list[dict[str, Any]]:
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "inputSchema": tool.parameters_schema,
            }
            for tool in self._tools.values()
        ]

    def validate(self, tool: Tool, arguments: dict[str, Any] | None) -> dict[str, Any]:
        return _validate_json_schema(tool.parameters_schema, arguments or {})


def _validate_json_schema(schema: dict[str, Any], payload: Any) -> dict[str, Any]:
    if not isinstance(payload, dict):
        raise InvalidParamsError("Invalid arguments: expected an object")

    props = schema.get("properties", {})
    required = set(schema.get("required", []))
    fields: dict[str, tuple[Any, Any]] = {}
    for name, config in props.items():
        typ: Any = _python_type(config.get("type", "string"))
        if name in required:
            default = ...
        else:
            typ = typ | None
            default = config.get("default")
        fields[name] = (typ, Field(default, ge=config.get("minimum")))

    model = create_model("ToolInputModel", **fields)
    try:
        value = model(**payload)
    except ValidationError as exc:
        raise InvalidParamsError(f"Invalid arguments: {_describe(exc)}") from exc
    return value.model_dump(exclude_none=True)


def _describe(exc: ValidationError) -> str:
    reasons = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "arguments"
        reasons.append(f"{field}: {error['msg']}")
    return ", ".join(reasons)


def _python_type(schema_type: str) -> type[Any]:
    mapping: dict[str, type[Any]] = {
        "string": str,
        "integer": int,
        "number": float,
        "boolean": bool,
        "object": dict,
        "array": list,
    }
    return mapping.get(schema_type, str)

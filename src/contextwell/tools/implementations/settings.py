"""Settings and environment tools."""

from __future__ import annotations

from typing import Any

from contextwell.application import flatten_keys, parse_env_file
from contextwell.tools.base import BaseTool, ToolResponse, tool_metadata


@tool_metadata(
    name="list-config-keys",
    description="List available settings keys in dot notation",
)
class ListConfigKeysTool(BaseTool):
    """List every key of the merged application settings in dot notation."""

    def handle(self, arguments: dict[str, Any]) -> ToolResponse:
        return ToolResponse.json(sorted(flatten_keys(self.app.settings)))


@tool_metadata(
    name="get-config",
    description="Get the value of a settings key in dot notation",
)
class GetConfigTool(BaseTool):
    """Get a settings value, e.g. ``database.pool_size``."""

    parameters = {
        "type": "object",
        "properties": {
            "key": {"type": "string", "description": "Settings key in dot notation"},
        },
        "required": ["key"],
    }

    def handle(self, arguments: dict[str, Any]) -> ToolResponse:
        key = arguments.get("key")
        if not key:
            return ToolResponse.error("The key argument is required.")
        if not self.app.has_setting(key):
            return ToolResponse.error(f"Config key '{key}' not found.")
        return ToolResponse.json({"key": key, "value": self.app.setting(key)})


@tool_metadata(
    name="list-env-vars",
    description="List environment variable names defined in the .env file",
)
class ListEnvVarsTool(BaseTool):
    """List environment variable names (never values) from a dotenv file."""

    parameters = {
        "type": "object",
        "properties": {
            "filename": {"type": "string", "description": "Dotenv file to read (default: .env)"},
        },
    }

    def handle(self, arguments: dict[str, Any]) -> ToolResponse:
        filename = arguments.get("filename")
        path = self.app.path(filename) if filename else self.app.env_path
        if not path.exists():
            return ToolResponse.error(f"File not found: {path.name}")
        return ToolResponse.json(sorted(parse_env_file(path)))

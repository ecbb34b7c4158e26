"""Tools: self-registering data sources and the engine that runs them.

Example:
    >>> from contextwell.tools import BaseTool, ToolResponse, tool_metadata
    >>>
    >>> @tool_metadata(name="hello", description="Say hello")
    >>> class HelloTool(BaseTool):
    ...     def handle(self, arguments: dict) -> ToolResponse:
    ...         return ToolResponse.text("hello")
"""

from contextwell.tools.base import (
    BaseTool,
    ToolContext,
    ToolMetadata,
    ToolResponse,
    tool_metadata,
)
from contextwell.tools.executor import MODE_IN_PROCESS, MODE_SUBPROCESS, ToolExecutor
from contextwell.tools.registry import ToolRegistry

__all__ = [
    "BaseTool",
    "MODE_IN_PROCESS",
    "MODE_SUBPROCESS",
    "ToolContext",
    "ToolExecutor",
    "ToolMetadata",
    "ToolRegistry",
    "ToolResponse",
    "tool_metadata",
]

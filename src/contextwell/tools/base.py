"""Base tool class, metadata and response envelope for self-registering tools.

This module provides the foundation for the tool registry:
- ToolMetadata: Frozen dataclass with tool properties (name, read-only flag, timeout)
- ToolContext: Context injected into tools when they are instantiated
- ToolResponse: The {isError, content} envelope every tool call reduces to
- BaseTool: Abstract base class combining definition + implementation
- tool_metadata: Decorator to attach metadata to tool classes
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from contextwell.application import Application
    from contextwell.tools.registry import ToolRegistry


@dataclass(frozen=True, slots=True)
class ToolMetadata:
    """Metadata for self-registering tools.

    Attributes:
        name: Unique tool name (the tool identity used by the registry and executor)
        description: One-line description shown to agents
        read_only: True if the tool is side-effect-free. Only read-only tools
            may run in the calling process; everything else is isolated.
        timeout: Preferred subprocess timeout in seconds (None = engine default)
    """

    name: str
    description: str
    read_only: bool = True
    timeout: int | None = None


@dataclass(slots=True)
class ToolContext:
    """Context injected into tools when the registry creates them.

    Attributes:
        application: The inspected application (settings, databases, logs)
        registry: Reference to the registry that created the tool
    """

    application: Application
    registry: ToolRegistry | None = None


@dataclass(frozen=True, slots=True)
class ToolResponse:
    """Result of a tool invocation, regardless of execution mode."""

    content: str
    is_error: bool = False

    @classmethod
    def text(cls, content: str) -> ToolResponse:
        return cls(content=content)

    @classmethod
    def json(cls, data: Any) -> ToolResponse:
        """Serialize structured data as compact JSON.

        Uses default=str so datetimes, Paths and Decimals survive.
        """
        return cls(content=json.dumps(data, separators=(",", ":"), default=str))

    @classmethod
    def error(cls, message: str) -> ToolResponse:
        return cls(content=message, is_error=True)

    def to_envelope(self) -> dict[str, Any]:
        """Wire form printed by the isolated child process."""
        return {"isError": self.is_error, "content": self.content}

    @classmethod
    def from_envelope(cls, data: Any) -> ToolResponse:
        """Rebuild a response from its wire form.

        Anything that is not a mapping with both keys is reported as an
        error instead of raising.
        """
        if not isinstance(data, dict) or "isError" not in data or "content" not in data:
            return cls.error("Invalid tool response format.")
        content = data["content"]
        if not isinstance(content, str):
            content = json.dumps(content, separators=(",", ":"), default=str)
        return cls(content=content, is_error=bool(data["isError"]))


class BaseTool(ABC):
    """Base class for self-registering tools.

    Subclasses must:
    1. Use @tool_metadata decorator to set metadata
    2. Define `parameters` class attribute with JSON Schema
    3. Implement `handle()`

    Example:
        >>> @tool_metadata(
        ...     name="get-config",
        ...     description="Get a settings value",
        ... )
        >>> class GetConfigTool(BaseTool):
        ...     parameters = {
        ...         "type": "object",
        ...         "properties": {"key": {"type": "string", "description": "Dotted key"}},
        ...         "required": ["key"],
        ...     }
        ...
        ...     def handle(self, arguments: dict) -> ToolResponse:
        ...         return ToolResponse.json({"value": self.app.setting(arguments["key"])})
    """

    # Set by @tool_metadata decorator
    metadata: ToolMetadata

    # Set by subclass - JSON Schema for parameters
    parameters: dict[str, Any] = {"type": "object", "properties": {}}

    # Injected by registry when the tool is created
    ctx: ToolContext | None = None

    @property
    def app(self) -> Application:
        """Convenience accessor for the application.

        Raises:
            RuntimeError: If tool not initialized with context
        """
        if not self.ctx:
            raise RuntimeError("Tool not initialized with context")
        return self.ctx.application

    @abstractmethod
    def handle(self, arguments: dict[str, Any]) -> ToolResponse:
        """Execute the tool with given arguments.

        Unknown arguments must be ignored, not rejected.

        Args:
            arguments: Decoded arguments from the caller

        Returns:
            ToolResponse envelope
        """

    @classmethod
    def to_text(cls, response: ToolResponse) -> str:
        """Extract the textual payload an agent should read.

        Override when the tool's content shape needs unwrapping.
        """
        return response.content


def tool_metadata(
    name: str,
    description: str,
    read_only: bool = True,
    timeout: int | None = None,
):
    """Decorator to attach metadata to tool classes.

    Args:
        name: Unique tool name
        description: One-line description
        read_only: Whether the tool is side-effect-free
        timeout: Preferred subprocess timeout in seconds

    Returns:
        Class decorator
    """

    def decorator(cls: type[BaseTool]) -> type[BaseTool]:
        cls.metadata = ToolMetadata(
            name=name,
            description=description,
            read_only=read_only,
            timeout=timeout,
        )
        return cls

    return decorator


def int_argument(arguments: dict[str, Any], name: str, default: int) -> int:
    """Read a positive integer argument, tolerating strings and junk."""
    value = arguments.get(name, default)
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed if parsed > 0 else default


def bool_argument(arguments: dict[str, Any], name: str, default: bool = False) -> bool:
    """Read a boolean argument, accepting common string spellings."""
    value = arguments.get(name, default)
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)

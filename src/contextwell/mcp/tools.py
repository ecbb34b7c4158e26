"""MCP tool definitions for Contextwell.

- ``context-manifest`` and ``resolve-context``: the context surface
- ``execute``: arbitrary code, always through the execution engine
- one MCP tool per registered tool when ``tools.legacy`` is enabled
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from mcp.server.fastmcp.exceptions import ToolError

from contextwell.foundation.errors import EmptyRequestError
from contextwell.tools.base import ToolResponse

if TYPE_CHECKING:
    from mcp.server.fastmcp import FastMCP

    from contextwell.runtime import Runtime

logger = logging.getLogger(__name__)

# Tools registered explicitly below, never duplicated as legacy tools
CONTEXT_TOOLS = frozenset({"context-manifest", "resolve-context", "execute"})

_JSON_TYPES: dict[str, type] = {
    "string": str,
    "integer": int,
    "number": float,
    "boolean": bool,
    "array": list,
    "object": dict,
}


def _unwrap(response: ToolResponse) -> str:
    """Return tool content, raising ToolError so MCP flags the call as failed."""
    if response.is_error:
        raise ToolError(response.content)
    return response.content


def register_context_tools(mcp: FastMCP, runtime: Runtime) -> None:
    """Register the manifest, resolve and execute tools.

    Args:
        mcp: FastMCP server instance
        runtime: Shared Runtime for catalogs, resolver and executor
    """

    @mcp.tool(name="context-manifest")
    def context_manifest() -> str:
        """
        List every context slice and bundle you can load with resolve-context.

        Each line shows the category, slice id, accepted parameters, estimated
        token cost and a description. Slices marked `live` are read from the
        running application.
        """
        return runtime.manifest.render()

    @mcp.tool(name="resolve-context")
    def resolve_context(
        slices: dict[str, Any] | None = None,
        bundles: list[str] | None = None,
    ) -> str:
        """
        Load context slices and bundles in one call.

        Args:
            slices: Slice id -> parameters, e.g. {"db-schema": {"summary": true}, "routes": {}}
            bundles: Bundle ids, e.g. ["@debug"]

        Returns:
            One `=== slice-id ===` section per loaded slice, followed by a
            `[failed: ...]` line if any slice could not be loaded
        """
        try:
            return runtime.resolver.resolve_request(slices, bundles)
        except EmptyRequestError as e:
            raise ToolError(str(e)) from e

    @mcp.tool(name="execute")
    def execute(code: str, timeout: int | None = None) -> str:
        """
        Execute Python code in the application context.

        `app` is bound to the application (settings, databases, entrypoint).
        The value of the last expression is returned as the result. Runs in a
        fresh process so it always sees the current code.

        Args:
            code: Python code to execute
            timeout: Maximum execution time in seconds (default 180, max 600)

        Returns:
            JSON with result, type and captured output, or the error
        """
        arguments: dict[str, Any] = {"code": code}
        if timeout is not None:
            arguments["timeout"] = timeout
        return _unwrap(runtime.executor.execute("execute", arguments))


def build_signature(parameters: dict[str, Any]) -> inspect.Signature:
    """Derive a Python signature from a JSON-schema ``parameters`` object.

    Every parameter is keyword-only. Required properties have no default;
    optional ones default to None.
    """
    properties = parameters.get("properties", {})
    required = set(parameters.get("required", []))

    params: list[inspect.Parameter] = []
    optional: list[inspect.Parameter] = []
    for name, schema in properties.items():
        py_type = _JSON_TYPES.get(schema.get("type", "string"), str)
        if name in required:
            params.append(inspect.Parameter(name, inspect.Parameter.KEYWORD_ONLY, annotation=py_type))
        else:
            optional.append(
                inspect.Parameter(
                    name,
                    inspect.Parameter.KEYWORD_ONLY,
                    default=None,
                    annotation=py_type | None,
                )
            )
    return inspect.Signature(params + optional, return_annotation=str)


def make_legacy_handler(runtime: Runtime, name: str, parameters: dict[str, Any]) -> Callable[..., str]:
    """Build a function FastMCP can introspect that calls one tool through the engine."""

    def handler(**kwargs: Any) -> str:
        arguments = {key: value for key, value in kwargs.items() if value is not None}
        return _unwrap(runtime.executor.execute(name, arguments))

    handler.__name__ = name.replace("-", "_")
    handler.__signature__ = build_signature(parameters)  # type: ignore[attr-defined]
    handler.__annotations__ = {
        p.name: p.annotation for p in handler.__signature__.parameters.values()  # type: ignore[attr-defined]
    }
    handler.__annotations__["return"] = str
    return handler


def register_legacy_tools(mcp: FastMCP, runtime: Runtime) -> None:
    """Expose every registered tool individually.

    Calls still go through the execution engine, so mutating tools stay
    isolated.
    """
    registry = runtime.registry
    for name in registry.names():
        if name in CONTEXT_TOOLS:
            continue
        cls = registry.get(name)
        if cls is None:
            continue
        # The class docstring, not an inherited one
        description = inspect.cleandoc(cls.__doc__) if cls.__doc__ else cls.metadata.description
        mcp.add_tool(
            make_legacy_handler(runtime, name, cls.parameters),
            name=name,
            description=description,
        )
        logger.debug("Registered legacy tool %s", name)

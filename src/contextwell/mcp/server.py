"""MCP server entry point for Contextwell.

Exposes application context (slices, bundles, tools and code execution) to
MCP hosts (Cursor, Claude Desktop, etc.) over stdio. Run it with
``contextwell serve``.
"""

from __future__ import annotations

from pathlib import Path

from mcp.server.fastmcp import FastMCP

from contextwell.mcp.instructions import CONTEXTWELL_INSTRUCTIONS
from contextwell.mcp.resources import register_resources
from contextwell.mcp.tools import register_context_tools, register_legacy_tools
from contextwell.runtime import Runtime


def create_server(
    workspace: str | Path | None = None,
    config_path: str | Path | None = None,
    runtime: Runtime | None = None,
) -> FastMCP:
    """Create the MCP server with all Contextwell tools.

    Args:
        workspace: Path to workspace root. If None, uses current directory.
        config_path: Optional explicit config file.
        runtime: Pre-built runtime (overrides workspace and config_path).

    Returns:
        Configured FastMCP server instance
    """
    runtime = runtime or Runtime(workspace, config_path)

    mcp = FastMCP("contextwell", instructions=CONTEXTWELL_INSTRUCTIONS)

    register_context_tools(mcp, runtime)
    if runtime.config.tools.legacy:
        register_legacy_tools(mcp, runtime)
    register_resources(mcp, runtime)

    return mcp


"""MCP resource definitions for Contextwell.

Resource URIs:
- contextwell://application-info  - Python version, project metadata, packages
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from mcp.server.fastmcp.exceptions import ResourceError

if TYPE_CHECKING:
    from mcp.server.fastmcp import FastMCP

    from contextwell.runtime import Runtime

APPLICATION_INFO_URI = "contextwell://application-info"


def register_resources(mcp: FastMCP, runtime: Runtime) -> None:
    """Register all Contextwell resources with the MCP server.

    Args:
        mcp: FastMCP server instance
        runtime: Shared Runtime; reads go through its execution engine
    """

    @mcp.resource(APPLICATION_INFO_URI, name="application-info", mime_type="application/json")
    def application_info() -> str:
        """Python version, platform, project metadata, databases and installed packages.

        Read this before writing code to match package versions.
        """
        response = runtime.executor.execute("application-info", {})
        if response.is_error:
            raise ResourceError(response.content)
        return response.content

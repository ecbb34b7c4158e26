"""MCP server exposing Contextwell to agents over stdio."""

from contextwell.mcp.server import create_server

__all__ = ["create_server"]

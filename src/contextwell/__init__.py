"""Contextwell - on-demand, token-budgeted application context for AI agents.

Agents read a compact manifest of context "slices" and "bundles", then
resolve exactly what they need in one batched call. Dynamic slices are
backed by tools that inspect the live application; tools that mutate state
or run arbitrary code are executed in a freshly spawned child process.

Usage:
    # As MCP server (stdio)
    contextwell serve

    # One-off resolution from the shell
    contextwell resolve db-schema -b @debug
"""

__version__ = "0.3.0"

__all__ = ["__version__"]

"""Contextwell CLI - command-line interface.

- main.py - the click group and user-facing commands
- execute_tool.py - hidden entry point used by isolated tool calls
"""

from contextwell.cli.main import main

__all__ = ["main"]

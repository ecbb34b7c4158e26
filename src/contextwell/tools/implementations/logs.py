"""Log tools: last error, recent application log entries, browser console logs.

A log entry starts at a line beginning with a timestamp (optionally
bracketed), e.g. ``2026-01-05 10:00:00,123 ERROR app: boom`` or
``[2026-01-05T10:00:00] browser.WARNING: ...``. Following lines without a
timestamp (tracebacks) belong to the same entry.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

from contextwell.tools.base import BaseTool, ToolResponse, int_argument, tool_metadata

_ENTRY_START = re.compile(r"^\[?\d{4}-\d{2}-\d{2}[ T]\d{2}:\d{2}")
_ERROR_LEVEL = re.compile(r"\b(ERROR|CRITICAL|FATAL)\b")

# Only the tail of large log files is scanned
_MAX_READ_BYTES = 2_000_000


def read_tail(path: Path, max_bytes: int = _MAX_READ_BYTES) -> str:
    """Read at most the last max_bytes of a file."""
    with open(path, "rb") as f:
        f.seek(0, 2)
        size = f.tell()
        f.seek(max(0, size - max_bytes))
        return f.read().decode("utf-8", errors="replace")


def split_entries(content: str) -> list[str]:
    """Split log content into entries, keeping continuation lines."""
    entries: list[str] = []
    current: list[str] = []
    for line in content.splitlines():
        if _ENTRY_START.match(line):
            if current:
                entries.append("\n".join(current).rstrip())
            current = [line]
        elif current:
            current.append(line)
    if current:
        entries.append("\n".join(current).rstrip())
    return entries


def is_error_entry(entry: str) -> bool:
    first_line = entry.split("\n", 1)[0]
    return bool(_ERROR_LEVEL.search(first_line))


class _LogFileTool(BaseTool):
    """Shared file handling for log tools."""

    def log_path(self) -> Path:
        return self.app.log_path

    def entries(self) -> list[str] | ToolResponse:
        path = self.log_path()
        if not path.exists():
            return ToolResponse.error(f"Log file not found: {path}")
        return split_entries(read_tail(path))


@tool_metadata(
    name="last-error",
    description="Most recent error from the application log",
)
class LastErrorTool(_LogFileTool):
    """Get the last ERROR/CRITICAL entry (with traceback) from the application log."""

    def handle(self, arguments: dict[str, Any]) -> ToolResponse:
        entries = self.entries()
        if isinstance(entries, ToolResponse):
            return entries
        for entry in reversed(entries):
            if is_error_entry(entry):
                return ToolResponse.text(entry)
        return ToolResponse.error("No error entries found in the application log.")


@tool_metadata(
    name="read-log-entries",
    description="Read the last N application log entries",
)
class ReadLogEntriesTool(_LogFileTool):
    """Read the most recent application log entries, oldest first."""

    default_entries = 5

    parameters = {
        "type": "object",
        "properties": {
            "entries": {"type": "integer", "description": "Number of entries to return"},
        },
    }

    def handle(self, arguments: dict[str, Any]) -> ToolResponse:
        entries = self.entries()
        if isinstance(entries, ToolResponse):
            return entries
        count = int_argument(arguments, "entries", self.default_entries)
        if not entries:
            return ToolResponse.text("No log entries found.")
        return ToolResponse.text("\n\n".join(entries[-count:]))


@tool_metadata(
    name="browser-logs",
    description="Read the last N browser console log entries",
)
class BrowserLogsTool(ReadLogEntriesTool):
    """Read recent browser console entries captured by the application."""

    default_entries = 10

    def log_path(self) -> Path:
        return self.app.browser_log_path

"""Tool execution engine with in-process and isolated modes.

Every tool call goes through ``ToolExecutor.execute()``:

- Identities missing from the registry are rejected before anything runs.
- Read-only tools run in the calling process when the fast path is enabled.
- Everything else (mutating tools, arbitrary code execution, and every tool
  when the fast path is off) runs in a freshly spawned child process:
  ``python -m contextwell --workspace <ws> execute-tool <name> <b64 json>``.

The child cold-starts its own config, application and registry, so each
isolated call observes the current on-disk code and leaks no state into the
parent or into later calls. The parent waits at most the clamped timeout,
kills the child on expiry, and reads a single JSON line
``{"isError": ..., "content": ...}`` from its stdout.

The executor never raises: every failure becomes ``ToolResponse.error``.
"""

from __future__ import annotations

import base64
import json
import logging
import os
import subprocess
import sys
from typing import TYPE_CHECKING, Any

from contextwell.application import parse_env_file
from contextwell.config import ExecutionConfig
from contextwell.tools.base import ToolResponse

if TYPE_CHECKING:
    from contextwell.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

MODE_IN_PROCESS = "in-process"
MODE_SUBPROCESS = "subprocess"


def encode_arguments(arguments: dict[str, Any]) -> str:
    """JSON-encode then base64-encode arguments for command-line transport."""
    payload = json.dumps(arguments, separators=(",", ":"), default=str)
    return base64.b64encode(payload.encode("utf-8")).decode("ascii")


class ToolExecutor:
    """Dual-mode tool invocation.

    Usage:
        executor = ToolExecutor(registry, config.execution)
        response = executor.execute("get-config", {"key": "app.name"})
    """

    def __init__(self, registry: ToolRegistry, config: ExecutionConfig | None = None) -> None:
        self.registry = registry
        self.config = config or ExecutionConfig()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def execute(self, tool: str, arguments: dict[str, Any] | None = None) -> ToolResponse:
        """Run a tool in the mode its safety annotation allows."""
        arguments = arguments or {}

        try:
            if not self.registry.is_allowed(tool):
                logger.warning("Rejected unregistered tool: %s", tool)
                return ToolResponse.error(f"Tool not registered or not allowed: {tool}")

            if self.should_execute_in_process(tool):
                logger.debug("Executing %s in-process", tool)
                return self._execute_in_process(tool, arguments)

            logger.debug("Executing %s in subprocess", tool)
            return self._execute_in_subprocess(tool, arguments)
        except Exception as e:
            logger.exception("Tool execution error for %s", tool)
            return ToolResponse.error(f"Tool execution error: {e}")

    def should_execute_in_process(self, tool: str) -> bool:
        """True only for read-only tools while the fast path is enabled."""
        if not self.config.fast_path:
            return False
        metadata = self.registry.metadata(tool)
        return metadata is not None and metadata.read_only

    def mode_for(self, tool: str) -> str:
        return MODE_IN_PROCESS if self.should_execute_in_process(tool) else MODE_SUBPROCESS

    def run_in_process(self, tool: str, arguments: dict[str, Any]) -> ToolResponse:
        """Instantiate the tool in this process and invoke it synchronously.

        Raises whatever the tool raises; callers that need the never-raise
        guarantee go through ``execute()``.
        """
        instance = self.registry.create(tool)
        return instance.handle(arguments)

    def get_timeout(self, tool: str, arguments: dict[str, Any]) -> int:
        """Timeout for an isolated call, clamped to the configured bounds."""
        timeout: Any = arguments.get("timeout")
        if timeout is None:
            metadata = self.registry.metadata(tool)
            timeout = metadata.timeout if metadata and metadata.timeout else self.config.default_timeout
        try:
            timeout = int(timeout)
        except (TypeError, ValueError):
            timeout = self.config.default_timeout
        return max(self.config.min_timeout, min(self.config.max_timeout, timeout))

    # ------------------------------------------------------------------
    # Modes
    # ------------------------------------------------------------------

    def _execute_in_process(self, tool: str, arguments: dict[str, Any]) -> ToolResponse:
        try:
            return self.run_in_process(tool, arguments)
        except Exception as e:
            logger.debug("In-process execution of %s failed: %s", tool, e)
            return ToolResponse.error(f"Tool execution failed: {e}")

    def _execute_in_subprocess(self, tool: str, arguments: dict[str, Any]) -> ToolResponse:
        command = self.build_command(tool, arguments)
        timeout = self.get_timeout(tool, arguments)
        workspace = self.registry.application.workspace

        try:
            # subprocess.run kills the child when the timeout expires
            proc = subprocess.run(
                command,
                cwd=str(workspace),
                env=self.build_env(),
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            logger.warning("Tool %s timed out after %ss", tool, timeout)
            return ToolResponse.error(f"Tool execution timed out after {timeout} seconds")

        envelope = _last_line(proc.stdout)

        if proc.returncode != 0:
            logger.debug("Tool process for %s exited with %s", tool, proc.returncode)
            if envelope is not None:
                try:
                    return ToolResponse.from_envelope(json.loads(envelope))
                except json.JSONDecodeError:
                    pass
            return ToolResponse.error(f"Process tool execution failed: {proc.stderr}{proc.stdout}")

        if envelope is None:
            return ToolResponse.error("Invalid JSON output from tool process: empty output")

        try:
            decoded = json.loads(envelope)
        except json.JSONDecodeError as e:
            return ToolResponse.error(f"Invalid JSON output from tool process: {e}")

        return ToolResponse.from_envelope(decoded)

    # ------------------------------------------------------------------
    # Subprocess plumbing
    # ------------------------------------------------------------------

    def build_command(self, tool: str, arguments: dict[str, Any]) -> list[str]:
        """Command line that cold-starts a child to run one tool."""
        return [
            self.config.python or sys.executable,
            "-m",
            "contextwell",
            "--workspace",
            str(self.registry.application.workspace),
            "execute-tool",
            tool,
            encode_arguments(arguments),
        ]

    def build_env(self) -> dict[str, str]:
        """Environment for the child process.

        Variables that come from the workspace dotenv file are removed so the
        child reads them fresh instead of inheriting stale values.
        """
        env = dict(os.environ)
        for key in parse_env_file(self.registry.application.env_path):
            env.pop(key, None)
        return env


def _last_line(output: str) -> str | None:
    """Last non-empty line of captured output."""
    for line in reversed(output.splitlines()):
        if line.strip():
            return line.strip()
    return None

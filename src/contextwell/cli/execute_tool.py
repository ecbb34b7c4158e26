"""Hidden ``execute-tool`` command: run one tool and print its envelope.

This is the child side of isolated execution. The parent spawns

    python -m contextwell --workspace <ws> execute-tool <tool> <base64 json>

and reads the last stdout line, which is always exactly one JSON object
``{"isError": bool, "content": str}``. Logs go to stderr.

Exit codes:
    0  the tool ran (its response may still be an error)
    1  the call was rejected or the tool raised
"""

from __future__ import annotations

import base64
import binascii
import json
import logging
import sys
from typing import Any, NoReturn

import click

from contextwell.foundation.errors import ConfigError
from contextwell.runtime import Runtime
from contextwell.tools.base import ToolResponse

logger = logging.getLogger(__name__)


def emit(response: ToolResponse) -> None:
    click.echo(json.dumps(response.to_envelope()))


def fail(message: str) -> NoReturn:
    emit(ToolResponse.error(message))
    sys.exit(1)


def decode_arguments(encoded: str) -> dict[str, Any]:
    """Decode base64 JSON arguments, failing with an envelope on bad input."""
    try:
        raw = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        fail(f"Invalid arguments encoding: {e}")

    try:
        arguments = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        fail(f"Invalid arguments format: {e}")

    if not isinstance(arguments, dict):
        fail(f"Invalid arguments format: expected a JSON object, got {type(arguments).__name__}")
    return arguments


@click.command("execute-tool", hidden=True)
@click.argument("tool")
@click.argument("arguments", default="")
@click.pass_context
def execute_tool(ctx: click.Context, tool: str, arguments: str) -> None:
    """Execute a single tool in this process (used for isolated calls)."""
    try:
        runtime = Runtime(ctx.obj["workspace"], ctx.obj["config"])
        registry = runtime.registry
        allowed = registry.is_allowed(tool)
    except ConfigError as e:
        fail(str(e))

    if not allowed:
        fail(f"Tool not registered or not allowed: {tool}")

    decoded = decode_arguments(arguments) if arguments else {}

    try:
        response = runtime.executor.run_in_process(tool, decoded)
    except Exception as e:
        logger.debug("Tool %s raised", tool, exc_info=True)
        fail(f"Tool execution failed (uncaught): {e}")

    emit(response)

"""Arbitrary Python execution against the application.

This tool is not read-only, so the engine always runs it in a fresh child
process: the code sees the current files on disk and cannot leave state
behind in the server.
"""

from __future__ import annotations

import ast
import contextlib
import io
import json
from typing import Any

from contextwell.tools.base import BaseTool, ToolResponse, tool_metadata


def run_code(code: str, namespace: dict[str, Any]) -> tuple[Any, str]:
    """Execute code, returning (value of the trailing expression, captured output).

    Raises whatever the code raises.
    """
    tree = ast.parse(code, mode="exec")
    trailing: ast.Expression | None = None
    if tree.body and isinstance(tree.body[-1], ast.Expr):
        trailing = ast.Expression(tree.body.pop().value)

    output = io.StringIO()
    result = None
    with contextlib.redirect_stdout(output), contextlib.redirect_stderr(output):
        exec(compile(tree, "<execute>", "exec"), namespace)
        if trailing is not None:
            result = eval(compile(trailing, "<execute>", "eval"), namespace)
    return result, output.getvalue()


def _jsonable(value: Any) -> Any:
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return repr(value)
    return value


@tool_metadata(
    name="execute",
    description="Execute Python code in the application context",
    read_only=False,
)
class ExecuteTool(BaseTool):
    """Run Python code with ``app`` bound to the application.

    The value of a trailing expression is returned as the result; anything
    printed is returned as output. Prefer dedicated tools when one exists.
    """

    parameters = {
        "type": "object",
        "properties": {
            "code": {"type": "string", "description": "Python code to execute"},
            "timeout": {"type": "integer", "description": "Maximum execution time in seconds"},
        },
        "required": ["code"],
    }

    def handle(self, arguments: dict[str, Any]) -> ToolResponse:
        code = str(arguments.get("code") or "")
        if not code.strip():
            return ToolResponse.error("The code argument is required.")

        app = self.app
        app.ensure_importable()
        namespace: dict[str, Any] = {"__name__": "__execute__", "app": app}

        try:
            result, output = run_code(code, namespace)
        except SyntaxError as e:
            return ToolResponse.error(
                json.dumps({"error": e.msg, "type": "SyntaxError", "line": e.lineno})
            )
        except Exception as e:
            tb = e.__traceback__
            line = None
            while tb is not None:
                if tb.tb_frame.f_code.co_filename == "<execute>":
                    line = tb.tb_lineno
                tb = tb.tb_next
            return ToolResponse.error(
                json.dumps({"error": str(e), "type": type(e).__name__, "line": line})
            )

        payload: dict[str, Any] = {"result": _jsonable(result), "type": type(result).__name__}
        if output:
            payload["output"] = output
        return ToolResponse.json(payload)

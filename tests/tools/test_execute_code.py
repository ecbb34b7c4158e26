"""Tests for the execute tool (arbitrary Python against the application)."""

import json

import pytest

from contextwell.tools import ToolRegistry
from contextwell.tools.implementations.execute import run_code


class TestRunCode:
    """The trailing-expression evaluator."""

    def test_trailing_expression_is_the_result(self) -> None:
        result, output = run_code("x = 2\nx * 21", {})
        assert result == 42
        assert output == ""

    def test_statement_only_code_returns_none(self) -> None:
        result, _ = run_code("x = 1", {})
        assert result is None

    def test_output_is_captured(self) -> None:
        result, output = run_code("print('hello')", {})
        assert result is None
        assert output == "hello\n"

    def test_namespace_is_visible(self) -> None:
        result, _ = run_code("value + 1", {"value": 1})
        assert result == 2


class TestExecuteTool:
    """The tool wrapper, called in-process."""

    def run(self, registry: ToolRegistry, code: str) -> dict:
        response = registry.create("execute").handle({"code": code})
        return {"is_error": response.is_error, **json.loads(response.content)}

    def test_app_is_bound(self, registry: ToolRegistry) -> None:
        data = self.run(registry, "app.setting('app.name')")
        assert data == {"is_error": False, "result": "Demo Shop", "type": "str"}

    def test_unserializable_result_uses_repr(self, registry: ToolRegistry) -> None:
        data = self.run(registry, "object")
        assert data["result"] == "<class 'object'>"
        assert data["type"] == "type"

    def test_output_included_when_printed(self, registry: ToolRegistry) -> None:
        data = self.run(registry, "print('side effect')\n[1, 2]")
        assert data["result"] == [1, 2]
        assert data["output"] == "side effect\n"

    def test_exception_reports_type_and_line(self, registry: ToolRegistry) -> None:
        data = self.run(registry, "a = 1\nb = 0\na / b")
        assert data["is_error"] is True
        assert data["type"] == "ZeroDivisionError"
        assert data["line"] == 3

    def test_syntax_error(self, registry: ToolRegistry) -> None:
        data = self.run(registry, "def broken(:\n    pass")
        assert data["is_error"] is True
        assert data["type"] == "SyntaxError"
        assert data["line"] == 1

    @pytest.mark.parametrize("code", ["", "   "])
    def test_code_is_required(self, registry: ToolRegistry, code: str) -> None:
        response = registry.create("execute").handle({"code": code})
        assert response.is_error
        assert response.content == "The code argument is required."

    def test_database_access(self, registry: ToolRegistry) -> None:
        """Code can use the application's engines."""
        code = (
            "from sqlalchemy import text\n"
            "with app.engine().connect() as conn:\n"
            "    count = conn.execute(text('SELECT COUNT(*) FROM users')).scalar()\n"
            "count"
        )
        assert self.run(registry, code)["result"] == 2

"""Tests for tool metadata, the response envelope and the tool registry."""

import types
from unittest.mock import MagicMock

import pytest

from contextwell.tools import BaseTool, ToolRegistry, ToolResponse, tool_metadata
from contextwell.tools.base import bool_argument, int_argument

BUILTIN_TOOLS = {
    "application-info",
    "browser-logs",
    "database-connections",
    "database-query",
    "database-schema",
    "execute",
    "get-absolute-url",
    "get-config",
    "last-error",
    "list-commands",
    "list-config-keys",
    "list-env-vars",
    "list-routes",
    "read-log-entries",
}


@tool_metadata(name="custom", description="A custom tool", read_only=False, timeout=30)
class CustomTool(BaseTool):
    """Custom tool used by registry tests."""

    def handle(self, arguments):
        return ToolResponse.text(self.app.name)


class TestToolResponse:
    """The {isError, content} envelope."""

    def test_json_is_compact(self) -> None:
        assert ToolResponse.json({"a": [1, 2]}).content == '{"a":[1,2]}'

    def test_envelope_round_trip(self) -> None:
        response = ToolResponse.error("boom")
        assert ToolResponse.from_envelope(response.to_envelope()) == response

    @pytest.mark.parametrize("data", [None, [], {"content": "x"}, {"isError": False}])
    def test_invalid_envelope(self, data) -> None:
        """Anything without both keys becomes a format error."""
        response = ToolResponse.from_envelope(data)
        assert response.is_error
        assert response.content == "Invalid tool response format."

    def test_structured_content_is_serialized(self) -> None:
        response = ToolResponse.from_envelope({"isError": False, "content": {"k": 1}})
        assert response.content == '{"k":1}'


class TestToolMetadata:
    def test_decorator_sets_metadata(self) -> None:
        assert CustomTool.metadata.name == "custom"
        assert CustomTool.metadata.read_only is False
        assert CustomTool.metadata.timeout == 30

    def test_app_requires_context(self) -> None:
        with pytest.raises(RuntimeError, match="not initialized"):
            CustomTool().app

    def test_argument_helpers(self) -> None:
        assert int_argument({"n": "7"}, "n", 5) == 7
        assert int_argument({"n": "junk"}, "n", 5) == 5
        assert int_argument({"n": -1}, "n", 5) == 5
        assert bool_argument({"b": "yes"}, "b") is True
        assert bool_argument({"b": "false"}, "b") is False
        assert bool_argument({}, "b", True) is True


class TestToolRegistry:
    """Discovery, whitelist and instantiation."""

    def test_discovers_builtin_tools(self, application) -> None:
        registry = ToolRegistry(application)
        assert set(registry.names()) == BUILTIN_TOOLS

    def test_discovers_workspace_modules(self, registry: ToolRegistry) -> None:
        """Modules named in config are imported from the workspace."""
        assert registry.is_allowed("process-id")
        assert registry.metadata("process-id").read_only is False

    def test_exclude_list(self, application) -> None:
        """Excluded tools are neither listed nor allowed."""
        registry = ToolRegistry(application, exclude=["execute"])
        assert "execute" not in registry.names()
        assert not registry.is_allowed("execute")
        assert registry.get("execute") is None

    def test_unknown_module_is_skipped(self, application) -> None:
        """A broken tool module does not prevent discovery."""
        registry = ToolRegistry(application, modules=["does_not_exist_anywhere"])
        assert "get-config" in registry.names()

    def test_create_injects_context(self, application) -> None:
        registry = ToolRegistry(application)
        registry.register(CustomTool)

        tool = registry.create("custom")

        assert tool.ctx.application is application
        assert tool.ctx.registry is registry
        assert tool.handle({}).content == "demo-shop"

    def test_create_unknown_raises(self, application) -> None:
        with pytest.raises(KeyError, match="Tool not registered or not allowed: nope"):
            ToolRegistry(application).create("nope")

    def test_abstract_classes_are_ignored(self) -> None:
        """Only concrete classes with metadata are registered."""
        registry = ToolRegistry(MagicMock())
        module = types.ModuleType("fake_tools")
        module.BaseTool = BaseTool
        module.CustomTool = CustomTool

        registry._register_module(module)

        assert list(registry.tool_classes) == ["custom"]

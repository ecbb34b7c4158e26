"""Per-slice resolvers for static (guideline) and dynamic (tool) slices.

Neither resolver raises: every failure becomes an error ``SliceResult``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from contextwell.context.slices import ContextSlice, GuidelineSource, SliceResult, ToolSource
from contextwell.tools.base import BaseTool

if TYPE_CHECKING:
    from contextwell.guidelines import GuidelineStore
    from contextwell.tools.executor import ToolExecutor
    from contextwell.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class GuidelineSliceResolver:
    def __init__(self, guidelines: GuidelineStore) -> None:
        self.guidelines = guidelines

    def resolve(self, s: ContextSlice) -> SliceResult:
        if not isinstance(s.source, GuidelineSource):
            return SliceResult(s.id, f"Slice '{s.id}' has no guideline configured.", is_error=True)

        key = s.source.key
        try:
            content = self.guidelines.render(key)
        except Exception as e:
            logger.warning("Guideline %s failed to render: %s", key, e)
            return SliceResult(s.id, f"Error resolving guideline '{key}': {e}", is_error=True)

        if not content:
            return SliceResult(s.id, f"Guideline '{key}' not found or empty.", is_error=True)
        return SliceResult(s.id, content)


class ToolSliceResolver:
    """Resolves dynamic slices through the execution engine.

    The agent-facing text is extracted by the tool class itself
    (``BaseTool.to_text``), so tools with structured content control how
    they are rendered. The engine's error flag passes through unchanged.
    """

    def __init__(self, executor: ToolExecutor, registry: ToolRegistry) -> None:
        self.executor = executor
        self.registry = registry

    def resolve(self, s: ContextSlice, params: dict[str, Any] | None = None) -> SliceResult:
        if not isinstance(s.source, ToolSource):
            return SliceResult(s.id, f"Slice '{s.id}' has no tool configured.", is_error=True)

        try:
            response = self.executor.execute(s.source.tool, params or {})
            tool_cls = self.registry.get(s.source.tool) or BaseTool
            return SliceResult(s.id, tool_cls.to_text(response), is_error=response.is_error)
        except Exception as e:
            logger.warning("Slice %s failed to resolve: %s", s.id, e)
            return SliceResult(s.id, f"Error resolving '{s.id}': {e}", is_error=True)

"""Context slices: the named, individually loadable units of context.

A slice is either dynamic (produced live by a tool through the execution
engine) or static (the text of a guideline). The catalog is the union of the
fixed dynamic slices below and one static slice per known guideline.
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from contextwell.guidelines import GuidelineStore

logger = logging.getLogger(__name__)

GUIDELINE_CATEGORY = "guidelines"
DEFAULT_GUIDELINE_TOKENS = 200

_RE_SLUG = re.compile(r"[^a-z0-9]+")


def slugify(key: str) -> str:
    """``python/core`` -> ``python-core``; separators collapse to one dash."""
    return _RE_SLUG.sub("-", key.lower()).strip("-")


@dataclass(frozen=True, slots=True)
class GuidelineSource:
    """Slice content comes from a guideline."""

    key: str


@dataclass(frozen=True, slots=True)
class ToolSource:
    """Slice content comes from invoking a tool."""

    tool: str


@dataclass(frozen=True, slots=True)
class ContextSlice:
    """Descriptor of one loadable unit of context.

    Attributes:
        id: Unique slice id, e.g. ``db-schema``
        category: Grouping used by the manifest
        label: One-line description
        estimated_tokens: Approximate size of the resolved content
        source: Where the content comes from (None if misconfigured)
        params: Accepted parameter name -> description, in display order
        variable_cost: Size depends entirely on the parameters
    """

    id: str
    category: str
    label: str
    estimated_tokens: int
    source: GuidelineSource | ToolSource | None = None
    params: dict[str, str] = field(default_factory=dict)
    variable_cost: bool = False

    @property
    def is_dynamic(self) -> bool:
        return isinstance(self.source, ToolSource)

    def has_params(self) -> bool:
        return bool(self.params)


@dataclass(frozen=True, slots=True)
class SliceResult:
    """Outcome of resolving one slice. When is_error, content is a diagnostic."""

    slice_id: str
    content: str
    is_error: bool = False


DYNAMIC_SLICES: tuple[ContextSlice, ...] = (
    ContextSlice(
        id="app-info",
        category="framework",
        label="Python version, project metadata, packages",
        estimated_tokens=150,
        source=ToolSource("application-info"),
    ),
    ContextSlice(
        id="db-schema",
        category="database",
        label="Table structures, columns, indexes",
        estimated_tokens=250,
        source=ToolSource("database-schema"),
        params={
            "summary": "Return only table names and column types (recommended first)",
            "filter": "Filter tables by name",
            "database": "Connection name",
        },
    ),
    ContextSlice(
        id="db-connections",
        category="database",
        label="Configured database connections",
        estimated_tokens=30,
        source=ToolSource("database-connections"),
    ),
    ContextSlice(
        id="db-query",
        category="database",
        label="Execute read-only SQL query",
        estimated_tokens=0,
        source=ToolSource("database-query"),
        params={"query": "SQL SELECT query", "database": "Connection name"},
        variable_cost=True,
    ),
    ContextSlice(
        id="routes",
        category="framework",
        label="Application route definitions",
        estimated_tokens=200,
        source=ToolSource("list-routes"),
        params={"method": "Filter by HTTP method", "path": "Filter by path pattern"},
    ),
    ContextSlice(
        id="commands",
        category="framework",
        label="Available CLI commands",
        estimated_tokens=300,
        source=ToolSource("list-commands"),
    ),
    ContextSlice(
        id="config-keys",
        category="framework",
        label="Available config keys in dot notation",
        estimated_tokens=200,
        source=ToolSource("list-config-keys"),
    ),
    ContextSlice(
        id="env-vars",
        category="framework",
        label="Environment variable names",
        estimated_tokens=100,
        source=ToolSource("list-env-vars"),
    ),
    ContextSlice(
        id="get-config",
        category="config",
        label="Retrieve specific config value",
        estimated_tokens=50,
        source=ToolSource("get-config"),
        params={"key": "Config key in dot notation"},
    ),
    ContextSlice(
        id="absolute-url",
        category="urls",
        label="Generate absolute URL for path or route",
        estimated_tokens=20,
        source=ToolSource("get-absolute-url"),
        params={"path": "Relative URL path", "route": "Named route"},
    ),
    ContextSlice(
        id="last-error",
        category="debug",
        label="Most recent application error",
        estimated_tokens=100,
        source=ToolSource("last-error"),
    ),
    ContextSlice(
        id="browser-logs",
        category="debug",
        label="Browser console log entries",
        estimated_tokens=200,
        source=ToolSource("browser-logs"),
        params={"entries": "Number of entries to return"},
    ),
    ContextSlice(
        id="log-entries",
        category="debug",
        label="Application log entries",
        estimated_tokens=300,
        source=ToolSource("read-log-entries"),
        params={"entries": "Number of entries to return"},
    ),
)


class SliceCatalog:
    """Lazily built, cached catalog of slices keyed by id.

    Dynamic slices come first, then one static slice per guideline. A later
    entry with the same id replaces an earlier one.
    """

    def __init__(self, guidelines: GuidelineStore) -> None:
        self.guidelines = guidelines
        self._slices: dict[str, ContextSlice] | None = None
        self._lock = threading.Lock()

    def all(self) -> dict[str, ContextSlice]:
        slices = self._slices
        if slices is None:
            with self._lock:
                if self._slices is None:
                    self._slices = self._build()
                slices = self._slices
        return slices

    def get(self, slice_id: str) -> ContextSlice | None:
        return self.all().get(slice_id)

    def has(self, slice_id: str) -> bool:
        return slice_id in self.all()

    def invalidate(self) -> None:
        with self._lock:
            self._slices = None

    def _build(self) -> dict[str, ContextSlice]:
        slices = {s.id: s for s in DYNAMIC_SLICES}
        for s in self._static_slices():
            slices[s.id] = s
        logger.debug("Slice catalog built with %d slices", len(slices))
        return slices

    def _static_slices(self) -> list[ContextSlice]:
        return [
            ContextSlice(
                id=slugify(key),
                category=GUIDELINE_CATEGORY,
                label=guideline.description or key,
                estimated_tokens=guideline.estimated_tokens or DEFAULT_GUIDELINE_TOKENS,
                source=GuidelineSource(key),
            )
            for key, guideline in self.guidelines.all_guidelines().items()
        ]

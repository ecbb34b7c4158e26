"""Tool registry: the whitelist of invokable tool identities.

The registry:
- Discovers tools by scanning the implementations/ package
- Imports extra tool modules named in config (importable from the workspace)
- Applies the configured exclude list
- Creates tool instances with a ToolContext injected

Nothing outside the registry is ever executed: both the in-process path and
the isolated child process check ``is_allowed()`` first.
"""

from __future__ import annotations

import importlib
import inspect
import logging
import pkgutil
from collections.abc import Iterable
from typing import TYPE_CHECKING

from contextwell.tools.base import BaseTool, ToolContext, ToolMetadata

if TYPE_CHECKING:
    from contextwell.application import Application

logger = logging.getLogger(__name__)

BUILTIN_PACKAGE = "contextwell.tools.implementations"


class ToolRegistry:
    """Self-registering tool registry.

    Attributes:
        application: Application injected into every created tool
        tool_classes: Discovered tool classes (name -> class)

    Example:
        >>> registry = ToolRegistry(application, exclude=["execute"])
        >>> registry.discover()
        >>> registry.is_allowed("get-config")
        True
    """

    def __init__(
        self,
        application: Application,
        modules: Iterable[str] = (),
        exclude: Iterable[str] = (),
    ) -> None:
        self.application = application
        self.modules = tuple(modules)
        self.exclude = frozenset(exclude)
        self.tool_classes: dict[str, type[BaseTool]] = {}
        self._discovered = False

    def discover(self) -> None:
        """Scan the built-in package and configured modules for tools."""
        self._discover_package(BUILTIN_PACKAGE)
        if self.modules:
            self.application.ensure_importable()
        for module_name in self.modules:
            try:
                module = importlib.import_module(module_name)
            except Exception as e:
                logger.warning("Failed to import tool module %s: %s", module_name, e)
                continue
            self._register_module(module)
        self._discovered = True
        logger.debug("Discovered tools: %s", ", ".join(sorted(self.tool_classes)))

    def _discover_package(self, package: str) -> None:
        pkg = importlib.import_module(package)
        for module_info in pkgutil.iter_modules(pkg.__path__, package + "."):
            try:
                module = importlib.import_module(module_info.name)
            except Exception as e:
                logger.warning("Failed to import tool module %s: %s", module_info.name, e)
                continue
            self._register_module(module)

    def _register_module(self, module: object) -> None:
        for attr_name in dir(module):
            attr = getattr(module, attr_name)
            if (
                inspect.isclass(attr)
                and issubclass(attr, BaseTool)
                and not inspect.isabstract(attr)
                and hasattr(attr, "metadata")
            ):
                self.register(attr)

    def register(self, cls: type[BaseTool]) -> None:
        """Register a tool class under its metadata name."""
        self.tool_classes[cls.metadata.name] = cls

    def _ensure_discovered(self) -> None:
        if not self._discovered:
            self.discover()

    def is_allowed(self, name: str) -> bool:
        """Check whether a tool identity may be invoked."""
        self._ensure_discovered()
        return name in self.tool_classes and name not in self.exclude

    def get(self, name: str) -> type[BaseTool] | None:
        """Tool class for an allowed identity, else None."""
        if not self.is_allowed(name):
            return None
        return self.tool_classes[name]

    def metadata(self, name: str) -> ToolMetadata | None:
        cls = self.get(name)
        return cls.metadata if cls else None

    def names(self) -> list[str]:
        """Allowed tool identities, sorted."""
        self._ensure_discovered()
        return sorted(name for name in self.tool_classes if name not in self.exclude)

    def create(self, name: str) -> BaseTool:
        """Instantiate a tool and inject context.

        Raises:
            KeyError: If the tool is unknown or excluded
        """
        cls = self.get(name)
        if cls is None:
            raise KeyError(f"Tool not registered or not allowed: {name}")
        instance = cls()
        instance.ctx = ToolContext(application=self.application, registry=self)
        return instance

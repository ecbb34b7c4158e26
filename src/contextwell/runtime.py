"""Runtime: the per-process composition root.

Created once by the MCP server or a CLI command and shared by everything it
serves. Builds configuration, the application, the tool registry and
executor, the guideline store, both catalogs and the resolvers lazily, and
caches them until ``invalidate()``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from contextwell.application import Application
from contextwell.config import ContextwellConfig, load_config
from contextwell.context import (
    BundleCatalog,
    ContextResolver,
    GuidelineSliceResolver,
    Manifest,
    SliceCatalog,
    ToolSliceResolver,
)
from contextwell.guidelines import GuidelineStore
from contextwell.tools import ToolExecutor, ToolRegistry

logger = logging.getLogger(__name__)

# Sentinel to distinguish "not yet built" from "built"
_UNSET: Any = object()


class Runtime:
    """Shared runtime for the MCP server and CLI commands.

    Usage:
        runtime = Runtime(workspace="/path/to/project")
        runtime.manifest.render()
        runtime.resolver.resolve_request({"app-info": {}}, ["@debug"])
        runtime.executor.execute("get-config", {"key": "app.name"})
    """

    def __init__(
        self,
        workspace: str | Path | None = None,
        config_path: str | Path | None = None,
        config: ContextwellConfig | None = None,
    ) -> None:
        self._workspace = Path(workspace).expanduser().resolve() if workspace else Path.cwd()
        self._config_path = config_path
        self._config: Any = config if config is not None else _UNSET
        self._reset()

    def _reset(self) -> None:
        self._application: Any = _UNSET
        self._registry: Any = _UNSET
        self._executor: Any = _UNSET
        self._guidelines: Any = _UNSET
        self._slices: Any = _UNSET
        self._bundles: Any = _UNSET
        self._manifest: Any = _UNSET
        self._resolver: Any = _UNSET

    @property
    def workspace(self) -> Path:
        return self._workspace

    # ------------------------------------------------------------------
    # Subsystems
    # ------------------------------------------------------------------

    @property
    def config(self) -> ContextwellConfig:
        if self._config is _UNSET:
            self._config = load_config(self._config_path, self._workspace)
        return self._config

    @property
    def application(self) -> Application:
        if self._application is _UNSET:
            self._application = Application(self._workspace, self.config.application)
        return self._application

    @property
    def registry(self) -> ToolRegistry:
        if self._registry is _UNSET:
            tools = self.config.tools
            self._registry = ToolRegistry(self.application, modules=tools.modules, exclude=tools.exclude)
        return self._registry

    @property
    def executor(self) -> ToolExecutor:
        if self._executor is _UNSET:
            self._executor = ToolExecutor(self.registry, self.config.execution)
        return self._executor

    @property
    def guidelines(self) -> GuidelineStore:
        if self._guidelines is _UNSET:
            self._guidelines = GuidelineStore(self._workspace, self.config.guidelines)
        return self._guidelines

    @property
    def slices(self) -> SliceCatalog:
        if self._slices is _UNSET:
            self._slices = SliceCatalog(self.guidelines)
        return self._slices

    @property
    def bundles(self) -> BundleCatalog:
        if self._bundles is _UNSET:
            self._bundles = BundleCatalog(exclude=self.config.bundles.exclude)
        return self._bundles

    @property
    def manifest(self) -> Manifest:
        if self._manifest is _UNSET:
            self._manifest = Manifest(self.slices, self.bundles)
        return self._manifest

    @property
    def resolver(self) -> ContextResolver:
        if self._resolver is _UNSET:
            self._resolver = ContextResolver(
                self.slices,
                self.bundles,
                GuidelineSliceResolver(self.guidelines),
                ToolSliceResolver(self.executor, self.registry),
            )
        return self._resolver

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def invalidate(self, reload_config: bool = False) -> None:
        """Drop every cached subsystem so it is rebuilt on next access.

        Bundles registered on the old catalog are dropped with it.
        """
        if self._application is not _UNSET:
            self._application.dispose()
        if reload_config:
            self._config = _UNSET
        self._reset()
        logger.debug("Runtime invalidated")

    def __repr__(self) -> str:
        return f"Runtime(workspace={self._workspace})"

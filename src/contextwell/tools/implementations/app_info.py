"""Application overview: interpreter, platform, project metadata, packages."""

from __future__ import annotations

import platform
import sys
from importlib import metadata
from typing import Any

from contextwell.tools.base import BaseTool, ToolResponse, tool_metadata


def installed_packages() -> dict[str, str]:
    """Installed distributions (name -> version), sorted by name."""
    packages: dict[str, str] = {}
    for dist in metadata.distributions():
        name = dist.metadata["Name"]
        if name:
            packages[name] = dist.version
    return dict(sorted(packages.items(), key=lambda item: item[0].lower()))


@tool_metadata(
    name="application-info",
    description="Python version, platform, project metadata and installed packages",
)
class ApplicationInfoTool(BaseTool):
    """Get a one-shot overview of the application and its environment.

    Call this before writing code to match package versions and conventions.
    """

    parameters = {"type": "object", "properties": {}}

    def handle(self, arguments: dict[str, Any]) -> ToolResponse:
        app = self.app
        project = app.project
        return ToolResponse.json({
            "name": app.name,
            "version": project.get("version"),
            "python": platform.python_version(),
            "implementation": platform.python_implementation(),
            "platform": sys.platform,
            "requires_python": project.get("requires-python"),
            "dependencies": project.get("dependencies", []),
            "databases": sorted(app.config.databases),
            "packages": installed_packages(),
        })

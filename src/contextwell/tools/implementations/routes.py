"""Route listing and URL tools.

Routes are read from the web application object named by
``application.entrypoint``. Starlette/FastAPI applications expose
``app.routes``; Flask applications expose ``app.url_map``.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import urljoin

from contextwell.tools.base import BaseTool, ToolResponse, tool_metadata


def extract_routes(web_app: Any) -> list[dict[str, Any]]:
    """Normalize routes of a Starlette/FastAPI or Flask application.

    Raises:
        TypeError: If the object exposes neither ``routes`` nor ``url_map``.
    """
    routes: list[dict[str, Any]] = []

    if hasattr(web_app, "url_map"):
        for rule in web_app.url_map.iter_rules():
            routes.append({
                "path": rule.rule,
                "methods": sorted(m for m in (rule.methods or ()) if m not in ("HEAD", "OPTIONS")),
                "name": rule.endpoint,
            })
        return routes

    if hasattr(web_app, "routes"):
        for route in web_app.routes:
            path = getattr(route, "path", None)
            if path is None:
                continue
            routes.append({
                "path": path,
                "methods": sorted(getattr(route, "methods", None) or ()),
                "name": getattr(route, "name", None),
            })
        return routes

    raise TypeError(f"Cannot list routes of {type(web_app).__name__}: no 'routes' or 'url_map'")


@tool_metadata(
    name="list-routes",
    description="List the application's route definitions",
)
class ListRoutesTool(BaseTool):
    """List routes with their HTTP methods and names."""

    parameters = {
        "type": "object",
        "properties": {
            "method": {"type": "string", "description": "Only routes accepting this HTTP method"},
            "path": {"type": "string", "description": "Only routes whose path contains this"},
        },
    }

    def handle(self, arguments: dict[str, Any]) -> ToolResponse:
        try:
            routes = extract_routes(self.app.load_entrypoint())
        except LookupError as e:
            return ToolResponse.error(str(e))

        method = str(arguments.get("method") or "").upper()
        path = str(arguments.get("path") or "")
        if method:
            routes = [r for r in routes if method in r["methods"]]
        if path:
            routes = [r for r in routes if path in r["path"]]

        return ToolResponse.json({"count": len(routes), "routes": routes})


@tool_metadata(
    name="get-absolute-url",
    description="Build an absolute URL for a path or a named route",
)
class GetAbsoluteUrlTool(BaseTool):
    """Turn a relative path or a named route into an absolute URL."""

    parameters = {
        "type": "object",
        "properties": {
            "path": {"type": "string", "description": "Relative URL path, e.g. /dashboard"},
            "route": {"type": "string", "description": "Named route"},
        },
    }

    def handle(self, arguments: dict[str, Any]) -> ToolResponse:
        base_url = self.app.config.base_url.rstrip("/") + "/"
        path = arguments.get("path")
        route = arguments.get("route")

        if route:
            try:
                routes = extract_routes(self.app.load_entrypoint())
            except LookupError as e:
                return ToolResponse.error(str(e))
            match = next((r for r in routes if r["name"] == route), None)
            if match is None:
                return ToolResponse.error(f"Route '{route}' not found.")
            path = match["path"]

        return ToolResponse.text(urljoin(base_url, str(path or "").lstrip("/")))

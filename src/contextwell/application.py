"""The inspected application.

Tools never read the filesystem or the configuration directly; they go
through an ``Application`` built from the workspace root and the
``application`` config section. It lazily loads and caches:

- settings: merged YAML settings files
- env: variables defined in the dotenv file
- project metadata from pyproject.toml
- SQLAlchemy engines, one per configured connection
- the web application object named by ``entrypoint``
- the click group named by ``cli``

An ``Application`` lives exactly as long as the process that built it. The
isolated execution path depends on that: each child process builds its own
and therefore always sees the current state on disk.
"""

from __future__ import annotations

import importlib
import logging
import sys
import threading
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml

from contextwell.config import ApplicationConfig, deep_update

if TYPE_CHECKING:
    from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

# Sentinel to distinguish "not yet loaded" from "loaded but None"
_UNSET: Any = object()


def parse_env_file(path: Path) -> dict[str, str]:
    """Parse a dotenv file into a dict.

    Supports ``KEY=value``, ``export KEY=value``, comments and quoted values.
    Unreadable files yield an empty dict.
    """
    values: dict[str, str] = {}
    if not path.exists():
        return values
    try:
        with open(path) as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, _, value = line.partition("=")
                key = key.strip()
                if key.startswith("export "):
                    key = key[len("export "):].strip()
                values[key] = value.strip().strip("'\"")
    except OSError as e:
        logger.debug("Could not read env file %s: %s", path, e)
    return values


def flatten_keys(data: dict, prefix: str = "") -> list[str]:
    """Flatten nested mapping keys into dot notation."""
    keys: list[str] = []
    for key, value in data.items():
        dotted = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict) and value:
            keys.extend(flatten_keys(value, dotted))
        else:
            keys.append(dotted)
    return keys


class Application:
    """Lazy, cached view of the application in a workspace.

    Usage:
        app = Application(Path("/path/to/project"), config.application)
        app.settings          # merged settings files
        app.engine("default") # SQLAlchemy engine
    """

    def __init__(self, workspace: Path, config: ApplicationConfig | None = None) -> None:
        self.workspace = Path(workspace).expanduser().resolve()
        self.config = config or ApplicationConfig()
        self._lock = threading.Lock()
        self._settings: Any = _UNSET
        self._project: Any = _UNSET
        self._engines: dict[str, Engine] = {}

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def path(self, relative: str | Path) -> Path:
        """Resolve a path relative to the workspace."""
        candidate = Path(relative)
        return candidate if candidate.is_absolute() else self.workspace / candidate

    @property
    def env_path(self) -> Path:
        return self.path(self.config.env_file)

    @property
    def log_path(self) -> Path:
        return self.path(self.config.log_file)

    @property
    def browser_log_path(self) -> Path:
        return self.path(self.config.browser_log_file)

    def ensure_importable(self) -> None:
        """Put the workspace root on sys.path so application modules import."""
        root = str(self.workspace)
        if root not in sys.path:
            sys.path.insert(0, root)

    # ------------------------------------------------------------------
    # Metadata
    # ------------------------------------------------------------------

    @property
    def project(self) -> dict[str, Any]:
        """The [project] table of pyproject.toml (empty if absent)."""
        if self._project is _UNSET:
            self._project = self._load_project()
        return self._project

    @property
    def name(self) -> str:
        return self.config.name or self.project.get("name") or self.workspace.name

    @property
    def scripts(self) -> dict[str, str]:
        """Console scripts declared in pyproject.toml (name -> ``module:attr``)."""
        return dict(self.project.get("scripts", {}))

    def _load_project(self) -> dict[str, Any]:
        pyproject = self.workspace / "pyproject.toml"
        if not pyproject.exists():
            return {}
        try:
            with open(pyproject, "rb") as f:
                return tomllib.load(f).get("project", {})
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.debug("Failed to read %s: %s", pyproject, e)
            return {}

    # ------------------------------------------------------------------
    # Settings and environment
    # ------------------------------------------------------------------

    @property
    def settings(self) -> dict[str, Any]:
        """Merged settings files, later files overriding earlier ones."""
        if self._settings is _UNSET:
            with self._lock:
                if self._settings is _UNSET:
                    self._settings = self._load_settings()
        return self._settings

    def _load_settings(self) -> dict[str, Any]:
        merged: dict[str, Any] = {}
        for entry in self.config.settings_files:
            settings_path = self.path(entry)
            if not settings_path.exists():
                logger.debug("Settings file not found: %s", settings_path)
                continue
            with open(settings_path) as f:
                data = yaml.safe_load(f) or {}
            if isinstance(data, dict):
                deep_update(merged, data)
        return merged

    def setting(self, key: str, default: Any = None) -> Any:
        """Look up a dotted settings key."""
        current: Any = self.settings
        for part in key.split("."):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return current

    def has_setting(self, key: str) -> bool:
        return self.setting(key, _UNSET) is not _UNSET

    @property
    def env(self) -> dict[str, str]:
        """Variables defined in the dotenv file (re-read on every access)."""
        return parse_env_file(self.env_path)

    # ------------------------------------------------------------------
    # Databases
    # ------------------------------------------------------------------

    def connection_name(self, name: str | None = None) -> str:
        """Resolve a connection name, falling back to the default.

        Raises:
            KeyError: If no matching connection is configured.
        """
        databases = self.config.databases
        if name:
            if name not in databases:
                raise KeyError(f"Database connection '{name}' is not configured")
            return name
        if self.config.default_database:
            return self.config.default_database
        if len(databases) == 1:
            return next(iter(databases))
        if "default" in databases:
            return "default"
        raise KeyError("No database connection configured")

    def engine(self, name: str | None = None) -> Engine:
        """SQLAlchemy engine for a connection, created once and cached."""
        from sqlalchemy import create_engine

        resolved = self.connection_name(name)
        with self._lock:
            if resolved not in self._engines:
                url = self.config.databases[resolved]
                if url.startswith("sqlite:///") and not url.startswith("sqlite:////"):
                    # Relative sqlite paths are relative to the workspace
                    url = f"sqlite:///{self.path(url[len('sqlite:///'):])}"
                self._engines[resolved] = create_engine(url)
            return self._engines[resolved]

    # ------------------------------------------------------------------
    # Web application
    # ------------------------------------------------------------------

    def import_object(self, target: str, default_attr: str) -> Any:
        """Import ``module:attr`` (dotted attr allowed) from the workspace."""
        module_name, _, attr = target.partition(":")
        self.ensure_importable()
        obj: Any = importlib.import_module(module_name)
        for part in (attr or default_attr).split("."):
            obj = getattr(obj, part)
        return obj

    def load_entrypoint(self) -> Any:
        """Import the web application named by ``entrypoint``.

        Raises:
            LookupError: If no entrypoint is configured.
        """
        if not self.config.entrypoint:
            raise LookupError("No application entrypoint configured (application.entrypoint)")
        return self.import_object(self.config.entrypoint, "app")

    def load_cli(self) -> Any:
        """Import the click group named by ``cli``, or None if not configured."""
        if not self.config.cli:
            return None
        return self.import_object(self.config.cli, "cli")

    def dispose(self) -> None:
        """Dispose cached engines and drop cached state."""
        with self._lock:
            for engine in self._engines.values():
                engine.dispose()
            self._engines.clear()
            self._settings = _UNSET
            self._project = _UNSET

    def __repr__(self) -> str:
        return f"Application(workspace={self.workspace})"

"""Contextwell configuration management.

Loads configuration from .contextwell/config.yaml with sensible defaults.
All settings can be overridden via environment variables (CONTEXTWELL_*).

Config locations (in priority order):
1. Explicit path passed to load_config()
2. <workspace>/.contextwell/config.yaml (project-local)
3. ~/.contextwell/config.yaml (user-global)
4. Built-in defaults

There is no process-wide config: each Runtime loads and owns its own.
"""

from __future__ import annotations

import dataclasses
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from contextwell.foundation.errors import ConfigError

logger = logging.getLogger(__name__)

CONFIG_DIR = ".contextwell"
CONFIG_FILE = "config.yaml"
ENV_PREFIX = "CONTEXTWELL_"


@dataclass
class ExecutionConfig:
    """Configuration for the tool execution engine."""

    fast_path: bool = True
    """Run read-only tools in-process. When False every tool call is isolated."""

    default_timeout: int = 180
    """Subprocess timeout (seconds) when neither the call nor the tool sets one."""

    min_timeout: int = 1
    """Lower clamp for subprocess timeouts."""

    max_timeout: int = 600
    """Upper clamp for subprocess timeouts."""

    python: str | None = None
    """Interpreter used for isolated calls (default: the running interpreter)."""


@dataclass
class BundlesConfig:
    """Configuration for the bundle catalog."""

    exclude: list[str] = field(default_factory=list)
    """Bundle ids to hide from the catalog."""


@dataclass
class ToolsConfig:
    """Configuration for the tool registry."""

    modules: list[str] = field(default_factory=list)
    """Extra modules (importable from the workspace) that define tools."""

    exclude: list[str] = field(default_factory=list)
    """Tool names that may never be invoked."""

    legacy: bool = True
    """Expose every registered tool individually over MCP."""


@dataclass
class GuidelinesConfig:
    """Configuration for static guideline discovery."""

    include_builtin: bool = True
    """Include the guidelines shipped with Contextwell."""

    paths: list[str] = field(default_factory=lambda: [".contextwell/guidelines"])
    """Workspace-relative directories scanned for *.md guidelines."""


@dataclass
class ApplicationConfig:
    """Describes the application being inspected."""

    name: str | None = None
    """Display name (defaults to the pyproject name or workspace directory)."""

    base_url: str = "http://localhost:8000"
    """Base URL used to build absolute URLs."""

    entrypoint: str | None = None
    """Import string of the web application object, e.g. ``myapp.main:app``."""

    cli: str | None = None
    """Import string of the application's click group, e.g. ``myapp.cli:main``."""

    settings_files: list[str] = field(default_factory=list)
    """YAML settings files merged (in order) into the application settings."""

    env_file: str = ".env"
    """Dotenv file with the application's environment variables."""

    databases: dict[str, str] = field(default_factory=dict)
    """Connection name -> SQLAlchemy URL."""

    default_database: str | None = None
    """Connection used when a tool call does not name one."""

    log_file: str = "logs/app.log"
    """Application log file."""

    browser_log_file: str = "logs/browser.log"
    """Browser console log file."""


@dataclass
class ContextwellConfig:
    """Root configuration for Contextwell."""

    execution: ExecutionConfig = field(default_factory=ExecutionConfig)
    bundles: BundlesConfig = field(default_factory=BundlesConfig)
    tools: ToolsConfig = field(default_factory=ToolsConfig)
    guidelines: GuidelinesConfig = field(default_factory=GuidelinesConfig)
    application: ApplicationConfig = field(default_factory=ApplicationConfig)

    debug: bool = False
    """Enable debug logging by default."""


_SECTIONS: dict[str, type] = {
    "execution": ExecutionConfig,
    "bundles": BundlesConfig,
    "tools": ToolsConfig,
    "guidelines": GuidelinesConfig,
    "application": ApplicationConfig,
}


def deep_update(base: dict, updates: dict) -> dict:
    """Recursively update a dict with another dict."""
    for key, value in updates.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            deep_update(base[key], value)
        else:
            base[key] = value
    return base


def _coerce(value: str, current: Any) -> Any:
    """Coerce an environment string to the type of the current value."""
    if isinstance(current, list):
        return [item.strip() for item in value.split(",") if item.strip()]
    if value.lower() in ("true", "false"):
        return value.lower() == "true"
    if value.isdigit() or (value.startswith("-") and value[1:].isdigit()):
        return int(value)
    try:
        return float(value)
    except ValueError:
        return value


def _apply_env_overrides(config_dict: dict) -> dict:
    """Apply environment variable overrides.

    Environment variables follow the pattern CONTEXTWELL_SECTION_KEY, where
    KEY may itself contain underscores. Top-level keys use CONTEXTWELL_KEY.

    Examples:
        CONTEXTWELL_EXECUTION_FAST_PATH=false
        CONTEXTWELL_EXECUTION_DEFAULT_TIMEOUT=60
        CONTEXTWELL_BUNDLES_EXCLUDE=@testing,@debug
    """
    for key, value in os.environ.items():
        if not key.startswith(ENV_PREFIX):
            continue

        path_str = key[len(ENV_PREFIX):].lower()

        for section, section_cls in _SECTIONS.items():
            if not path_str.startswith(section + "_"):
                continue
            name = path_str[len(section) + 1:]
            known = {f.name for f in dataclasses.fields(section_cls)}
            if name not in known:
                break
            target = config_dict.setdefault(section, {})
            if isinstance(target.get(name), dict):
                logger.warning("Ignoring %s: mapping settings cannot be set from the environment", key)
                break
            target[name] = _coerce(value, target.get(name))
            break
        else:
            if path_str == "debug":
                config_dict["debug"] = _coerce(value, False)

    return config_dict


def _section(cls: type, data: Any, name: str) -> Any:
    """Build one config section, rejecting unknown keys."""
    if data is None:
        return cls()
    if not isinstance(data, dict):
        raise ConfigError(f"Config section '{name}' must be a mapping")
    known = {f.name for f in dataclasses.fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(f"Unknown keys in config section '{name}': {', '.join(unknown)}")
    return cls(**data)


def _dict_to_config(data: dict) -> ContextwellConfig:
    """Convert a dict to ContextwellConfig."""
    sections = {name: _section(cls, data.get(name), name) for name, cls in _SECTIONS.items()}
    return ContextwellConfig(**sections, debug=bool(data.get("debug", False)))


def config_paths(path: str | Path | None = None, workspace: str | Path | None = None) -> list[Path]:
    """Candidate config files in priority order."""
    paths: list[Path] = []
    if path:
        paths.append(Path(path))
    root = Path(workspace) if workspace else Path.cwd()
    paths.append(root / CONFIG_DIR / CONFIG_FILE)
    paths.append(Path.home() / CONFIG_DIR / CONFIG_FILE)
    return paths


def load_config(
    path: str | Path | None = None,
    workspace: str | Path | None = None,
) -> ContextwellConfig:
    """Load configuration from file with defaults and env overrides.

    Priority (highest to lowest):
    1. Environment variables (CONTEXTWELL_*)
    2. Explicit path if provided
    3. <workspace>/.contextwell/config.yaml (project-local)
    4. ~/.contextwell/config.yaml (user-global)
    5. Built-in defaults

    Args:
        path: Optional explicit config file path.
        workspace: Workspace root (default: current directory).

    Returns:
        Merged ContextwellConfig instance.

    Raises:
        ConfigError: If the selected config file is malformed.
    """
    config_dict: dict[str, Any] = dataclasses.asdict(ContextwellConfig())

    for config_path in config_paths(path, workspace):
        if not config_path.exists():
            continue
        try:
            with open(config_path) as f:
                file_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Could not read config file {config_path}: {e}") from e
        if not isinstance(file_config, dict):
            raise ConfigError(f"Config file {config_path} must contain a mapping")
        logger.debug("Loaded config from %s", config_path)
        deep_update(config_dict, file_config)
        break  # Use first found config

    config_dict = _apply_env_overrides(config_dict)

    return _dict_to_config(config_dict)


def save_default_config(path: str | Path = ".contextwell/config.yaml") -> Path:
    """Save the default configuration to a file.

    Creates a well-documented config file with all options.

    Args:
        path: Where to save the config.

    Returns:
        Path to the saved config file.
    """
    config_content = '''# Contextwell Configuration

# Tool execution engine
execution:
  # Run read-only tools inside the server process (fast path).
  # Mutating tools (execute) always run in a fresh child process.
  fast_path: true

  # Timeout for isolated tool calls, clamped to [min_timeout, max_timeout]
  default_timeout: 180
  min_timeout: 1
  max_timeout: 600

  # Interpreter for isolated calls (null = the interpreter running contextwell)
  python: null

# Bundles (pre-compiled slice groups)
bundles:
  # Hide bundles by id
  exclude: []

# Tool registry
tools:
  # Extra modules defining tools, importable from the workspace root
  modules: []

  # Tool names that may never be invoked
  exclude: []

  # Expose every tool individually over MCP (in addition to resolve-context)
  legacy: true

# Static guidelines
guidelines:
  include_builtin: true
  paths:
    - ".contextwell/guidelines"

# The application being inspected
application:
  # name: "my-app"
  base_url: "http://localhost:8000"

  # Web application object for route listing (Starlette/FastAPI or Flask)
  # entrypoint: "myapp.main:app"

  # Click group for command listing
  # cli: "myapp.cli:main"

  # YAML settings files merged into the application settings
  settings_files: []

  env_file: ".env"

  # Connection name -> SQLAlchemy URL
  databases: {}
  #   default: "sqlite:///db.sqlite3"
  default_database: null

  log_file: "logs/app.log"
  browser_log_file: "logs/browser.log"

# Global settings
debug: false
'''

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(config_content)
    return path

"""Logging configuration for Contextwell.

Provides centralized logging setup with sensible defaults:
- Default: WARNING level (quiet operation)
- --debug flag or ``debug: true`` in config: DEBUG level with full context
- CONTEXTWELL_DEBUG=true or CONTEXTWELL_LOG_LEVEL=DEBUG env vars: Override for CI/scripting

Console output always goes to stderr. Stdout belongs to the MCP stdio
transport and to the one-line JSON envelope printed by ``execute-tool``.

Usage:
    from contextwell.foundation.logging import configure_logging
    configure_logging(debug=args.debug)

Priority for level resolution (highest to lowest):
    1. Explicit `level` parameter (programmatic override)
    2. CONTEXTWELL_LOG_LEVEL env var (any level: DEBUG, INFO, WARNING, etc.)
    3. CONTEXTWELL_DEBUG=true env var (simple boolean)
    4. `debug=True` parameter (--debug flag)
    5. WARNING (default)
"""

import logging
import os
import sys

_DEBUG_FORMAT = "%(asctime)s %(name)s [%(levelname)s] %(message)s"
_DEFAULT_FORMAT = "%(name)s: %(message)s"

# Noisy libraries we want to quiet even in debug mode
_NOISY_LOGGERS = (
    "sqlalchemy.engine",
    "httpx",
    "httpcore",
    "mcp.server.lowlevel",
    "asyncio",
)


def _parse_level(level: int | str) -> int:
    """Parse a level name or number into a logging level."""
    if isinstance(level, int):
        return level
    if level.isdigit():
        return int(level)
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.WARNING


def configure_logging(
    *,
    debug: bool = False,
    level: int | str | None = None,
    stream: object = None,
) -> None:
    """Configure logging for the Contextwell CLI and MCP server.

    Safe to call again (e.g. once the config is loaded); existing root
    handlers are replaced.

    Args:
        debug: Enable DEBUG level with detailed format
        level: Override log level (int or string like "DEBUG", "INFO")
        stream: Output stream (default: stderr)
    """
    resolved_level: int
    if level is not None:
        resolved_level = _parse_level(level)
    elif env_level := os.environ.get("CONTEXTWELL_LOG_LEVEL"):
        resolved_level = _parse_level(env_level)
    elif os.environ.get("CONTEXTWELL_DEBUG", "").lower() in ("true", "1", "yes"):
        resolved_level = logging.DEBUG
    elif debug:
        resolved_level = logging.DEBUG
    else:
        resolved_level = logging.WARNING

    console_format = _DEBUG_FORMAT if resolved_level <= logging.DEBUG else _DEFAULT_FORMAT

    root_logger = logging.getLogger()
    root_logger.setLevel(resolved_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(stream or sys.stderr)
    console_handler.setLevel(resolved_level)
    console_handler.setFormatter(logging.Formatter(console_format))
    root_logger.addHandler(console_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug("Logging configured: level=%s", logging.getLevelName(resolved_level))

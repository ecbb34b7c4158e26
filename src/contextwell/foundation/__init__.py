"""Foundation layer: logging and error types shared by every subsystem."""

from contextwell.foundation.errors import ConfigError, ContextwellError, EmptyRequestError
from contextwell.foundation.logging import configure_logging

__all__ = [
    "ConfigError",
    "ContextwellError",
    "EmptyRequestError",
    "configure_logging",
]

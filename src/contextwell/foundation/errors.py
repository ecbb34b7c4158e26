"""Error types for Contextwell.

Almost every failure in the resolution path is reported as data
(``SliceResult.is_error`` / ``ToolResponse.is_error``) rather than raised.
The exceptions here cover the few cases that must stop a request outright.
"""


class ContextwellError(Exception):
    """Base class for all Contextwell errors."""


class ConfigError(ContextwellError):
    """Raised when a configuration file cannot be parsed or is malformed."""


class EmptyRequestError(ContextwellError):
    """Raised when a resolve request names neither slices nor bundles."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(
            message
            or "At least one slice or bundle must be specified. "
            "Use context-manifest to see available options."
        )

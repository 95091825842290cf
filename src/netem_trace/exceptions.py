"""
Custom exceptions for the netem_trace package.
"""

from typing import Any, Optional


class NetemTraceError(Exception):
    """Base exception for all netem_trace errors."""

    pass


class ConfigError(NetemTraceError):
    """
    Raised when a trace configuration cannot be turned into a model.

    The parameters are rejected as-is; nothing is corrected silently.
    Fix the configuration (e.g. a sawtooth with bottom above top) and build again.
    """

    def __init__(self, config_name: str, reason: str):
        self.config_name = config_name
        self.reason = reason
        super().__init__(f"Invalid {config_name}: {reason}")


class TraceFormatError(NetemTraceError):
    """
    Raised when a mahimahi timestamp trace is malformed.

    Timestamps must be non-negative integers, monotonically nondecreasing,
    and at least one of them must be nonzero.
    """

    def __init__(self, message: str):
        super().__init__(message)


class ConfigDecodeError(NetemTraceError):
    """
    Raised when a serialized configuration cannot be decoded.

    Covers unknown type tags, malformed fields and unit strings that
    cannot be parsed. The offending raw fragment is kept in ``raw``.
    """

    def __init__(self, message: str, raw: Optional[Any] = None):
        self.raw = raw
        if raw is not None:
            message += f" (got: {raw!r})"
        super().__init__(message)


class ConfigLoadError(NetemTraceError):
    """
    Raised when a configuration or trace file cannot be loaded.

    Check that the file exists, is valid JSON/YAML, and is not empty.
    """

    def __init__(self, path: str, reason: str = ""):
        self.path = path
        message = f"Failed to load trace file: {path}"
        if reason:
            message += f" ({reason})"
        super().__init__(message)

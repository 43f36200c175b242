"""
fetchncache/exceptions.py

Exception hierarchy for configuration and path/header validation failures.

Every error carries a stable ``code`` and a ``context`` dict so the CLI (and
tests) can report what went wrong without parsing messages. Per-target runtime
failures (network, status, write) are not raised past the target boundary;
see ``fetchncache.result`` for those.
"""

from __future__ import annotations

from typing import Any


class FetchncacheError(Exception):
    """Base class for all fetchncache errors."""

    code = "fetchncache_error"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        self.context: dict[str, Any] = dict(context or {})

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "message": self.message, **self.context}


class ConfigError(FetchncacheError):
    """Configuration is missing, unreadable or empty."""

    code = "config_error"


class YamlParseError(ConfigError):
    code = "yaml_parse_error"


class ConfigValidationError(ConfigError):
    """Configuration was parsed but failed schema or semantic validation."""

    code = "config_validation_error"


class LoggingSetupError(FetchncacheError):
    code = "logging_setup_error"


# -----------------------------------------------------------------------------
# Pattern and path resolution
# -----------------------------------------------------------------------------


class PathResolutionError(FetchncacheError):
    """A target path could not be turned into a concrete file path."""

    code = "path_resolution_failed"


class InvalidPatternError(PathResolutionError):
    code = "invalid_pattern"


class UnknownTimezoneError(PathResolutionError):
    code = "unknown_timezone"


class UnsupportedDateTimeFormatError(PathResolutionError):
    code = "unsupported_datetime_format"


class UnsupportedProcessingError(PathResolutionError):
    code = "unsupported_processing"


class EmptyPathError(PathResolutionError):
    code = "empty_path"


class MalformedPathSpecError(PathResolutionError):
    code = "malformed_path_spec"


class MissingPlaceholderError(PathResolutionError):
    code = "missing_placeholder"


class InvalidPathSpecError(PathResolutionError):
    code = "invalid_path_spec"


# -----------------------------------------------------------------------------
# Headers
# -----------------------------------------------------------------------------


class HeaderError(FetchncacheError):
    code = "header_error"


class MalformedHeaderError(HeaderError):
    code = "malformed_header"


class EmptyHeaderNameError(HeaderError):
    code = "empty_header_name"


__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "EmptyHeaderNameError",
    "EmptyPathError",
    "FetchncacheError",
    "HeaderError",
    "InvalidPathSpecError",
    "InvalidPatternError",
    "LoggingSetupError",
    "MalformedHeaderError",
    "MalformedPathSpecError",
    "MissingPlaceholderError",
    "PathResolutionError",
    "UnknownTimezoneError",
    "UnsupportedDateTimeFormatError",
    "UnsupportedProcessingError",
    "YamlParseError",
]

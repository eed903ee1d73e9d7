"""
Unified exception hierarchy for spanlabels.

All exception classes live here. No per-module exception files.

The validation pipeline itself never raises on malformed candidates: defects
are reported as errors or notes on the result. Exceptions are reserved for
the edges of the system (configuration, policy files, CLI input files).

Hierarchy:
    SpanLabelsError (base)
    ├── ConfigurationError
    │   └── PolicyLoadError
    └── InputFormatError

Usage:
    from spanlabels.exceptions import PolicyLoadError
"""

from __future__ import annotations

from typing import Any


class SpanLabelsError(Exception):
    """
    Base exception for all spanlabels errors.

    Attributes:
        message: Human-readable error description
        context: Additional context about what was being done
        details: Technical details (file paths, field names, etc.)
    """

    def __init__(
        self,
        message: str,
        context: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.context = context
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = [self.message]
        if self.context:
            parts.append(f"Context: {self.context}")
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            parts.append(f"Details: {detail_str}")
        return ". ".join(parts)


class ConfigurationError(SpanLabelsError):
    """Raised when settings or policy values cannot be used."""

    def __init__(
        self,
        message: str,
        setting: str | None = None,
        **kwargs: Any,
    ):
        details = kwargs.pop("details", {})
        if setting:
            details["setting"] = setting
        super().__init__(message, details=details, **kwargs)
        self.setting = setting


class PolicyLoadError(ConfigurationError):
    """Raised when a policy file cannot be read or parsed."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        **kwargs: Any,
    ):
        details = kwargs.pop("details", {})
        if path:
            details["path"] = path
        super().__init__(message, details=details, **kwargs)
        self.path = path


class InputFormatError(SpanLabelsError):
    """Raised when a CLI input document does not have the expected shape."""

    def __init__(
        self,
        message: str,
        source: str | None = None,
        field: str | None = None,
        **kwargs: Any,
    ):
        details = kwargs.pop("details", {})
        if source:
            details["source"] = source
        if field:
            details["field"] = field
        super().__init__(message, details=details, **kwargs)
        self.source = source
        self.field = field


__all__ = [
    "SpanLabelsError",
    "ConfigurationError",
    "PolicyLoadError",
    "InputFormatError",
]

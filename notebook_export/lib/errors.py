"""Structured exception hierarchy for notebook exports.

Provides specific exception types for common failure modes,
with rich context for debugging and troubleshooting.

The export state store does not raise these: its load/save failures
degrade to an empty or still-dirty store instead.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

__all__ = [
    "ExportError",
    "ConfigurationError",
    "NotebookExportError",
]


class ExportError(Exception):
    """Base exception for all export errors.

    Provides structured error information for debugging.
    """

    def __init__(
        self,
        message: str,
        *,
        notebook_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        self.notebook_id = notebook_id
        self.details = details or {}
        self.suggestion = suggestion

        parts = [message]

        if notebook_id:
            parts.insert(0, f"[{notebook_id}]")

        if details:
            detail_lines = [f"  {k}: {v}" for k, v in details.items()]
            parts.append("\nDetails:")
            parts.extend(detail_lines)

        if suggestion:
            parts.append(f"\nSuggestion: {suggestion}")

        super().__init__("\n".join(parts) if len(parts) > 1 else message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "notebook_id": self.notebook_id,
            "details": self.details,
            "suggestion": self.suggestion,
        }


class ConfigurationError(ExportError):
    """Error in export run configuration.

    Raised when configuration is invalid or incomplete.
    """

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Any = None,
        **kwargs: Any,
    ) -> None:
        self.field = field
        self.value = value

        details = kwargs.pop("details", {})
        if field:
            details["field"] = field
        if value is not None:
            details["value"] = str(value)

        super().__init__(message, details=details, **kwargs)


class NotebookExportError(ExportError):
    """A single notebook failed to export.

    Raised when the export service reports errors for a notebook,
    or wraps the exception it raised.
    """

    def __init__(
        self,
        message: str,
        *,
        export_format: Optional[str] = None,
        cause: Optional[BaseException] = None,
        **kwargs: Any,
    ) -> None:
        self.export_format = export_format
        self.cause = cause

        details = kwargs.pop("details", {})
        if export_format:
            details["export_format"] = export_format
        if cause:
            details["cause"] = str(cause)
            details["cause_type"] = type(cause).__name__

        suggestion = kwargs.pop("suggestion", None)
        if not suggestion:
            suggestion = (
                "The notebook keeps its previous export timestamp and will be "
                "retried on the next run."
            )

        super().__init__(message, details=details, suggestion=suggestion, **kwargs)

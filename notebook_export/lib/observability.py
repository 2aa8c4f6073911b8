"""Logging utilities for export runs.

Plain standard-library logging. Records written while a notebook is being
exported carry ``notebook_id`` and ``export_format`` attributes (see
:func:`notebook_logger`), which the JSON formatter lifts into top-level
fields for log aggregation.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List, MutableMapping, Optional, Tuple

__all__ = [
    "CONTEXT_FIELDS",
    "JSONFormatter",
    "NotebookLogAdapter",
    "notebook_logger",
    "setup_logging",
]

CONTEXT_FIELDS = ("notebook_id", "export_format")


class JSONFormatter(logging.Formatter):
    """Render records as one JSON object per line.

    Example output:
        {"timestamp": "2025-01-15T10:30:00.123456Z", "level": "INFO",
         "logger": "notebook_export.lib.runner", "message": "[0-8F4B6A] Exported 4 pages (2 unchanged)",
         "notebook_id": "0-8F4B6A", "export_format": "md"}
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        payload: Dict[str, Any] = {
            "timestamp": created.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field_name in CONTEXT_FIELDS:
            value = getattr(record, field_name, None)
            if value is not None:
                payload[field_name] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


class NotebookLogAdapter(logging.LoggerAdapter):
    """Tags every record with the notebook being exported and its format."""

    def __init__(self, logger: logging.Logger, notebook_id: str, export_format: str):
        super().__init__(logger, {"notebook_id": notebook_id, "export_format": export_format})

    @property
    def notebook_id(self) -> str:
        return self.extra["notebook_id"]  # type: ignore[index]

    @property
    def export_format(self) -> str:
        return self.extra["export_format"]  # type: ignore[index]

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> Tuple[Any, MutableMapping[str, Any]]:
        # Notebook context overrides caller extras of the same name
        kwargs["extra"] = {**kwargs.get("extra", {}), **self.extra}  # type: ignore[dict-item]
        return f"[{self.notebook_id}] {msg}", kwargs


def notebook_logger(name: str, notebook_id: str, export_format: str) -> NotebookLogAdapter:
    """Return a logger for one notebook export.

    Example:
        log = notebook_logger(__name__, notebook.id, service.export_format_code)
        log.info("Exported %d pages", 12)
    """
    return NotebookLogAdapter(logging.getLogger(name), notebook_id, export_format)


def setup_logging(
    verbose: bool = False,
    json_format: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """Configure the root logger.

    Args:
        verbose: Enable debug-level logging
        json_format: Use JSON output format (for log aggregation)
        log_file: Optional file path to write logs to
    """
    level = logging.DEBUG if verbose else logging.INFO

    formatter: logging.Formatter
    if json_format:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

"""Incremental notebook exports.

Remembers, per notebook, when it was last exported so each run only
re-exports content changed since then.

Usage:
    python -m notebook_export run ./work_notebooks.yaml
    python -m notebook_export state show --root ./export
"""

from notebook_export.lib.runner import ExportRunResult, run_incremental_export
from notebook_export.lib.service import ExportService, Notebook, NotebookExportResult
from notebook_export.lib.state import ExportStateStore

__version__ = "1.0.0"

__all__ = [
    "ExportStateStore",
    "ExportService",
    "Notebook",
    "NotebookExportResult",
    "ExportRunResult",
    "run_incremental_export",
]

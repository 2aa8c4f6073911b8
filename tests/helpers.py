"""Export services used by the tests."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from notebook_export.lib.service import ExportService, Notebook, NotebookExportResult


class RecordingExportService(ExportService):
    """Export service that records every call and exports nothing.

    ``failures`` maps notebook ids to either an exception to raise or a list
    of error strings to report in the result.
    """

    def __init__(self, export_format: str = "md", failures: Optional[Dict[str, Any]] = None):
        self._format = export_format
        self.failures: Dict[str, Any] = dict(failures or {})
        self.calls: List[Dict[str, Any]] = []

    @property
    def export_format_code(self) -> str:
        return self._format

    def export_notebook(
        self,
        notebook: Notebook,
        section_name_filter: str = "",
        page_name_filter: str = "",
        modified_since: Optional[datetime] = None,
        export_root: Optional[str] = None,
        preserve_existing: bool = False,
    ) -> NotebookExportResult:
        self.calls.append(
            {
                "notebook_id": notebook.id,
                "section_name_filter": section_name_filter,
                "page_name_filter": page_name_filter,
                "modified_since": modified_since,
                "export_root": export_root,
                "preserve_existing": preserve_existing,
            }
        )

        failure = self.failures.get(notebook.id)
        if isinstance(failure, BaseException):
            raise failure
        if failure:
            return NotebookExportResult(notebook_id=notebook.id, errors=list(failure))

        return NotebookExportResult(
            notebook_id=notebook.id,
            pages_exported=0 if modified_since else 3,
            pages_skipped=3 if modified_since else 0,
            output_path=export_root,
        )

    def since_for(self, notebook_id: str) -> List[Optional[datetime]]:
        return [c["modified_since"] for c in self.calls if c["notebook_id"] == notebook_id]


class NotAService:
    """Importable class that is not an ExportService."""

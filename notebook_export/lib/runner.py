"""Incremental export runs.

One run exports a list of notebooks through an :class:`ExportService`,
asking only for content modified since each notebook's last successful
export, and persists the new timestamps once at the end.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from notebook_export.lib.errors import NotebookExportError
from notebook_export.lib.observability import notebook_logger
from notebook_export.lib.resilience import RetryConfig, retry_operation
from notebook_export.lib.service import ExportService, Notebook, NotebookExportResult
from notebook_export.lib.state import ExportStateStore, format_timestamp

logger = logging.getLogger(__name__)

__all__ = ["ExportRunResult", "run_incremental_export"]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ExportRunResult:
    """Summary of an incremental export run."""

    export_format: str
    results: Dict[str, NotebookExportResult] = field(default_factory=dict)
    exported: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)
    skipped: List[str] = field(default_factory=list)
    state_saved: bool = False
    elapsed_seconds: float = 0.0

    @property
    def success(self) -> bool:
        return not self.failed

    @property
    def pages_exported(self) -> int:
        return sum(r.pages_exported for r in self.results.values())

    def summary(self) -> Dict[str, Any]:
        return {
            "export_format": self.export_format,
            "success": self.success,
            "exported": len(self.exported),
            "failed": len(self.failed),
            "skipped": len(self.skipped),
            "pages_exported": self.pages_exported,
            "state_saved": self.state_saved,
            "elapsed_seconds": round(self.elapsed_seconds, 2),
        }


def run_incremental_export(
    service: ExportService,
    notebooks: Iterable[Notebook],
    export_root: Union[str, Path],
    *,
    state_dir: Optional[Union[str, Path]] = None,
    section_name_filter: str = "",
    page_name_filter: str = "",
    preserve_existing: bool = False,
    full_export: bool = False,
    retry_config: Optional[RetryConfig] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> ExportRunResult:
    """Export ``notebooks`` incrementally.

    Args:
        service: Export service producing the output format
        notebooks: Notebooks to export
        export_root: Directory the service exports into
        state_dir: Where the export state file lives (defaults to export_root)
        section_name_filter: Passed through to the service
        page_name_filter: Passed through to the service
        preserve_existing: Passed through to the service
        full_export: Ignore recorded timestamps and export everything
        retry_config: Retry behaviour for each service call (default: no retry)
        clock: Returns "now"; defaults to the current UTC time

    Returns:
        ExportRunResult. Failed notebooks keep their previous timestamp.
    """
    now = clock or _utc_now
    export_root = str(export_root)
    store = ExportStateStore.load(state_dir if state_dir is not None else export_root)
    run_result = ExportRunResult(export_format=service.export_format_code)
    start = time.time()

    logger.info(
        "Starting %s export of notebooks into %s%s",
        service.export_format_code,
        export_root,
        " (full export)" if full_export else "",
    )

    try:
        for notebook in notebooks:
            if not notebook.id or not notebook.id.strip():
                logger.warning("Skipping notebook %r without an id", notebook.title)
                run_result.skipped.append(notebook.title)
                continue

            run_log = notebook_logger(__name__, notebook.id, service.export_format_code)

            modified_since = None if full_export else store.get_last_export(notebook.id)
            if modified_since is not None:
                run_log.info(
                    "Exporting %s changes since %s",
                    notebook.title or notebook.id,
                    format_timestamp(modified_since),
                )
            else:
                run_log.info("Exporting %s in full", notebook.title or notebook.id)

            started_at = now()

            def export_one(
                nb: Notebook = notebook,
                since: Optional[datetime] = modified_since,
            ) -> NotebookExportResult:
                return service.export_notebook(
                    nb,
                    section_name_filter=section_name_filter,
                    page_name_filter=page_name_filter,
                    modified_since=since,
                    export_root=export_root,
                    preserve_existing=preserve_existing,
                )

            try:
                result = retry_operation(export_one, retry_config, f"Export of {notebook.id}")
            except Exception as exc:
                error = NotebookExportError(
                    "Export raised an exception",
                    notebook_id=notebook.id,
                    export_format=service.export_format_code,
                    cause=exc,
                )
                run_log.error("%s", error, exc_info=True)
                run_result.failed[notebook.id] = str(exc)
                continue

            run_result.results[notebook.id] = result
            if not result.success:
                run_log.error(
                    "Export finished with %d errors; keeping previous timestamp: %s",
                    len(result.errors),
                    "; ".join(result.errors),
                )
                run_result.failed[notebook.id] = "; ".join(result.errors)
                continue

            store.update_last_export(notebook.id, started_at)
            run_result.exported.append(notebook.id)
            run_log.info(
                "Exported %d pages (%d unchanged)",
                result.pages_exported,
                result.pages_skipped,
            )
    finally:
        run_result.state_saved = store.save()
        run_result.elapsed_seconds = time.time() - start

    logger.info(
        "Finished %s export: %d exported, %d failed, %d skipped in %.2fs",
        service.export_format_code,
        len(run_result.exported),
        len(run_result.failed),
        len(run_result.skipped),
        run_result.elapsed_seconds,
    )
    return run_result

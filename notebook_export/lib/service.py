"""Export service contract.

An export service turns one notebook into files under an export root
(Markdown, a Joplin raw directory, ...). The actual export mechanics live
outside this package; the runner only depends on the interface below.
"""

from __future__ import annotations

import importlib
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from notebook_export.lib.errors import ConfigurationError

logger = logging.getLogger(__name__)

__all__ = [
    "ExportService",
    "Notebook",
    "NotebookExportResult",
    "load_export_service",
]


@dataclass
class Notebook:
    """A notebook to export, identified by an opaque id."""

    id: str
    title: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Notebook":
        return cls(
            id=str(data.get("id", "")),
            title=str(data.get("title", "") or ""),
        )


@dataclass
class NotebookExportResult:
    """Outcome of exporting one notebook."""

    notebook_id: str
    pages_exported: int = 0
    pages_skipped: int = 0
    errors: List[str] = field(default_factory=list)
    output_path: Optional[str] = None

    @property
    def success(self) -> bool:
        return not self.errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "notebook_id": self.notebook_id,
            "pages_exported": self.pages_exported,
            "pages_skipped": self.pages_skipped,
            "errors": list(self.errors),
            "output_path": self.output_path,
            "success": self.success,
        }


class ExportService(ABC):
    """Exports notebooks in one output format."""

    @property
    @abstractmethod
    def export_format_code(self) -> str:
        """Short code of the output format, e.g. ``"md"``."""

    @abstractmethod
    def export_notebook(
        self,
        notebook: Notebook,
        section_name_filter: str = "",
        page_name_filter: str = "",
        modified_since: Optional[datetime] = None,
        export_root: Optional[str] = None,
        preserve_existing: bool = False,
    ) -> NotebookExportResult:
        """Export ``notebook``.

        Args:
            notebook: Notebook to export
            section_name_filter: Only export sections whose name matches
            page_name_filter: Only export pages whose name matches
            modified_since: Only export content modified after this instant;
                None exports everything
            export_root: Directory to export into
            preserve_existing: Keep files already present in the export root
                instead of recreating the notebook folder
        """


def load_export_service(target: str, options: Optional[Dict[str, Any]] = None) -> ExportService:
    """Instantiate an export service from a ``"package.module:ClassName"`` reference.

    Raises:
        ConfigurationError: If the reference cannot be imported or does not
            produce an ExportService
    """
    if not target or ":" not in target:
        raise ConfigurationError(
            "Export service must be given as 'package.module:ClassName'",
            field="service.class",
            value=target,
        )

    module_name, _, class_name = target.partition(":")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigurationError(
            f"Cannot import export service module '{module_name}'",
            field="service.class",
            value=target,
            details={"cause": str(exc)},
        ) from exc

    service_cls = getattr(module, class_name, None)
    if service_cls is None:
        raise ConfigurationError(
            f"Module '{module_name}' has no attribute '{class_name}'",
            field="service.class",
            value=target,
        )

    try:
        service = service_cls(**(options or {}))
    except TypeError as exc:
        raise ConfigurationError(
            f"Cannot create export service '{target}' with the given options",
            field="service.options",
            value=options,
            details={"cause": str(exc)},
        ) from exc

    if not isinstance(service, ExportService):
        raise ConfigurationError(
            f"'{target}' is not an ExportService",
            field="service.class",
            value=target,
        )

    logger.debug("Loaded export service %s (format %s)", target, service.export_format_code)
    return service

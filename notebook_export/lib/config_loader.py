"""YAML configuration for export runs.

Example YAML (work_notebooks.yaml):
    export_root: "${NOTEBOOK_EXPORT_ROOT}"
    service:
      class: mypkg.exporters:MarkdownExportService
      options:
        embed_images: true
    filters:
      section: ""
      page: ""
    preserve_existing: false
    retry:
      max_attempts: 3
      backoff_seconds: 2.0
    notebooks:
      - id: "0-8F4B6A"
        title: Work

Usage:
    # Command line
    notebook-export run ./work_notebooks.yaml

    # Python API
    from notebook_export.lib.config_loader import load_run_config
    config = load_run_config("./work_notebooks.yaml")
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from notebook_export.lib.env import expand_config, unresolved_variables
from notebook_export.lib.errors import ConfigurationError
from notebook_export.lib.resilience import RetryConfig
from notebook_export.lib.service import Notebook

logger = logging.getLogger(__name__)

__all__ = [
    "ExportRunConfig",
    "load_run_config",
    "parse_run_config",
    "validate_run_config",
]


@dataclass
class ExportRunConfig:
    """Everything needed to run an incremental export."""

    export_root: str
    service_class: str
    notebooks: List[Notebook]
    service_options: Dict[str, Any] = field(default_factory=dict)
    state_dir: Optional[str] = None
    section_name_filter: str = ""
    page_name_filter: str = ""
    preserve_existing: bool = False
    full_export: bool = False
    retry: RetryConfig = field(default_factory=RetryConfig.none)

    @property
    def resolved_state_dir(self) -> str:
        return self.state_dir or self.export_root


def _resolve_path(path: str, config_dir: Path) -> str:
    """Resolve "./" and "../" paths against the config file directory."""
    if not path or os.path.isabs(path):
        return path
    if path.startswith(("./", "../", ".\\", "..\\")):
        return str(config_dir / path)
    return path


def validate_run_config(data: Any) -> List[str]:
    """Return a list of problems with a parsed YAML document (empty if valid)."""
    if not isinstance(data, dict):
        return ["Config must be a YAML mapping"]

    issues: List[str] = []

    export_root = data.get("export_root")
    if not isinstance(export_root, str) or not export_root.strip():
        issues.append("export_root is required")

    service = data.get("service")
    if not isinstance(service, dict) or not service.get("class"):
        issues.append("service.class is required")
    elif not isinstance(service.get("options", {}) or {}, dict):
        issues.append("service.options must be a mapping")

    notebooks = data.get("notebooks")
    if not isinstance(notebooks, list) or not notebooks:
        issues.append("notebooks must be a non-empty list")
    else:
        for index, entry in enumerate(notebooks):
            if not isinstance(entry, dict):
                issues.append(f"notebooks[{index}] must be a mapping with an id")
            elif not str(entry.get("id", "") or "").strip():
                issues.append(f"notebooks[{index}].id is required")

    filters = data.get("filters", {}) or {}
    if not isinstance(filters, dict):
        issues.append("filters must be a mapping")

    retry = data.get("retry", {}) or {}
    if not isinstance(retry, dict):
        issues.append("retry must be a mapping")
    else:
        attempts = retry.get("max_attempts", 1)
        if not isinstance(attempts, int) or isinstance(attempts, bool) or attempts < 1:
            issues.append("retry.max_attempts must be a positive integer")
        backoff = retry.get("backoff_seconds", 1.0)
        if not isinstance(backoff, (int, float)) or isinstance(backoff, bool) or backoff < 0:
            issues.append("retry.backoff_seconds must be a non-negative number")

    return issues


def parse_run_config(
    data: Dict[str, Any],
    config_dir: Optional[Path] = None,
) -> ExportRunConfig:
    """Build an ExportRunConfig from a parsed YAML document.

    Raises:
        ConfigurationError: If the configuration is invalid
    """
    config_dir = config_dir or Path.cwd()

    if isinstance(data, dict):
        data = expand_config(data)

    issues = validate_run_config(data)
    if not issues:
        for name in unresolved_variables(data["export_root"]):
            issues.append(f"export_root references unset variable '{name}'")
    if issues:
        raise ConfigurationError(
            "Invalid export configuration",
            details={f"issue_{i + 1}": issue for i, issue in enumerate(issues)},
        )

    service = data["service"]
    filters = data.get("filters", {}) or {}
    retry = data.get("retry", {}) or {}

    state_dir = data.get("state_dir")
    return ExportRunConfig(
        export_root=_resolve_path(data["export_root"], config_dir),
        service_class=service["class"],
        service_options=dict(service.get("options", {}) or {}),
        notebooks=[Notebook.from_dict(entry) for entry in data["notebooks"]],
        state_dir=_resolve_path(state_dir, config_dir) if state_dir else None,
        section_name_filter=str(filters.get("section", "") or ""),
        page_name_filter=str(filters.get("page", "") or ""),
        preserve_existing=bool(data.get("preserve_existing", False)),
        full_export=bool(data.get("full_export", False)),
        retry=RetryConfig(
            max_attempts=retry.get("max_attempts", 1),
            backoff_seconds=float(retry.get("backoff_seconds", 1.0)),
        ),
    )


def load_run_config(path: Union[str, Path]) -> ExportRunConfig:
    """Load an export run configuration from a YAML file.

    Raises:
        ConfigurationError: If the file is missing, not valid YAML or invalid
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(
            f"Config file not found: {path}",
            suggestion="Check the path passed to 'notebook-export run'.",
        )

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError(
            f"Cannot read config file: {path}",
            details={"cause": str(exc)},
        ) from exc

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigurationError(
            f"Invalid YAML in {path}",
            details={"cause": str(exc)},
        ) from exc

    logger.debug("Loaded export config from %s", path)
    return parse_run_config(data, config_dir=path.parent.resolve())

"""Export library modules.

Core state tracking for incremental notebook exports, plus the export
service contract, the run loop and the supporting configuration,
logging and retry helpers.
"""

from notebook_export.lib.config_loader import (
    ExportRunConfig,
    load_run_config,
    parse_run_config,
    validate_run_config,
)
from notebook_export.lib.env import (
    expand_config,
    expand_env_vars,
    get_export_root,
    load_env_file,
    unresolved_variables,
)
from notebook_export.lib.errors import ConfigurationError, ExportError, NotebookExportError
from notebook_export.lib.observability import (
    JSONFormatter,
    NotebookLogAdapter,
    notebook_logger,
    setup_logging,
)
from notebook_export.lib.resilience import RetryConfig, retry_operation
from notebook_export.lib.runner import ExportRunResult, run_incremental_export
from notebook_export.lib.service import (
    ExportService,
    Notebook,
    NotebookExportResult,
    load_export_service,
)
from notebook_export.lib.state import (
    STATE_FILE_NAME,
    ExportStateStore,
    format_timestamp,
    parse_timestamp,
)

__all__ = [
    # State
    "ExportStateStore",
    "STATE_FILE_NAME",
    "format_timestamp",
    "parse_timestamp",
    # Service contract
    "ExportService",
    "Notebook",
    "NotebookExportResult",
    "load_export_service",
    # Runs
    "ExportRunResult",
    "run_incremental_export",
    # Configuration
    "ExportRunConfig",
    "load_run_config",
    "parse_run_config",
    "validate_run_config",
    "expand_config",
    "expand_env_vars",
    "get_export_root",
    "load_env_file",
    "unresolved_variables",
    # Errors
    "ExportError",
    "ConfigurationError",
    "NotebookExportError",
    # Logging
    "JSONFormatter",
    "NotebookLogAdapter",
    "notebook_logger",
    "setup_logging",
    # Retry
    "RetryConfig",
    "retry_operation",
]

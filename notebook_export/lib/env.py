"""Environment helpers for export runs.

Loads .env files (python-dotenv), expands ``${VAR}`` / ``$VAR`` references
in run configuration values and resolves the default export root.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any, List, Optional, Union

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

__all__ = [
    "EXPORT_ROOT_ENV",
    "expand_config",
    "expand_env_vars",
    "get_export_root",
    "load_env_file",
    "unresolved_variables",
]

EXPORT_ROOT_ENV = "NOTEBOOK_EXPORT_ROOT"

_VARIABLE_PATTERN = re.compile(r"\$\{([^}]+)\}|\$([A-Za-z_][A-Za-z0-9_]*)")


def load_env_file(path: Union[str, Path] = ".env", *, override: bool = False) -> bool:
    """Load ``path`` into the environment if it exists.

    Variables already set win unless ``override`` is given.
    """
    env_path = Path(path)
    if not env_path.is_file():
        return False

    loaded = load_dotenv(dotenv_path=env_path, override=override)
    if loaded:
        logger.debug("Loaded environment from %s", env_path)
    return loaded


def expand_env_vars(value: str) -> str:
    """Expand ``${VAR}`` and ``$VAR``; unset variables are left as written."""
    return os.path.expandvars(value)


def expand_config(value: Any) -> Any:
    """Expand variables in every string of a parsed YAML document."""
    if isinstance(value, str):
        return expand_env_vars(value)
    if isinstance(value, dict):
        return {key: expand_config(item) for key, item in value.items()}
    if isinstance(value, list):
        return [expand_config(item) for item in value]
    return value


def unresolved_variables(value: str) -> List[str]:
    """Names of variables still referenced in ``value`` after expansion."""
    return [braced or bare for braced, bare in _VARIABLE_PATTERN.findall(value)]


def get_export_root(explicit: Optional[str] = None) -> Optional[str]:
    """Return the export root: ``explicit`` if given, else $NOTEBOOK_EXPORT_ROOT."""
    if explicit and explicit.strip():
        return explicit
    value = os.environ.get(EXPORT_ROOT_ENV, "")
    return value if value.strip() else None

"""Pytest configuration and fixtures."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

import pytest

from notebook_export.lib.state import STATE_FILE_NAME
from tests.helpers import RecordingExportService


@pytest.fixture
def export_root(tmp_path: Path) -> Path:
    """An empty export root directory."""
    root = tmp_path / "export"
    root.mkdir()
    return root


@pytest.fixture
def write_state(export_root: Path) -> Callable[[Any], Path]:
    """Write raw content (str or JSON-serializable object) to the state file."""

    def _write(content: Any) -> Path:
        path = export_root / STATE_FILE_NAME
        if isinstance(content, str):
            path.write_text(content, encoding="utf-8")
        else:
            path.write_text(json.dumps(content), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def read_state(export_root: Path) -> Callable[[], Any]:
    """Read and parse the state file."""

    def _read() -> Any:
        return json.loads((export_root / STATE_FILE_NAME).read_text(encoding="utf-8"))

    return _read


@pytest.fixture
def service() -> RecordingExportService:
    return RecordingExportService()


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Clock that always returns 2024-03-01T12:00:00Z."""
    instant = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
    return lambda: instant

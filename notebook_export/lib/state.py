"""Persisted export state for incremental notebook exports.

Tracks, per notebook id, when the notebook was last exported successfully so a
run can ask the export service for content modified since that instant. State
lives in a single JSON file inside the export root:

    <export_root>/.export-state.json
    {
      "0-8F4B6A...": "2024-01-01T00:00:00Z",
      "0-1C2D3E...": "2024-02-15T09:30:12.250000Z"
    }

Loading and saving never raise for environmental problems (missing file,
unreadable file, malformed JSON, bad entries). Those are logged and the store
degrades to "never exported", which forces a full re-export rather than
silently skipping content.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

logger = logging.getLogger(__name__)

__all__ = ["ExportStateStore", "STATE_FILE_NAME", "format_timestamp", "parse_timestamp"]

STATE_FILE_NAME = ".export-state.json"

# Seconds fraction of any length; older fromisoformat only takes 3 or 6 digits.
_FRACTION_PATTERN = re.compile(r"(\d{2}:\d{2}:\d{2})[.,](\d+)")


def parse_timestamp(raw_value: Any) -> Optional[datetime]:
    """Parse an offset-qualified ISO 8601 string into an aware UTC datetime.

    Returns None for anything that does not pin down an absolute instant:
    non-strings, blank strings, naive date-times and date-only values.
    """
    if not isinstance(raw_value, str) or not raw_value.strip():
        return None

    text = raw_value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION_PATTERN.sub(_six_digit_fraction, text, count=1)

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None or parsed.utcoffset() is None:
        return None

    try:
        return parsed.astimezone(timezone.utc)
    except (ValueError, OverflowError):
        # Offset pushes the instant past datetime.min or datetime.max
        return None


def _six_digit_fraction(match: re.Match[str]) -> str:
    # Round-trip "o" values carry 7 digits (100ns ticks); keep microseconds.
    return f"{match.group(1)}.{match.group(2)[:6].ljust(6, '0')}"


def format_timestamp(value: datetime) -> str:
    """Render an instant as UTC round-trip ISO 8601 with a ``Z`` designator."""
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _to_utc(value: datetime) -> datetime:
    # Naive values are local time, matching datetime.astimezone().
    return value.astimezone(timezone.utc)


def _is_blank(notebook_id: Optional[str]) -> bool:
    return not isinstance(notebook_id, str) or not notebook_id.strip()


class ExportStateStore:
    """Last-export timestamps for a set of notebooks, backed by one JSON file.

    Create instances with :meth:`load`. The store owns its mapping; callers
    read and update it only through the methods below, so dirty tracking and
    UTC normalization are never bypassed.

    Example:
        >>> store = ExportStateStore.load("./export")
        >>> since = store.get_last_export(notebook.id)
        >>> ...  # export content modified after `since`
        >>> store.update_last_export(notebook.id, datetime.now(timezone.utc))
        >>> store.save()
    """

    def __init__(self, path: Path, entries: Optional[Dict[str, datetime]] = None) -> None:
        self._path = path
        self._entries: Dict[str, datetime] = dict(entries or {})
        self._dirty = False

    @classmethod
    def load(cls, base_dir: Union[str, Path]) -> "ExportStateStore":
        """Load export state from ``base_dir``.

        Args:
            base_dir: Directory holding the state file (usually the export root)

        Returns:
            A clean store. It is empty when the file is missing, blank or unreadable.

        Raises:
            ValueError: If ``base_dir`` is None, empty or whitespace-only
        """
        if base_dir is None or not str(base_dir).strip():
            raise ValueError("Base directory cannot be null or empty.")

        path = Path(base_dir) / STATE_FILE_NAME

        try:
            if not path.exists():
                logger.debug("No export state found at %s", path)
                return cls(path)
            content = path.read_text(encoding="utf-8")
            if not content.strip():
                return cls(path)
            raw_entries = json.loads(content)
        except (OSError, ValueError) as exc:
            logger.warning(
                "Unable to load export state from %s. Continuing without persisted state: %s",
                path,
                exc,
            )
            return cls(path)

        if not isinstance(raw_entries, dict):
            logger.warning(
                "Unable to load export state from %s: expected a JSON object, got %s. "
                "Continuing without persisted state.",
                path,
                type(raw_entries).__name__,
            )
            return cls(path)

        entries: Dict[str, datetime] = {}
        for notebook_id, raw_value in raw_entries.items():
            parsed = parse_timestamp(raw_value)
            if parsed is None or _is_blank(notebook_id):
                logger.debug("Dropping invalid export state entry %r: %r", notebook_id, raw_value)
                continue
            entries[notebook_id] = parsed

        logger.debug("Loaded export state for %d notebooks from %s", len(entries), path)
        return cls(path, entries)

    @property
    def path(self) -> Path:
        """Location of the state file."""
        return self._path

    @property
    def dirty(self) -> bool:
        """True when there are changes not yet written by :meth:`save`."""
        return self._dirty

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, notebook_id: object) -> bool:
        return notebook_id in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def get_last_export(self, notebook_id: Optional[str]) -> Optional[datetime]:
        """Return when ``notebook_id`` was last exported, or None."""
        if _is_blank(notebook_id):
            return None
        return self._entries.get(notebook_id)  # type: ignore[arg-type]

    def update_last_export(self, notebook_id: Optional[str], timestamp: datetime) -> None:
        """Record a successful export of ``notebook_id`` at ``timestamp``.

        Naive timestamps are taken as local time. Blank ids are ignored, and
        so are instants that cannot be represented in UTC.
        """
        if _is_blank(notebook_id):
            return

        try:
            value = _to_utc(timestamp)
        except (ValueError, OverflowError) as exc:
            logger.warning(
                "Ignoring export time %r for notebook %s: %s", timestamp, notebook_id, exc
            )
            return

        self._entries[notebook_id] = value  # type: ignore[index]
        self._dirty = True

    def remove_last_export(self, notebook_id: Optional[str]) -> bool:
        """Forget ``notebook_id`` so its next export is a full one."""
        if _is_blank(notebook_id) or notebook_id not in self._entries:
            return False

        del self._entries[notebook_id]  # type: ignore[arg-type]
        self._dirty = True
        return True

    def clear(self) -> int:
        """Forget every notebook. Returns how many entries were removed."""
        count = len(self._entries)
        if count:
            self._entries.clear()
            self._dirty = True
        return count

    def get_export_age(
        self,
        notebook_id: Optional[str],
        now: Optional[datetime] = None,
    ) -> Optional[timedelta]:
        """Return how long ago ``notebook_id`` was last exported."""
        last = self.get_last_export(notebook_id)
        if last is None:
            return None
        current = _to_utc(now) if now is not None else datetime.now(timezone.utc)
        return current - last

    def snapshot(self) -> Dict[str, datetime]:
        """Return a copy of the tracked timestamps."""
        return dict(self._entries)

    def to_dict(self) -> Dict[str, str]:
        """Serializable form, as written to the state file."""
        return {
            notebook_id: format_timestamp(value)
            for notebook_id, value in self._entries.items()
        }

    def save(self) -> bool:
        """Write pending changes to the state file.

        Returns:
            True if the file was written, False if there was nothing to write
            or the write failed (the store stays dirty so a later call retries).
        """
        if not self._dirty:
            return False

        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            payload = json.dumps(self.to_dict(), indent=2)
            self._path.write_text(payload, encoding="utf-8")
        except OSError as exc:
            logger.warning("Unable to persist export state to %s: %s", self._path, exc)
            return False

        self._dirty = False
        logger.info("Saved export state for %d notebooks to %s", len(self._entries), self._path)
        return True

    def __repr__(self) -> str:
        return (
            f"ExportStateStore(path={str(self._path)!r}, "
            f"entries={len(self._entries)}, dirty={self._dirty})"
        )

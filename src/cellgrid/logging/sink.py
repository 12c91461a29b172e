"""Event sinks: an NDJSON file log and an in-memory list.

File writes use ``json.dumps(sort_keys=True)`` for deterministic output,
one JSON object per line, appended to ``<log_dir>/events.ndjson``.

Concurrency safety:

- Each append acquires an exclusive ``fcntl.flock`` on the target file.
- Reads acquire a shared lock.
- On platforms without ``fcntl`` (Windows), locking is skipped.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from cellgrid.logging.events import GridEvent

try:
    import fcntl

    _HAS_FCNTL = True
except ImportError:
    _HAS_FCNTL = False

_LOG_NAME = "events.ndjson"


class EventSink:
    """Append-only NDJSON log writer with file locking."""

    def __init__(self, log_dir: Path | str, *, fsync: bool = False) -> None:
        self.log_dir = Path(log_dir)
        self._fsync = fsync
        self.log_dir.mkdir(parents=True, exist_ok=True)

    @property
    def path(self) -> Path:
        return self.log_dir / _LOG_NAME

    def write(self, event: GridEvent) -> None:
        """Append *event* to the log."""
        line = json.dumps(event.model_dump(mode="json"), sort_keys=True, default=str) + "\n"
        self._append(self.path, line)

    def read_events(
        self,
        *,
        level: str | None = None,
        event_type: str | None = None,
        limit: int = 200,
    ) -> list[dict[str, Any]]:
        """Read events most-recent-first, with optional filters."""
        events = self._read_ndjson(self.path)
        if level:
            events = [e for e in events if e.get("level") == level]
        if event_type:
            events = [e for e in events if e.get("event_type") == event_type]
        events.reverse()
        return events[:limit]

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _append(self, path: Path, line: str) -> None:
        with open(path, "a", encoding="utf-8") as fh:
            if _HAS_FCNTL:
                fcntl.flock(fh.fileno(), fcntl.LOCK_EX)
            try:
                fh.write(line)
                fh.flush()
                if self._fsync:
                    os.fsync(fh.fileno())
            finally:
                if _HAS_FCNTL:
                    fcntl.flock(fh.fileno(), fcntl.LOCK_UN)

    @staticmethod
    def _read_ndjson(path: Path) -> list[dict[str, Any]]:
        if not path.exists():
            return []
        with open(path, encoding="utf-8") as fh:
            if _HAS_FCNTL:
                fcntl.flock(fh.fileno(), fcntl.LOCK_SH)
            try:
                text = fh.read()
            finally:
                if _HAS_FCNTL:
                    fcntl.flock(fh.fileno(), fcntl.LOCK_UN)
        events: list[dict[str, Any]] = []
        for line in text.splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                events.append(json.loads(line))
            except json.JSONDecodeError:
                continue
        return events


class MemorySink:
    """Collects events in a list; handy for tests and embedding."""

    def __init__(self) -> None:
        self.events: list[GridEvent] = []

    def write(self, event: GridEvent) -> None:
        self.events.append(event)

    def of_type(self, event_type: str) -> list[GridEvent]:
        return [e for e in self.events if e.event_type == event_type]

    def clear(self) -> None:
        self.events.clear()

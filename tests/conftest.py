"""Shared fixtures for the cellgrid test suite."""

from __future__ import annotations

import pytest

from cellgrid.engine import SpreadsheetEngine
from cellgrid.logging.events import configure_sink
from cellgrid.logging.sink import MemorySink


@pytest.fixture(autouse=True)
def events() -> MemorySink:
    """Capture emitted events; restores the previous sink afterwards."""
    sink = MemorySink()
    previous = configure_sink(sink)
    yield sink
    configure_sink(previous)


@pytest.fixture
def engine() -> SpreadsheetEngine:
    return SpreadsheetEngine(rows=10, cols=10)

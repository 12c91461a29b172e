"""Focus, anchor and rectangular selection over a :class:`GridStore`."""

from __future__ import annotations

import logging
from enum import Enum
from typing import NamedTuple

from cellgrid.addressing import normalize_id, parse_id, to_id
from cellgrid.errors import InvalidAddress
from cellgrid.grid import GridStore

log = logging.getLogger(__name__)


class Direction(str, Enum):
    up = "up"
    down = "down"
    left = "left"
    right = "right"


_STEPS: dict[Direction, tuple[int, int]] = {
    Direction.up: (0, -1),
    Direction.down: (0, 1),
    Direction.left: (-1, 0),
    Direction.right: (1, 0),
}


class DragFill(NamedTuple):
    """Result of a finished drag: copy ``source``'s value into ``targets``."""

    source: str
    targets: list[str]


class SelectionModel:
    """Tracks the focus cell, the anchor and the selected identifiers.

    The anchor is the fixed corner used when a selection is extended with
    the keyboard; drag state is kept separately so a drag never moves it.
    """

    def __init__(self, grid: GridStore) -> None:
        self._grid = grid
        self.focus: str | None = None
        self.anchor: str | None = None
        self.cells: list[str] = []
        self._drag_start: str | None = None

    # ------------------------------------------------------------------
    # Ranges
    # ------------------------------------------------------------------

    def range_between(self, start: str, end: str) -> list[str]:
        """Row-major rectangle between two corners, clipped to the grid.

        Malformed identifiers give an empty list.
        """
        try:
            c0, r0 = parse_id(start)
            c1, r1 = parse_id(end)
        except InvalidAddress as exc:
            log.debug("range_between(%r, %r) rejected: %s", start, end, exc)
            return []
        max_row, max_col = self._grid.bounds
        r_lo, r_hi = min(r0, r1), min(max(r0, r1), max_row)
        c_lo, c_hi = min(c0, c1), min(max(c0, c1), max_col)
        return [
            to_id(c, r)
            for r in range(r_lo, r_hi + 1)
            for c in range(c_lo, c_hi + 1)
        ]

    # ------------------------------------------------------------------
    # Pointer / keyboard
    # ------------------------------------------------------------------

    def select_cell(self, cell_id: str) -> list[str]:
        """Focus a single cell and make it the anchor (a click)."""
        key = normalize_id(cell_id)
        if not self._grid.contains(key):
            return list(self.cells)
        self.focus = key
        self.anchor = key
        self.cells = [key]
        return list(self.cells)

    def select_range(self, start: str, end: str) -> list[str]:
        """Select the rectangle from *start* (anchor) to *end* (focus)."""
        cells = self.range_between(start, end)
        if not cells:
            return list(self.cells)
        self.anchor = normalize_id(start)
        self.focus = normalize_id(end)
        if not self._grid.contains(self.focus):
            self.focus = cells[-1]
        self.cells = cells
        return list(self.cells)

    def move_focus(
        self, direction: Direction | str, extend: bool = False
    ) -> tuple[str | None, list[str]]:
        """Move the focus one step, clamped at the grid edges.

        With *extend* the selection becomes the rectangle from the anchor
        to the new focus; otherwise it collapses to the new focus.
        """
        if self.focus is None:
            return None, list(self.cells)
        direction = Direction(direction)
        col, row = parse_id(self.focus)
        dc, dr = _STEPS[direction]
        max_row, max_col = self._grid.bounds
        new_col = min(max(col + dc, 1), max_col)
        new_row = min(max(row + dr, 1), max_row)
        new_focus = to_id(new_col, new_row)

        if extend:
            anchor = self.anchor or self.focus
            self.anchor = anchor
            self.cells = self.range_between(anchor, new_focus)
        else:
            self.anchor = new_focus
            self.cells = [new_focus]
        self.focus = new_focus
        return new_focus, list(self.cells)

    # ------------------------------------------------------------------
    # Drag fill
    # ------------------------------------------------------------------

    @property
    def dragging(self) -> bool:
        return self._drag_start is not None

    def start_drag(self, cell_id: str) -> None:
        key = normalize_id(cell_id)
        if not self._grid.contains(key):
            return
        self._drag_start = key
        self.cells = [key]

    def update_drag(self, cell_id: str) -> list[str]:
        """Recompute the selection from the drag start to *cell_id*."""
        if self._drag_start is None:
            return list(self.cells)
        cells = self.range_between(self._drag_start, cell_id)
        if cells:
            self.cells = cells
        return list(self.cells)

    def end_drag(self) -> DragFill | None:
        """Finish the drag, returning what should be filled (or None)."""
        source = self._drag_start
        self._drag_start = None
        if source is None or not self.cells:
            return None
        return DragFill(source=source, targets=list(self.cells))

    def cancel_drag(self) -> None:
        self._drag_start = None

    # ------------------------------------------------------------------
    # Bounds maintenance
    # ------------------------------------------------------------------

    def clamp_to_bounds(self) -> None:
        """Drop selection state that fell outside the grid after a resize."""
        self.cells = [c for c in self.cells if self._grid.contains(c)]
        if self.focus is not None and not self._grid.contains(self.focus):
            self.focus = None
        if self.anchor is not None and not self._grid.contains(self.anchor):
            self.anchor = self.focus
        if self._drag_start is not None and not self._grid.contains(self._drag_start):
            self._drag_start = None

    def clear(self) -> None:
        self.focus = None
        self.anchor = None
        self.cells = []
        self._drag_start = None

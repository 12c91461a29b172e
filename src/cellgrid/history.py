"""Undo/redo stacks of full grid snapshots."""

from __future__ import annotations

from cellgrid.grid import GridSnapshot, GridStore


class HistoryManager:
    """Two explicit stacks of :class:`GridSnapshot` values.

    Every mutating operation calls :meth:`snapshot` before applying its
    change.  A new snapshot invalidates forward history.

    Parameters
    ----------
    max_depth : int | None
        Maximum number of undo entries kept; the oldest are dropped first.
        ``None`` means unbounded.
    """

    def __init__(self, max_depth: int | None = None) -> None:
        if max_depth is not None and max_depth < 1:
            raise ValueError("max_depth must be >= 1 or None")
        self.max_depth = max_depth
        self._undo: list[GridSnapshot] = []
        self._redo: list[GridSnapshot] = []

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    def snapshot(self, grid: GridStore) -> GridSnapshot:
        """Record the current grid state and clear the redo stack."""
        snap = grid.snapshot()
        self._undo.append(snap)
        if self.max_depth is not None and len(self._undo) > self.max_depth:
            del self._undo[: len(self._undo) - self.max_depth]
        self._redo.clear()
        return snap

    def undo(self, grid: GridStore) -> GridSnapshot | None:
        """Return the state to restore, or None when there is nothing to undo."""
        if not self._undo:
            return None
        self._redo.append(grid.snapshot())
        return self._undo.pop()

    def redo(self, grid: GridStore) -> GridSnapshot | None:
        """Return the state to restore, or None when there is nothing to redo."""
        if not self._redo:
            return None
        self._undo.append(grid.snapshot())
        return self._redo.pop()

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()

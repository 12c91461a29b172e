"""The spreadsheet engine: the API a presentation layer drives.

:class:`SpreadsheetEngine` owns one grid, its selection, its history and
the style applicator.  Each public method handles one user intent, runs to
completion, and notifies subscribers when the grid or selection changed.
The engine is single-threaded; callers sharing it must serialize access.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Mapping

from cellgrid.addressing import col_to_letters, normalize_id, parse_id, to_id
from cellgrid.config import EngineConfig, build_config
from cellgrid.formulas import evaluate
from cellgrid.grid import Alignment, Cell, CellValue, GridSnapshot, GridStore, StylePatch
from cellgrid.history import HistoryManager
from cellgrid.logging.events import (
    EventType,
    configure_sink,
    emit_error,
    emit_info,
    emit_warning,
)
from cellgrid.logging.sink import EventSink
from cellgrid.selection import Direction, DragFill, SelectionModel
from cellgrid.styles import StyleApplicator

log = logging.getLogger(__name__)

Observer = Callable[[str, dict[str, Any]], None]


class SpreadsheetEngine:
    """In-memory engine wrapping a single grid.

    Parameters
    ----------
    rows, cols : int | None
        Initial bounds; default to the config values.
    config : EngineConfig | None
        Engine settings.  Defaults to :data:`cellgrid.config.DEFAULT_CONFIG`.
    """

    def __init__(
        self,
        rows: int | None = None,
        cols: int | None = None,
        config: EngineConfig | None = None,
    ) -> None:
        self.config = config or EngineConfig()
        default_cell = Cell(
            font_size=self.config.font_size,
            font_color=self.config.font_color,
            alignment=self.config.alignment,
        )
        self.grid = GridStore(
            self.config.rows if rows is None else rows,
            self.config.cols if cols is None else cols,
            default_cell=default_cell,
            max_cols=self.config.max_cols,
        )
        self.selection = SelectionModel(self.grid)
        self.history = HistoryManager(max_depth=self.config.history_max_depth)
        self.styles = StyleApplicator(
            self.grid,
            self.history,
            font_size=self.config.font_size,
            font_color=self.config.font_color,
            alignment=self.config.alignment,
            step=self.config.font_size_step,
            min_font_size=self.config.min_font_size,
        )
        self._observers: list[Observer] = []

    @classmethod
    def from_config(cls, path: Path | str | None = None, **overrides: Any) -> "SpreadsheetEngine":
        """Build an engine from ``cellgrid.yaml`` and install its event sink."""
        config = build_config(path, **overrides)
        if config.log_dir:
            configure_sink(EventSink(config.log_dir, fsync=config.log_fsync))
        return cls(config=config)

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, callback: Observer) -> None:
        """Call ``callback(kind, payload)`` after every change."""
        if callback not in self._observers:
            self._observers.append(callback)

    def unsubscribe(self, callback: Observer) -> None:
        if callback in self._observers:
            self._observers.remove(callback)

    def _notify(self, kind: str, **payload: Any) -> None:
        for callback in list(self._observers):
            try:
                callback(kind, payload)
            except Exception as exc:
                log.debug("observer %r failed", callback, exc_info=True)
                emit_error(
                    EventType.observer_failed,
                    f"observer failed on {kind}: {exc}",
                    {"kind": kind},
                    error_code=type(exc).__name__,
                )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def bounds(self) -> tuple[int, int]:
        return self.grid.bounds

    @property
    def focus(self) -> str | None:
        return self.selection.focus

    @property
    def selected(self) -> list[str]:
        return list(self.selection.cells)

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    def get_cell(self, cell_id: str) -> Cell:
        return self.grid.get(cell_id)

    def rows(self) -> list[list[tuple[str, Cell]]]:
        """The grid row by row, each row a list of ``(id, cell)`` pairs."""
        max_row, max_col = self.grid.bounds
        out: list[list[tuple[str, Cell]]] = []
        for r in range(1, max_row + 1):
            row = []
            for c in range(1, max_col + 1):
                cell_id = to_id(c, r)
                row.append((cell_id, self.grid.get(cell_id)))
            out.append(row)
        return out

    def to_dict(self) -> dict[str, Any]:
        """Plain-data view of the engine state for a presentation layer."""
        return {
            "max_row": self.grid.max_row,
            "max_col": self.grid.max_col,
            "focus": self.selection.focus,
            "anchor": self.selection.anchor,
            "selection": list(self.selection.cells),
            "can_undo": self.history.can_undo,
            "can_redo": self.history.can_redo,
            "current_style": self.styles.current.model_dump(mode="json"),
            "cells": {
                cell_id: self.grid.get(cell_id).model_dump(mode="json")
                for cell_id in self.grid.ids()
            },
        }

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    def set_cell_value(self, cell_id: str, text: CellValue) -> Cell | None:
        """Store raw *text* in a cell (an edit; goes through history).

        Returns the updated cell, or None when *cell_id* is outside the grid.
        """
        key = normalize_id(cell_id)
        if not self.grid.contains(key):
            return None
        self.history.snapshot(self.grid)
        cell = self.grid.set_value(key, text)
        emit_info(EventType.cell_edit, f"edit {key}", {"cell_id": key, "value": text})
        self._notify("cell", cell_id=key)
        return cell

    def commit_cell(self, cell_id: str) -> CellValue:
        """Evaluate the cell's formula and store the result in its value.

        Non-formula content, and formulas that fall back to their own
        text, are returned unchanged and not rewritten.  A rewrite goes
        through history, so undo brings the formula text back.
        """
        key = normalize_id(cell_id)
        raw = self.grid.get(key).value
        if not isinstance(raw, str) or not raw.startswith("="):
            return raw
        result = evaluate(raw, self.grid, cell_id=key)
        if result != raw and self.grid.contains(key):
            self.history.snapshot(self.grid)
            self.grid.set_value(key, result)
            self._notify("cell", cell_id=key)
        return result

    evaluate_cell = commit_cell

    def evaluate(self, formula: str) -> CellValue:
        """Evaluate *formula* against the grid without storing it."""
        return evaluate(formula, self.grid)

    def insert_formula(self, name: str, cell_id: str | None = None) -> Cell | None:
        """Write the template ``=NAME(<col>1,)`` into the focused cell."""
        target = cell_id or self.selection.focus
        if target is None:
            return None
        col, _ = parse_id(target)
        return self.set_cell_value(target, f"={name.upper()}({col_to_letters(col)}1,)")

    # ------------------------------------------------------------------
    # Styles
    # ------------------------------------------------------------------

    def _targets(self, selection: list[str] | None) -> list[str]:
        return list(self.selection.cells) if selection is None else list(selection)

    def _styled(self, changed: list[str]) -> list[str]:
        if changed:
            self._notify("style", cells=changed)
        return changed

    def apply_style(
        self,
        selection: list[str] | None,
        patch: StylePatch | Mapping[str, Any],
    ) -> list[str]:
        """Merge *patch* into every cell of *selection* (default: current)."""
        return self._styled(self.styles.apply(self._targets(selection), patch))

    def toggle_bold(self, selection: list[str] | None = None) -> list[str]:
        return self._styled(self.styles.toggle_bold(self._targets(selection)))

    def toggle_italic(self, selection: list[str] | None = None) -> list[str]:
        return self._styled(self.styles.toggle_italic(self._targets(selection)))

    def set_alignment(self, alignment: Alignment | str, selection: list[str] | None = None) -> list[str]:
        return self._styled(self.styles.set_alignment(self._targets(selection), alignment))

    def set_font_size(self, size: int, selection: list[str] | None = None) -> list[str]:
        return self._styled(self.styles.set_font_size(self._targets(selection), size))

    def increase_font_size(self, selection: list[str] | None = None) -> list[str]:
        return self._styled(self.styles.increase_font_size(self._targets(selection)))

    def decrease_font_size(self, selection: list[str] | None = None) -> list[str]:
        return self._styled(self.styles.decrease_font_size(self._targets(selection)))

    def set_font_color(self, color: str, selection: list[str] | None = None) -> list[str]:
        return self._styled(self.styles.set_font_color(self._targets(selection), color))

    # ------------------------------------------------------------------
    # Grid shape
    # ------------------------------------------------------------------

    def resize_grid(self, rows: int, cols: int) -> bool:
        """Change the grid bounds.

        Content is reset unless ``resize_preserves_content`` is configured.
        Rejected sizes (below 1, or wider than ``max_cols``) are a no-op.
        """
        if rows < 1 or cols < 1 or cols > self.config.max_cols:
            emit_warning(
                EventType.grid_resize_rejected,
                f"resize to {rows}x{cols} rejected",
                {"rows": rows, "cols": cols},
            )
            return False
        before = self.grid.bounds
        self.history.snapshot(self.grid)
        self.grid.resize(rows, cols, preserve=self.config.resize_preserves_content)
        self.selection.clamp_to_bounds()
        emit_info(
            EventType.grid_resized,
            f"resized {before[0]}x{before[1]} -> {rows}x{cols}",
            {"rows": rows, "cols": cols, "preserved": self.config.resize_preserves_content},
        )
        self._notify("resize", rows=rows, cols=cols)
        return True

    def add_row(self) -> bool:
        return self.resize_grid(self.grid.max_row + 1, self.grid.max_col)

    def remove_row(self) -> bool:
        return self.resize_grid(self.grid.max_row - 1, self.grid.max_col)

    def add_column(self) -> bool:
        return self.resize_grid(self.grid.max_row, self.grid.max_col + 1)

    def remove_column(self) -> bool:
        return self.resize_grid(self.grid.max_row, self.grid.max_col - 1)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def _restore(self, snap: GridSnapshot | None, kind: str) -> bool:
        if snap is None:
            emit_info(EventType.history_empty, f"nothing to {kind}", {"action": kind})
            return False
        self.grid.restore(snap)
        self.selection.clamp_to_bounds()
        emit_info(
            EventType.undo if kind == "undo" else EventType.redo,
            kind,
            {
                "undo_depth": self.history.undo_depth,
                "redo_depth": self.history.redo_depth,
            },
        )
        self._notify(kind)
        return True

    def undo(self) -> bool:
        """Restore the previous state.  Returns False when the stack is empty."""
        return self._restore(self.history.undo(self.grid), "undo")

    def redo(self) -> bool:
        """Re-apply an undone state.  Returns False when the stack is empty."""
        return self._restore(self.history.redo(self.grid), "redo")

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def _selection_changed(self) -> list[str]:
        cells = list(self.selection.cells)
        emit_info(
            EventType.selection_changed,
            f"{len(cells)} cell(s) selected",
            {"focus": self.selection.focus, "cells": cells},
        )
        self._notify("selection", focus=self.selection.focus, cells=cells)
        return cells

    def select_cell(self, cell_id: str) -> list[str]:
        self.selection.select_cell(cell_id)
        return self._selection_changed()

    def select_range(self, start: str, end: str) -> list[str]:
        self.selection.select_range(start, end)
        return self._selection_changed()

    def move_focus(
        self, direction: Direction | str, extend: bool = False
    ) -> tuple[str | None, list[str]]:
        focus, cells = self.selection.move_focus(direction, extend)
        if focus is not None:
            self._selection_changed()
        return focus, cells

    def start_drag(self, cell_id: str) -> None:
        self.selection.start_drag(cell_id)

    def update_drag(self, cell_id: str) -> list[str]:
        cells = self.selection.update_drag(cell_id)
        self._notify("selection", focus=self.selection.focus, cells=cells)
        return cells

    def end_drag(self) -> DragFill | None:
        """Copy the drag-start value into every selected cell (undoable)."""
        fill = self.selection.end_drag()
        if fill is None:
            return None
        value = self.grid.get(fill.source).value
        self.history.snapshot(self.grid)
        for cell_id in fill.targets:
            self.grid.set_value(cell_id, value)
        emit_info(
            EventType.drag_fill,
            f"filled {len(fill.targets)} cell(s) from {fill.source}",
            {"source": fill.source, "cells": fill.targets},
        )
        self._notify("fill", source=fill.source, cells=fill.targets)
        return fill

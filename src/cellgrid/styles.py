"""Apply style patches to selections.

The applicator keeps a single "current style" that mirrors the toolbar
state.  Bold and italic toggle that tracked flag and broadcast the new
value to every selected cell, so a mixed selection ends up uniform.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from pydantic import BaseModel

from cellgrid.grid import (
    DEFAULT_FONT_COLOR,
    DEFAULT_FONT_SIZE,
    MIN_FONT_SIZE,
    Alignment,
    GridStore,
    StylePatch,
)
from cellgrid.history import HistoryManager
from cellgrid.logging.events import EventType, emit_info


class CurrentStyle(BaseModel):
    """Toolbar state: the style the next formatting action starts from."""

    bold: bool = False
    italic: bool = False
    alignment: Alignment = Alignment.left
    font_size: int = DEFAULT_FONT_SIZE
    font_color: str = DEFAULT_FONT_COLOR


class StyleApplicator:
    """Merges style patches into selected cells through the history."""

    def __init__(
        self,
        grid: GridStore,
        history: HistoryManager,
        *,
        font_size: int = DEFAULT_FONT_SIZE,
        font_color: str = DEFAULT_FONT_COLOR,
        alignment: Alignment | str = Alignment.left,
        step: int = 2,
        min_font_size: int = MIN_FONT_SIZE,
    ) -> None:
        self._grid = grid
        self._history = history
        self.step = step
        self.min_font_size = max(min_font_size, MIN_FONT_SIZE)
        self.current = CurrentStyle(
            font_size=font_size,
            font_color=font_color,
            alignment=Alignment(alignment),
        )

    def apply(
        self,
        selection: Iterable[str],
        patch: StylePatch | Mapping[str, Any],
    ) -> list[str]:
        """Snapshot, then merge *patch* into every cell of *selection*.

        Returns the ids that were updated.  An empty selection or patch
        changes nothing and records no history.
        """
        if not isinstance(patch, StylePatch):
            patch = StylePatch.model_validate(dict(patch))
        targets = [c for c in selection if self._grid.contains(c)]
        fields = patch.fields()
        if not targets or not fields:
            return []
        self._history.snapshot(self._grid)
        for cell_id in targets:
            self._grid.set(cell_id, patch)
        emit_info(
            EventType.style_applied,
            f"styled {len(targets)} cell(s)",
            {"cells": targets, "patch": {k: _plain(v) for k, v in fields.items()}},
        )
        return targets

    # ------------------------------------------------------------------
    # Toolbar actions
    # ------------------------------------------------------------------

    def toggle_bold(self, selection: Iterable[str]) -> list[str]:
        self.current.bold = not self.current.bold
        return self.apply(selection, StylePatch(bold=self.current.bold))

    def toggle_italic(self, selection: Iterable[str]) -> list[str]:
        self.current.italic = not self.current.italic
        return self.apply(selection, StylePatch(italic=self.current.italic))

    def set_alignment(self, selection: Iterable[str], alignment: Alignment | str) -> list[str]:
        self.current.alignment = Alignment(alignment)
        return self.apply(selection, StylePatch(alignment=self.current.alignment))

    def set_font_size(self, selection: Iterable[str], size: int) -> list[str]:
        """Set an absolute font size; sizes below the minimum are ignored."""
        if size < self.min_font_size:
            return []
        self.current.font_size = size
        return self.apply(selection, StylePatch(font_size=size))

    def increase_font_size(self, selection: Iterable[str]) -> list[str]:
        self.current.font_size += self.step
        return self.apply(selection, StylePatch(font_size=self.current.font_size))

    def decrease_font_size(self, selection: Iterable[str]) -> list[str]:
        """Step the size down, never below the minimum."""
        size = self.current.font_size
        if size > self.min_font_size:
            size = max(size - self.step, self.min_font_size)
        self.current.font_size = size
        return self.apply(selection, StylePatch(font_size=size))

    def set_font_color(self, selection: Iterable[str], color: str) -> list[str]:
        self.current.font_color = color
        return self.apply(selection, StylePatch(font_color=color))


def _plain(value: Any) -> Any:
    return value.value if isinstance(value, Alignment) else value

"""Cell records and the grid store.

The grid is logically dense: every coordinate inside
``[1..max_row] x [1..max_col]`` has exactly one :class:`Cell`.  Records
are frozen pydantic models, so a :class:`GridSnapshot` can share them with
the live grid without later edits leaking into history.
"""

from __future__ import annotations

import logging
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field

from cellgrid.addressing import normalize_id, parse_id, to_id

log = logging.getLogger(__name__)

DEFAULT_FONT_SIZE = 12
DEFAULT_FONT_COLOR = "#000000"
MIN_FONT_SIZE = 6

CellValue = Union[str, int, float]


class Alignment(str, Enum):
    left = "left"
    center = "center"
    right = "right"


STYLE_FIELDS = ("bold", "italic", "alignment", "font_size", "font_color")


class Cell(BaseModel):
    """A single grid cell: its value plus display style."""

    model_config = ConfigDict(frozen=True)

    value: CellValue = ""
    bold: bool = False
    italic: bool = False
    alignment: Alignment = Alignment.left
    font_size: int = Field(default=DEFAULT_FONT_SIZE, ge=MIN_FONT_SIZE)
    font_color: str = DEFAULT_FONT_COLOR

    @property
    def is_empty(self) -> bool:
        return self.value == ""


class StylePatch(BaseModel):
    """Partial style update.  Fields left as ``None`` are not written."""

    model_config = ConfigDict(frozen=True)

    bold: bool | None = None
    italic: bool | None = None
    alignment: Alignment | None = None
    font_size: int | None = Field(default=None, ge=MIN_FONT_SIZE)
    font_color: str | None = None

    def fields(self) -> dict[str, Any]:
        """Return only the fields that were set."""
        return self.model_dump(exclude_none=True)

    def is_empty(self) -> bool:
        return not self.fields()


class GridSnapshot:
    """Immutable copy of the full cell mapping and bounds."""

    __slots__ = ("_max_row", "_max_col", "_cells")

    def __init__(self, max_row: int, max_col: int, cells: Mapping[str, Cell]) -> None:
        self._max_row = max_row
        self._max_col = max_col
        self._cells = MappingProxyType(dict(cells))

    @property
    def max_row(self) -> int:
        return self._max_row

    @property
    def max_col(self) -> int:
        return self._max_col

    @property
    def cells(self) -> Mapping[str, Cell]:
        return self._cells

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GridSnapshot):
            return NotImplemented
        return (
            self._max_row == other._max_row
            and self._max_col == other._max_col
            and dict(self._cells) == dict(other._cells)
        )

    def __repr__(self) -> str:
        return f"GridSnapshot(max_row={self._max_row}, max_col={self._max_col})"


PatchLike = Union[StylePatch, Mapping[str, Any], None]


def _patch_fields(patch: PatchLike, extra: Mapping[str, Any]) -> dict[str, Any]:
    """Merge a patch object/mapping and keyword fields into one update dict."""
    fields: dict[str, Any] = {}
    if isinstance(patch, StylePatch):
        fields.update(patch.fields())
    elif patch:
        fields.update(patch)
    fields.update(extra)
    unknown = set(fields) - set(Cell.model_fields)
    if unknown:
        raise ValueError(f"Unknown cell fields: {sorted(unknown)}")
    return fields


class GridStore:
    """Mapping from cell identifier to :class:`Cell` over fixed bounds.

    Parameters
    ----------
    rows, cols : int
        Initial bounds, both >= 1.
    default_cell : Cell | None
        Template for new cells (carries the configured default font size
        and color).
    max_cols : int | None
        Upper limit for the column count; wider resizes are ignored.
    """

    def __init__(
        self,
        rows: int = 10,
        cols: int = 10,
        default_cell: Cell | None = None,
        max_cols: int | None = None,
    ) -> None:
        if rows < 1 or cols < 1:
            raise ValueError("Grid dimensions must be >= 1")
        self._default = default_cell or Cell()
        self._max_cols = max_cols
        self._cells: dict[str, Cell] = {}
        self.max_row = rows
        self.max_col = cols
        self.initialize(rows, cols)

    # ------------------------------------------------------------------
    # Bounds
    # ------------------------------------------------------------------

    @property
    def bounds(self) -> tuple[int, int]:
        return self.max_row, self.max_col

    @property
    def default_cell(self) -> Cell:
        return self._default

    def contains(self, cell_id: str) -> bool:
        """True when *cell_id* is well formed and inside the bounds."""
        try:
            col, row = parse_id(cell_id)
        except ValueError:
            return False
        return 1 <= row <= self.max_row and 1 <= col <= self.max_col

    def ids(self) -> list[str]:
        """All identifiers in row-major order."""
        return [
            to_id(c, r)
            for r in range(1, self.max_row + 1)
            for c in range(1, self.max_col + 1)
        ]

    def __len__(self) -> int:
        return len(self._cells)

    def __iter__(self) -> Iterator[str]:
        return iter(self.ids())

    # ------------------------------------------------------------------
    # Content
    # ------------------------------------------------------------------

    def initialize(self, rows: int, cols: int) -> None:
        """Replace all content with default cells (full reset)."""
        self.max_row = rows
        self.max_col = cols
        self._cells = {
            to_id(c, r): self._default
            for r in range(1, rows + 1)
            for c in range(1, cols + 1)
        }

    def get(self, cell_id: str) -> Cell:
        """Return the cell, or a default cell when absent or out of bounds."""
        return self._cells.get(normalize_id(cell_id), self._default)

    def set(self, cell_id: str, patch: PatchLike = None, **fields: Any) -> Cell | None:
        """Merge *patch* (and keyword *fields*) into the existing cell.

        Unset fields keep their current values.  Identifiers outside the
        bounds are ignored and ``None`` is returned.
        """
        key = normalize_id(cell_id)
        if key not in self._cells:
            log.debug("set ignored for out-of-bounds cell %s", key)
            return None
        update = _patch_fields(patch, fields)
        if not update:
            return self._cells[key]
        merged = self._cells[key].model_dump()
        merged.update(update)
        cell = Cell.model_validate(merged)
        self._cells[key] = cell
        return cell

    def set_value(self, cell_id: str, value: CellValue) -> Cell | None:
        return self.set(cell_id, value=value)

    def resize(self, rows: int, cols: int, preserve: bool = False) -> bool:
        """Change the bounds.

        By default the content is reinitialized.  With ``preserve=True``
        cells inside both the old and the new bounds keep their content.
        Returns False (and changes nothing) for ``rows < 1``, ``cols < 1``
        or a width beyond ``max_cols``.
        """
        if rows < 1 or cols < 1:
            return False
        if self._max_cols is not None and cols > self._max_cols:
            return False
        if not preserve:
            self.initialize(rows, cols)
            return True
        old = self._cells
        self.initialize(rows, cols)
        for key in self._cells:
            if key in old:
                self._cells[key] = old[key]
        return True

    def values(self) -> dict[str, CellValue]:
        """Map of identifier to value for non-empty cells."""
        return {k: c.value for k, c in self._cells.items() if not c.is_empty}

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def snapshot(self) -> GridSnapshot:
        return GridSnapshot(self.max_row, self.max_col, self._cells)

    def restore(self, snapshot: GridSnapshot) -> None:
        self.max_row = snapshot.max_row
        self.max_col = snapshot.max_col
        self._cells = dict(snapshot.cells)

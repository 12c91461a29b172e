"""Evaluate aggregate formulas against a grid.

Formulas are best-effort: anything that does not parse, names an unknown
function or references a malformed id comes back unchanged, and a
``formula_fallback`` event records why.
"""

from __future__ import annotations

import math
from typing import Any, Mapping, Protocol, Union

from cellgrid.addressing import is_valid_id, parse_id, parse_range
from cellgrid.errors import InvalidAddress
from cellgrid.formulas.errors import FormulaError
from cellgrid.formulas.functions import get_aggregate
from cellgrid.formulas.parser import is_formula, parse_formula
from cellgrid.logging.events import EventType, emit_info, emit_warning

Result = Union[int, float, str]


class CellSource(Protocol):
    """Anything that maps a cell id to a cell (or a raw value)."""

    def get(self, cell_id: str) -> Any:
        ...


def to_number(value: Any) -> float | None:
    """Interpret a cell value as a finite float, or None if it is not one."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        num = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            num = float(text)
        except ValueError:
            return None
    else:
        return None
    return num if math.isfinite(num) else None


def collect_numbers(ids: list[str], source: CellSource) -> list[float]:
    """Numeric values of *ids*, skipping non-numeric and missing cells."""
    values: list[float] = []
    for cell_id in ids:
        cell = source.get(cell_id)
        num = to_number(getattr(cell, "value", cell))
        if num is not None:
            values.append(num)
    return values


def source_bounds(source: CellSource) -> tuple[int, int] | None:
    """(max_row, max_col) that rectangles are clipped to, if known.

    A grid reports its own bounds; a plain mapping is bounded by the
    largest row and column among its keys.
    """
    bounds = getattr(source, "bounds", None)
    if bounds is not None:
        return tuple(bounds)
    if isinstance(source, Mapping):
        max_row = max_col = 0
        for key in source:
            if is_valid_id(key):
                col, row = parse_id(key)
                max_row, max_col = max(max_row, row), max(max_col, col)
        return max_row, max_col
    return None


def _normalize(result: float | int) -> int | float:
    if isinstance(result, float) and result.is_integer():
        return int(result)
    return result


def evaluate_strict(formula: str, source: CellSource) -> Result:
    """Evaluate *formula*, raising on any failure.

    Non-formula text is returned unchanged.

    Raises:
        FormulaError: Parse failure or unknown function.
        InvalidAddress: Malformed cell id in the arguments.
    """
    if not is_formula(formula):
        return formula
    call = parse_formula(formula)
    fn = get_aggregate(call.name)
    ids = parse_range(call.args, source_bounds(source))
    return _normalize(fn(collect_numbers(ids, source)))


def evaluate(formula: str, source: CellSource, cell_id: str | None = None) -> Result:
    """Evaluate *formula*; on any formula error return it unchanged.

    Args:
        formula: Cell text.  Only text starting with ``=`` is evaluated.
        source: Grid (or mapping) the argument ids are read from.
        cell_id: Cell being committed, for event attribution only.
    """
    if not is_formula(formula):
        return formula
    ctx: dict[str, Any] = {"formula": formula}
    if cell_id is not None:
        ctx["cell_id"] = cell_id
    try:
        result = evaluate_strict(formula, source)
    except (FormulaError, InvalidAddress) as exc:
        emit_warning(
            EventType.formula_fallback,
            str(exc),
            ctx,
            error_code=type(exc).__name__,
        )
        return formula
    emit_info(EventType.formula_evaluated, f"{formula} -> {result}", ctx)
    return result

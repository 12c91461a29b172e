"""Error types for formula parsing and evaluation.

These never escape :func:`cellgrid.formulas.evaluate`, which degrades any
of them to returning the formula text unchanged.
"""

from __future__ import annotations

from cellgrid.errors import CellGridError


class FormulaError(CellGridError):
    """Base class for all formula-related errors."""


class FormulaParseError(FormulaError):
    """Syntax error in a formula expression.

    Attributes:
        position: Character position where the error was detected.
    """

    def __init__(self, message: str, position: int | None = None) -> None:
        self.position = position
        full = f"Formula parse error: {message}"
        if position is not None:
            full += f" (at position {position})"
        super().__init__(full)


class FormulaFunctionError(FormulaError):
    """Unknown aggregate function.

    Attributes:
        func_name: The function that caused the error.
    """

    def __init__(self, func_name: str, message: str | None = None) -> None:
        self.func_name = func_name
        super().__init__(message or f"Unknown function: {func_name!r}")

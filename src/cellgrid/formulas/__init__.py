"""Aggregate formula parsing and evaluation.

Public API::

    from cellgrid.formulas import evaluate, parse_formula, register_aggregate
"""

from cellgrid.formulas.errors import (
    FormulaError,
    FormulaFunctionError,
    FormulaParseError,
)
from cellgrid.formulas.evaluator import (
    CellSource,
    collect_numbers,
    evaluate,
    evaluate_strict,
    source_bounds,
    to_number,
)
from cellgrid.formulas.functions import (
    aggregate_names,
    get_aggregate,
    register_aggregate,
)
from cellgrid.formulas.parser import FormulaCall, is_formula, parse_formula

__all__ = [
    "CellSource",
    "FormulaCall",
    "FormulaError",
    "FormulaFunctionError",
    "FormulaParseError",
    "aggregate_names",
    "collect_numbers",
    "evaluate",
    "evaluate_strict",
    "get_aggregate",
    "is_formula",
    "parse_formula",
    "register_aggregate",
    "source_bounds",
    "to_number",
]

"""Registry of aggregate functions.

An aggregate reduces the numeric values collected from its arguments to a
single number.  Names are stored upper-case and looked up
case-insensitively.
"""

from __future__ import annotations

from typing import Callable, Union

from cellgrid.formulas.errors import FormulaFunctionError

Number = Union[int, float]
Aggregate = Callable[[list[float]], Number]

_AGGREGATES: dict[str, Aggregate] = {}


def register_aggregate(name: str) -> Callable[[Aggregate], Aggregate]:
    """Decorator that registers an aggregate function by name.

    Args:
        name: The formula name, e.g. ``"SUM"``.

    Returns:
        The decorated function, unmodified.
    """

    def decorator(fn: Aggregate) -> Aggregate:
        _AGGREGATES[name.upper()] = fn
        return fn

    return decorator


def get_aggregate(name: str) -> Aggregate:
    """Look up a registered aggregate.

    Raises:
        FormulaFunctionError: If no function is registered under *name*.
    """
    key = name.upper()
    if key not in _AGGREGATES:
        raise FormulaFunctionError(name)
    return _AGGREGATES[key]


def aggregate_names() -> list[str]:
    return sorted(_AGGREGATES)


@register_aggregate("SUM")
def _fn_sum(values: list[float]) -> Number:
    return sum(values, 0)


@register_aggregate("AVERAGE")
def _fn_average(values: list[float]) -> Number:
    if not values:
        return 0
    return sum(values) / len(values)


@register_aggregate("MAX")
def _fn_max(values: list[float]) -> Number:
    return max(values) if values else 0


@register_aggregate("MIN")
def _fn_min(values: list[float]) -> Number:
    return min(values) if values else 0


@register_aggregate("COUNT")
def _fn_count(values: list[float]) -> Number:
    return len(values)

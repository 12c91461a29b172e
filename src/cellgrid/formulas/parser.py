"""Lark-based parser for the aggregate formula syntax.

Accepted shape: ``=NAME(ARGS)`` where ``NAME`` is one token of word
characters and ``ARGS`` is a comma-separated list whose items are single
cell ids (``A1``) or rectangles (``A1:B3``).  Empty items are allowed so
that a half-typed ``=SUM(A1,)`` still parses, but at least one item
must be present.
"""

from __future__ import annotations

from typing import NamedTuple

from lark import Lark, Token, Tree
from lark.exceptions import LarkError

from cellgrid.formulas.errors import FormulaParseError

GRAMMAR = r"""
start: "=" FUNC_NAME "(" args ")"

args: [arg] ("," [arg])*

?arg: CELL_ID ":" CELL_ID  -> rect
    | CELL_ID              -> single

CELL_ID: /[A-Za-z]+[0-9]+/
FUNC_NAME: /\w+/

%import common.WS
%ignore WS
"""

# The contextual lexer keeps FUNC_NAME and CELL_ID apart: a name is only
# expected right after "=", ids only inside the parentheses.
_parser = Lark(GRAMMAR, parser="lalr", lexer="contextual", start="start")


class FormulaCall(NamedTuple):
    """A parsed formula: upper-cased function name and its range items."""

    name: str
    items: list[str]

    @property
    def args(self) -> str:
        """The argument list re-joined as a range expression."""
        return ",".join(self.items)


def is_formula(text: object) -> bool:
    return isinstance(text, str) and text.startswith("=")


def parse_tree(text: str) -> Tree:
    """Parse *text* into a Lark tree.

    Raises:
        FormulaParseError: If the text is not ``=NAME(ARGS)``.
    """
    if not is_formula(text):
        raise FormulaParseError("Formula must start with '='", position=0)
    try:
        return _parser.parse(text)
    except LarkError as exc:
        pos = getattr(exc, "column", None)
        raise FormulaParseError(str(exc).strip().split("\n")[0], position=pos) from exc


def parse_formula(text: str) -> FormulaCall:
    """Parse *text* into a :class:`FormulaCall`.

    Raises:
        FormulaParseError: If the text is not ``=NAME(ARGS)``.
    """
    tree = parse_tree(text)
    name_token, args_tree = tree.children
    items: list[str] = []
    for node in args_tree.children:
        if node is None:
            continue
        if node.data == "rect":
            start, end = node.children
            items.append(f"{_upper(start)}:{_upper(end)}")
        else:
            items.append(_upper(node.children[0]))
    if not items:
        raise FormulaParseError("Formula has no arguments", position=text.index("(") + 1)
    return FormulaCall(name=str(name_token).upper(), items=items)


def _upper(token: Token) -> str:
    return str(token).upper()

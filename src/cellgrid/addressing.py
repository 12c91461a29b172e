"""Cell identifier and range helpers.

Identifiers are ``<ColumnLetters><RowNumber>`` with 1-based rows and
bijective base-26 column labels (``A``=1, ``Z``=26, ``AA``=27).
"""

from __future__ import annotations

import re

from cellgrid.errors import InvalidAddress

_ID_RE = re.compile(r"^([A-Z]+)([0-9]+)$")


def col_to_letters(col: int) -> str:
    """Convert a 1-based column number to letters.  1=A, 26=Z, 27=AA."""
    if col < 1:
        raise InvalidAddress(str(col), f"Column must be >= 1, got {col}")
    result = ""
    n = col
    while n > 0:
        n, rem = divmod(n - 1, 26)
        result = chr(65 + rem) + result
    return result


def letters_to_col(letters: str) -> int:
    """Convert column letters to a 1-based column number.  A=1, AA=27."""
    if not letters or not letters.isalpha() or not letters.isascii():
        raise InvalidAddress(letters, f"Invalid column label: {letters!r}")
    idx = 0
    for ch in letters.upper():
        idx = idx * 26 + (ord(ch) - ord("A") + 1)
    return idx


def to_id(col: int, row: int) -> str:
    """Build a cell identifier from a 1-based column and row."""
    if row < 1:
        raise InvalidAddress(str(row), f"Row must be >= 1, got {row}")
    return f"{col_to_letters(col)}{row}"


def parse_id(cell_id: str) -> tuple[int, int]:
    """Parse ``'B3'`` into ``(col, row)`` = ``(2, 3)``.

    Letters are case-insensitive and surrounding whitespace is ignored.

    Raises:
        InvalidAddress: If *cell_id* is not ``<letters><digits>`` or the
            row is 0.
    """
    if not isinstance(cell_id, str):
        raise InvalidAddress(repr(cell_id))
    m = _ID_RE.match(cell_id.strip().upper())
    if not m:
        raise InvalidAddress(cell_id)
    row = int(m.group(2))
    if row < 1:
        raise InvalidAddress(cell_id, f"Row must be >= 1 in {cell_id!r}")
    return letters_to_col(m.group(1)), row


def normalize_id(cell_id: str) -> str:
    """Return the canonical upper-case form of *cell_id*."""
    col, row = parse_id(cell_id)
    return to_id(col, row)


def is_valid_id(cell_id: str) -> bool:
    try:
        parse_id(cell_id)
    except InvalidAddress:
        return False
    return True


def expand_rect(
    start: str, end: str, bounds: tuple[int, int] | None = None
) -> list[str]:
    """Expand two corners into a row-major list of identifiers.

    Reversed corners are normalised, so ``D1:A1`` behaves like ``A1:D1``.
    With *bounds* ``(max_row, max_col)`` the rectangle is clipped to the
    grid; both corners are still validated.
    """
    c0, r0 = parse_id(start)
    c1, r1 = parse_id(end)
    if r0 > r1:
        r0, r1 = r1, r0
    if c0 > c1:
        c0, c1 = c1, c0
    if bounds is not None:
        r1 = min(r1, bounds[0])
        c1 = min(c1, bounds[1])
    ids: list[str] = []
    for r in range(r0, r1 + 1):
        for c in range(c0, c1 + 1):
            ids.append(to_id(c, r))
    return ids


def parse_range(text: str, bounds: tuple[int, int] | None = None) -> list[str]:
    """Resolve a range expression into an ordered list of identifiers.

    Accepts a single id (``A1``), a rectangle (``A1:B3``), a comma list
    (``A1, B2``) or a comma list mixing both.  Empty list items, such as
    a trailing comma, are skipped.  Rectangles are clipped to *bounds*
    when given.

    Raises:
        InvalidAddress: If any item is malformed.
    """
    ids: list[str] = []
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue
        if ":" in part:
            corners = part.split(":")
            if len(corners) != 2:
                raise InvalidAddress(part, f"Invalid range: {part!r}")
            ids.extend(expand_rect(corners[0], corners[1], bounds))
        else:
            ids.append(normalize_id(part))
    return ids

"""Error types shared by the grid, selection and configuration layers."""

from __future__ import annotations


class CellGridError(Exception):
    """Base class for all cellgrid errors."""


class InvalidAddress(CellGridError, ValueError):
    """A cell identifier that does not match ``<letters><digits>``.

    Attributes:
        text: The offending identifier or range text.
    """

    def __init__(self, text: str, message: str | None = None) -> None:
        self.text = text
        super().__init__(message or f"Invalid cell address: {text!r}")


class ConfigError(CellGridError):
    """Unreadable or invalid configuration file.

    Attributes:
        path: Path of the configuration file, if any.
    """

    def __init__(self, message: str, path: str | None = None) -> None:
        self.path = path
        full = message if path is None else f"{path}: {message}"
        super().__init__(full)

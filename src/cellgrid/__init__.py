"""cellgrid -- cell-grid data model and formula engine for a small spreadsheet."""

__version__ = "0.3.0"

from cellgrid.engine import SpreadsheetEngine
from cellgrid.errors import CellGridError, ConfigError, InvalidAddress

__all__ = [
    "CellGridError",
    "ConfigError",
    "InvalidAddress",
    "SpreadsheetEngine",
    "__version__",
]

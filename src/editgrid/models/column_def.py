"""Column definitions for the grid panel.

Describes header, bound field, editability and cell type for each column,
and coerces text typed into the cell editor back to the column's type.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .constants import DEFAULT_COLUMN_WIDTH

# Accepted spellings for boolean cells (compared lowercase)
TRUE_STRINGS = frozenset({"true", "1", "yes", "y", "on"})
FALSE_STRINGS = frozenset({"false", "0", "no", "n", "off", ""})


class CellType(str, Enum):
    """How a column's values are edited and displayed."""

    TEXT = "text"
    NUMBER = "number"
    BOOLEAN = "boolean"


@dataclass(frozen=True)
class ColumnDef:
    """Definition of one grid column.

    Attributes:
        field: Row field shown in this column.
        header: Header text (defaults to the field name).
        editable: Whether the cell editor may change this column.
        cell_type: TEXT, NUMBER or BOOLEAN.
        width: Column width in pixels.
    """

    field: str
    header: str = ""
    editable: bool = True
    cell_type: CellType = CellType.TEXT
    width: int = DEFAULT_COLUMN_WIDTH

    @property
    def title(self) -> str:
        return self.header or self.field

    def format_value(self, value: Any) -> str:
        """Format a row value for display in a sheet cell."""
        if value is None:
            return ""
        if self.cell_type is CellType.BOOLEAN:
            return "true" if value else "false"
        return str(value)

    def coerce(self, raw: Any) -> Any:
        """Convert an edited cell value to this column's type.

        Args:
            raw: Value produced by the cell editor (usually a string).

        Returns:
            The typed value.

        Raises:
            ValueError: If the text cannot be converted.
        """
        if self.cell_type is CellType.TEXT:
            return "" if raw is None else str(raw)

        if self.cell_type is CellType.BOOLEAN:
            if isinstance(raw, bool):
                return raw
            text = ("" if raw is None else str(raw)).strip().lower()
            if text in TRUE_STRINGS:
                return True
            if text in FALSE_STRINGS:
                return False
            raise ValueError(f"Not a boolean: {raw!r}")

        # NUMBER
        if isinstance(raw, bool):
            raise ValueError(f"Not a number: {raw!r}")
        if isinstance(raw, (int, float)):
            return raw
        text = ("" if raw is None else str(raw)).strip()
        try:
            return int(text)
        except ValueError:
            return float(text)

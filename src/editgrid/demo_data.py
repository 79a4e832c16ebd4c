"""Dataset, columns and row actions used by the demo application."""

from __future__ import annotations

from collections.abc import Iterable

from .models.column_def import CellType, ColumnDef

# Demo dataset: "name" is the unique identifier
INITIAL_DATA: list[dict] = [
    {"name": "Alice", "age": 28, "vegetarian": True},
    {"name": "Bob", "age": 35, "vegetarian": False},
    {"name": "Charlie", "age": 42, "vegetarian": True},
    {"name": "Diana", "age": 31, "vegetarian": False},
    {"name": "Eve", "age": 26, "vegetarian": True},
    {"name": "Frank", "age": 39, "vegetarian": False},
    {"name": "Grace", "age": 33, "vegetarian": True},
    {"name": "Henry", "age": 45, "vegetarian": False},
    {"name": "Ivy", "age": 29, "vegetarian": True},
    {"name": "Jack", "age": 37, "vegetarian": False},
]

ID_FIELD = "name"

# Name is the identity, so it is not editable
COLUMN_DEFS: list[ColumnDef] = [
    ColumnDef(field="name", header="Name", editable=False),
    ColumnDef(field="age", header="Age", cell_type=CellType.NUMBER, width=80),
    ColumnDef(field="vegetarian", header="Vegetarian", cell_type=CellType.BOOLEAN, width=100),
]


def validate_new_name(name: str | None, existing: Iterable[str]) -> tuple[bool, str]:
    """Check a name typed for a new row.

    Args:
        name: Text from the prompt (None if cancelled)
        existing: Names already shown in the grid

    Returns:
        Tuple of (is_valid, error_message).
        If is_valid is True, error_message is empty string.
    """
    if not name:
        return False, "Name is required!"

    if not name.strip():
        return False, "Name cannot be empty!"

    lowered = name.strip().lower()
    if any(other.lower() == lowered for other in existing):
        return False, "A row with this name already exists!"

    return True, ""


def new_row(name: str) -> dict:
    """Build the row added for a validated name."""
    return {"name": name.strip(), "age": 0, "vegetarian": False}


def toggle_vegetarian(row: dict) -> None:
    """Row transform flipping the vegetarian flag."""
    row["vegetarian"] = not row.get("vegetarian", False)

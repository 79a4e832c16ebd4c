"""Exceptions raised by the grid engine.

Normal host misuse (empty selections, unknown ids, undoing nothing) is never
an error. Only rows that cannot be tracked and broken configuration are.
"""

from __future__ import annotations


class EditGridError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(EditGridError):
    """Invalid engine configuration or an identity value of unsupported type."""


class MissingIdentityError(ConfigurationError):
    """A row lacks a value for the configured identity field."""

    def __init__(self, id_field: str, row: object):
        self.id_field = id_field
        self.row = row
        super().__init__(f"Row has no value for identity field {id_field!r}: {row!r}")


class DuplicateIdentityError(EditGridError):
    """Two rows of the base collection share the same identity."""

    def __init__(self, key: str, first_index: int, second_index: int):
        self.key = key
        self.first_index = first_index
        self.second_index = second_index
        super().__init__(
            f"Duplicate identity {key!r} in base collection "
            f"(rows {first_index} and {second_index})"
        )


class IdentityCollisionError(EditGridError):
    """add_row was given an identity that is already tracked or in the base collection."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Row identity {key!r} already exists")

"""Row identity resolution.

The identity field name is configured once. Every overlay key is the string
form of the identity, so 7 and "7" address the same row.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Union

from .constants import IDENTITY_TYPES
from .errors import ConfigurationError, MissingIdentityError

RowIdentity = Union[str, int]


def identity_key(value: RowIdentity) -> str:
    """Normalize an identity value to its overlay key.

    Args:
        value: A str or int identity.

    Returns:
        The string form of the identity.

    Raises:
        ConfigurationError: If the value is not a str or int.
    """
    if isinstance(value, bool) or not isinstance(value, IDENTITY_TYPES):
        raise ConfigurationError(
            f"Row identity must be str or int, got {type(value).__name__}: {value!r}"
        )
    return str(value)


class IdentityResolver:
    """Projects the configured identity field off a row.

    Usage:
        resolver = IdentityResolver("name")
        resolver.identity_of({"name": "Alice", "age": 28})  # "Alice"
        resolver.key_of({"id": 3})  # "3" with id_field="id"
    """

    def __init__(self, id_field: str):
        """Initialize the resolver.

        Args:
            id_field: Name of the field holding each row's identity.

        Raises:
            ConfigurationError: If id_field is not a non-empty string.
        """
        if not isinstance(id_field, str) or not id_field:
            raise ConfigurationError(f"Identity field must be a non-empty string, got {id_field!r}")
        self._id_field = id_field

    @property
    def id_field(self) -> str:
        """Get the identity field name."""
        return self._id_field

    def identity_of(self, row: Mapping[str, Any]) -> RowIdentity:
        """Get the raw identity value of a row.

        Raises:
            MissingIdentityError: If the field is absent or None.
            ConfigurationError: If the value is not a str or int.
        """
        value = row.get(self._id_field) if isinstance(row, Mapping) else None
        if value is None:
            raise MissingIdentityError(self._id_field, row)
        identity_key(value)
        return value

    def key_of(self, row: Mapping[str, Any]) -> str:
        """Get the overlay key of a row."""
        return identity_key(self.identity_of(row))

"""Modification records stored in the change overlay.

A Modification is frozen. Its row data is owned by the engine and is never
shared with the base collection or the caller; copy() and to_dict() hand out
independent copies.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .constants import MODIFICATION_TO_DISPLAY, DisplayState, RowModificationState
from .equality import Row, clone_row, deep_equal


@dataclass(frozen=True, eq=False)
class Modification:
    """Pending edit for one row identity.

    Attributes:
        state: ADDED, MODIFIED or DELETED.
        data: Latest complete row for ADDED/MODIFIED, None for DELETED.
    """

    state: RowModificationState
    data: Row | None = None

    def __post_init__(self) -> None:
        if self.state is RowModificationState.DELETED:
            if self.data is not None:
                raise ValueError("Deleted modifications carry no row data")
        elif self.data is None:
            raise ValueError(f"{self.state.value} modifications require row data")

    # --- Constructors ---

    @classmethod
    def added(cls, data: Row) -> Modification:
        return cls(RowModificationState.ADDED, data)

    @classmethod
    def modified(cls, data: Row) -> Modification:
        return cls(RowModificationState.MODIFIED, data)

    @classmethod
    def deleted(cls) -> Modification:
        return cls(RowModificationState.DELETED)

    # --- State Queries ---

    @property
    def type(self) -> str:
        """Get the state as its JSON "type" string."""
        return self.state.value

    @property
    def is_added(self) -> bool:
        return self.state is RowModificationState.ADDED

    @property
    def is_modified(self) -> bool:
        return self.state is RowModificationState.MODIFIED

    @property
    def is_deleted(self) -> bool:
        return self.state is RowModificationState.DELETED

    @property
    def display_state(self) -> DisplayState:
        """Get the display state this modification renders as."""
        return MODIFICATION_TO_DISPLAY[self.state]

    # --- Copies ---

    def copy(self) -> Modification:
        """Create a copy whose row data is independent of this one."""
        if self.data is None:
            return Modification(self.state)
        return Modification(self.state, clone_row(self.data))

    def to_dict(self) -> dict[str, Any]:
        """Convert to {"type": ..., "data": ...} with copied row data."""
        return {
            "type": self.state.value,
            "data": clone_row(self.data) if self.data is not None else None,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Modification):
            return NotImplemented
        return self.state is other.state and deep_equal(self.data, other.data)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        if self.data is None:
            return f"Modification({self.state.value})"
        return f"Modification({self.state.value}, {self.data!r})"


def changes_to_dict(changes: Mapping[str, Modification]) -> dict[str, dict[str, Any]]:
    """Convert an overlay snapshot into plain dicts (e.g. for json.dumps).

    Args:
        changes: Mapping of identity key to Modification.

    Returns:
        Dict of identity key -> {"type": ..., "data": ...}.
    """
    return {key: modification.to_dict() for key, modification in changes.items()}

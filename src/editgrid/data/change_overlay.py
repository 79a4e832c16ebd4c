"""Change overlay: the sparse layer of pending row edits.

Maps identity key -> Modification in insertion order. The overlay is the
single source of truth for what the user changed; the base collection is
never touched. Hosts only ever see snapshot() copies.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping

from ..models.errors import ConfigurationError
from ..models.modification import Modification
from ..models.row_identity import RowIdentity, identity_key


class OverlaySnapshot(Mapping[str, Modification]):
    """Read-only copy of the overlay as seen by the host.

    Lookups accept the identity as str or int, like the overlay itself.
    Compares equal to a plain dict with the same entries.
    """

    def __init__(self, entries: dict[str, Modification]):
        self._entries = entries

    def __getitem__(self, row_id: RowIdentity) -> Modification:
        if isinstance(row_id, int) and not isinstance(row_id, bool):
            row_id = str(row_id)
        return self._entries[row_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"OverlaySnapshot({self._entries!r})"


class ChangeOverlay:
    """Ordered mapping from row identity to Modification.

    Keys are normalized with identity_key(), so every method accepts the
    identity as str or int. Overwriting an existing key keeps its position.

    Usage:
        overlay = ChangeOverlay()
        overlay.set("4", Modification.added({"id": "4", "age": 50}))
        draft = overlay.copy()
        draft.remove("4")
        overlay.snapshot()  # still contains "4"
    """

    def __init__(self, entries: Mapping[str, Modification] | None = None):
        self._entries: dict[str, Modification] = dict(entries) if entries else {}

    def get(self, row_id: RowIdentity) -> Modification | None:
        """Get the modification for a row, or None if the row is unchanged."""
        return self._entries.get(identity_key(row_id))

    def set(self, row_id: RowIdentity, modification: Modification) -> None:
        """Store the modification for a row, replacing any previous one."""
        self._entries[identity_key(row_id)] = modification

    def remove(self, row_id: RowIdentity) -> bool:
        """Drop the entry for a row.

        Returns:
            True if an entry was removed, False if none existed.
        """
        return self._entries.pop(identity_key(row_id), None) is not None

    def clear(self) -> None:
        """Remove every entry."""
        self._entries.clear()

    def copy(self) -> ChangeOverlay:
        """Create a working copy.

        Modifications are immutable and their data is never mutated after
        creation, so the copy shares them.
        """
        return ChangeOverlay(self._entries)

    def snapshot(self) -> OverlaySnapshot:
        """Get a read-only, structurally independent copy of all entries."""
        return OverlaySnapshot({key: mod.copy() for key, mod in self._entries.items()})

    def added_entries(self) -> list[tuple[str, Modification]]:
        """Get ADDED entries in insertion order."""
        return [(key, mod) for key, mod in self._entries.items() if mod.is_added]

    def keys(self) -> set[str]:
        return set(self._entries)

    def __contains__(self, row_id: object) -> bool:
        try:
            return identity_key(row_id) in self._entries  # type: ignore[arg-type]
        except ConfigurationError:
            return False

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __repr__(self) -> str:
        return f"ChangeOverlay({len(self._entries)} entries)"

"""Editable grid store with base/overlay architecture.

The store maintains two layers and derives a third:
- base_rows: The caller's original rows (the truth, never mutated)
- overlay: Sparse mapping of pending edits (the intent)
- projected view: Computed merge of base + overlay (the view)

Key behaviors:
- Every command runs against a working copy of the overlay and is
  committed only when it completes
- Edits that restore a row's original values drop out of the overlay
- Per-row undo and global reset simply remove overlay entries
"""

from __future__ import annotations

from collections.abc import Callable, Generator, Iterable, Sequence
from contextlib import contextmanager
from typing import Any

from ..debug_trace import log_perf, logger
from ..models.constants import DisplayState
from ..models.equality import Row
from ..models.errors import DuplicateIdentityError
from ..models.modification import Modification
from ..models.row_identity import IdentityResolver, RowIdentity, identity_key
from ..services.reconciler import EditReconciler, RowTransform
from ..services.view_projector import ProjectedRow, ViewProjector
from .change_overlay import ChangeOverlay, OverlaySnapshot
from .grid_config import GridConfig

SelectionProvider = Callable[[], Iterable[RowIdentity]]
Observer = Callable[["EditableGridStore", set[str]], None]


class EditableGridStore:
    """Change-overlay engine for one editable grid.

    Manages pending row edits with support for:
    - Adding, deleting and modifying rows without touching the base rows
    - Automatic revert when an edit restores the original values
    - Per-row undo and global reset
    - Observer pattern for view updates

    Usage:
        store = EditableGridStore(rows, GridConfig(id_field="name"))

        store.apply_cell_edit("Alice", "age", 99)
        store.add_row({"name": "Zoe", "age": 0, "vegetarian": False})
        store.delete_rows({"Bob"})

        store.get_changes()  # {"Alice": Modification(modified, ...), ...}
        store.undo_row("Alice")
        store.reset()
    """

    def __init__(
        self,
        base_rows: Sequence[Row],
        config: GridConfig,
        selection_provider: SelectionProvider | None = None,
    ):
        """Initialize the grid store.

        Args:
            base_rows: Original rows, in display order. Never modified.
            config: Validated engine configuration.
            selection_provider: Returns the identities currently selected in
                                the grid, used when a command gets no ids.

        Raises:
            MissingIdentityError: If a base row has no identity value.
            DuplicateIdentityError: If two base rows share an identity.
        """
        self._config = config
        self._base_rows = base_rows
        self._resolver = IdentityResolver(config.id_field)
        self._base_index = self._build_base_index(base_rows)

        self._overlay = ChangeOverlay()
        self._reconciler = EditReconciler(self._resolver, self.get_base_row)
        self._projector = ViewProjector(self._resolver)

        self._selection_provider = selection_provider

        # Observer callbacks - called with (store, affected keys)
        self._observers: list[Observer] = []

        # Working copy of the command in progress (for nested check)
        self._current_draft: ChangeOverlay | None = None

    def _build_base_index(self, base_rows: Sequence[Row]) -> dict[str, Row]:
        """Index base rows by identity key (references, not copies)."""
        index: dict[str, Row] = {}
        positions: dict[str, int] = {}

        for position, row in enumerate(base_rows):
            key = self._resolver.key_of(row)
            if key in index:
                raise DuplicateIdentityError(key, positions[key], position)
            index[key] = row
            positions[key] = position

        return index

    # --- Configuration ---

    @property
    def config(self) -> GridConfig:
        return self._config

    @property
    def id_field(self) -> str:
        return self._config.id_field

    @property
    def base_rows(self) -> Sequence[Row]:
        """Get the original rows (read only; do not mutate)."""
        return self._base_rows

    def set_selection_provider(self, provider: SelectionProvider | None) -> None:
        """Set the callable that reports the grid's selected identities."""
        self._selection_provider = provider

    # --- Command Plumbing ---

    @contextmanager
    def _edit(self, description: str) -> Generator[ChangeOverlay, None, None]:
        """Run a command against a working copy of the overlay.

        The copy replaces the overlay only if the block finishes; an
        exception leaves the overlay as it was.
        """
        if self._current_draft is not None:
            raise RuntimeError("Cannot run a grid command while another is in progress")

        draft = self._overlay.copy()
        self._current_draft = draft
        try:
            yield draft
        finally:
            self._current_draft = None

        self._commit(draft, description)

    def _commit(self, draft: ChangeOverlay, description: str) -> None:
        """Replace the overlay with draft and notify if anything changed."""
        affected = self._diff_keys(self._overlay, draft)
        if not affected:
            logger.debug(f"{description}: overlay unchanged")
            return

        self._overlay = draft
        logger.debug(f"{description}: {len(affected)} row(s) affected, {len(draft)} pending")

        try:
            if self._config.on_change is not None:
                self._config.on_change(self.get_changes())
        finally:
            # Views must follow the committed overlay even if on_change raised
            self._notify_observers(affected)

    @staticmethod
    def _diff_keys(old: ChangeOverlay, new: ChangeOverlay) -> set[str]:
        """Get keys whose entry differs between two overlays."""
        affected: set[str] = set()
        for key in old.keys() | new.keys():
            if old.get(key) != new.get(key):
                affected.add(key)
        return affected

    def _resolve_ids(self, ids: Iterable[RowIdentity] | RowIdentity | None) -> list[str]:
        """Get identity keys for explicit ids, or the current selection when ids is None.

        Keys are unique and in first-seen order, so 1 and "1" name one row
        and a transform runs at most once per row.
        """
        if ids is None:
            if self._selection_provider is None:
                return []
            ids = self._selection_provider()
        elif isinstance(ids, (str, int)):
            ids = [ids]
        return list(dict.fromkeys(identity_key(row_id) for row_id in ids))

    def _notify_observers(self, affected_keys: set[str]) -> None:
        """Notify all observers of overlay changes."""
        for callback in list(self._observers):
            try:
                callback(self, affected_keys)
            except Exception:
                # Overlay is already committed; keep notifying the rest
                logger.exception(f"Grid observer {callback!r} failed")

    # --- Commands ---

    def add_row(self, row: Row) -> str:
        """Add a new row.

        Args:
            row: The row to add. A copy is stored.

        Returns:
            The identity key of the added row.

        Raises:
            MissingIdentityError: If the row has no identity value.
            IdentityCollisionError: If the identity exists and the config
                                    uses the REJECT collision policy.
        """
        try:
            with self._edit("add_row") as draft:
                key = self._reconciler.add_row(draft, row, self._config.collision_policy)
        except Exception as e:
            logger.warning(f"add_row rejected: {e}")
            raise
        return key

    @log_perf
    def delete_rows(self, ids: Iterable[RowIdentity] | None = None) -> None:
        """Mark rows deleted (added rows are dropped instead).

        Args:
            ids: Identities to delete. None uses the current selection.
        """
        keys = self._resolve_ids(ids)
        if not keys:
            return
        with self._edit(f"delete_rows({len(keys)})") as draft:
            self._reconciler.delete_rows(draft, keys)

    def delete_selected_rows(self) -> None:
        """Delete the rows currently selected in the grid."""
        self.delete_rows(None)

    @log_perf
    def modify_rows(
        self,
        ids: Iterable[RowIdentity] | None,
        transform: RowTransform,
    ) -> None:
        """Apply a transform to rows.

        The transform receives a deep copy of each row's current values. It
        may change the copy in place, or return a replacement row.

        Args:
            ids: Identities to modify. None uses the current selection.
            transform: Row mutator or row-returning function.
        """
        keys = self._resolve_ids(ids)
        if not keys:
            return
        with self._edit(f"modify_rows({len(keys)})") as draft:
            self._reconciler.modify_rows(draft, keys, transform)

    def modify_selected_rows(self, transform: RowTransform) -> None:
        """Apply a transform to the rows currently selected in the grid."""
        self.modify_rows(None, transform)

    def apply_cell_edit(self, row_id: RowIdentity, field_name: str, value: Any) -> None:
        """Handle a cell edit request from the grid.

        Args:
            row_id: Identity of the edited row.
            field_name: Field bound to the edited column.
            value: New cell value.
        """
        if not field_name:
            return
        with self._edit(f"cell_edit({field_name})") as draft:
            self._reconciler.apply_cell_edit(draft, row_id, field_name, value)

    def undo_row(self, row_id: RowIdentity) -> None:
        """Discard the pending change of one row, whatever its type."""
        with self._edit("undo_row") as draft:
            self._reconciler.undo_row(draft, row_id)

    def reset(self) -> None:
        """Discard all pending changes."""
        with self._edit("reset") as draft:
            self._reconciler.reset(draft)

    # --- Queries ---

    def get_changes(self) -> OverlaySnapshot:
        """Get a read-only copy of all pending changes."""
        return self._overlay.snapshot()

    def get_change(self, row_id: RowIdentity) -> Modification | None:
        """Get a copy of the pending change of one row, or None."""
        modification = self._overlay.get(row_id)
        return modification.copy() if modification is not None else None

    def project(self) -> list[ProjectedRow]:
        """Get the rows to render, with their display states."""
        return self._projector.project(self._base_rows, self._overlay)

    def get_row_state(self, row_id: RowIdentity) -> DisplayState:
        """Get the display state of a row."""
        return self._projector.display_state(self._overlay, identity_key(row_id))

    def get_base_row(self, row_id: RowIdentity) -> Row | None:
        """Get the original row for an identity (do not mutate it)."""
        return self._base_index.get(identity_key(row_id))

    def is_dirty(self, row_id: RowIdentity) -> bool:
        """Check if a row has a pending change."""
        return row_id in self._overlay

    def get_dirty_keys(self) -> set[str]:
        """Get all identity keys with pending changes."""
        return self._overlay.keys()

    def has_unsaved_changes(self) -> bool:
        """Check if there are any pending changes."""
        return len(self._overlay) > 0

    def get_total_modified_count(self) -> int:
        """Get total count of rows with pending changes."""
        return len(self._overlay)

    # --- Observers ---

    def add_observer(self, callback: Observer) -> None:
        """Add observer callback."""
        if callback not in self._observers:
            self._observers.append(callback)

    def remove_observer(self, callback: Observer) -> None:
        """Remove observer callback."""
        if callback in self._observers:
            self._observers.remove(callback)

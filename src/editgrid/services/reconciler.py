"""Edit reconciler: turns edit instructions into overlay entries.

Every instruction is decided from the current overlay, the base collection
and the instruction payload alone. The reconciler never touches the base
collection and never stores a row it did not copy itself.

State priority: DELETED > ADDED > MODIFIED > UNCHANGED. A deleted row cannot
be edited, an added row stays added whatever its values, and a base row whose
edits match the original again drops out of the overlay.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from ..data.change_overlay import ChangeOverlay
from ..debug_trace import logger
from ..models.constants import IdentityCollisionPolicy
from ..models.equality import Row, clone_row, deep_equal
from ..models.errors import IdentityCollisionError
from ..models.modification import Modification
from ..models.row_identity import IdentityResolver, RowIdentity, identity_key

# A transform may mutate the row it is given and return None,
# or return a replacement row.
RowTransform = Callable[[Row], "Row | None"]


def set_field_transform(field_name: str, value: Any) -> RowTransform:
    """Build the transform used for a single cell edit."""

    def _set_field(row: Row) -> None:
        row[field_name] = value

    return _set_field


def apply_transform(transform: RowTransform, row: Row) -> Row:
    """Run a transform on a private copy of a row.

    Args:
        transform: Mutator or row-returning function.
        row: Row to start from. It is not modified.

    Returns:
        A fresh row owned by the caller.
    """
    working = clone_row(row)
    result = transform(working)
    if result is None or result is working:
        return working
    if not isinstance(result, Mapping):
        raise TypeError(f"Row transform must return a mapping or None, got {type(result).__name__}")
    # The transform may hand back a row it still holds a reference to
    return clone_row(result)


class EditReconciler:
    """Applies the five edit instructions to a ChangeOverlay.

    The overlay passed in is normally a working copy; the caller commits it
    only when the instruction finishes, so an exception leaves nothing behind.

    Usage:
        reconciler = EditReconciler(resolver, store.get_base_row)
        draft = overlay.copy()
        reconciler.modify_rows(draft, {"1"}, lambda r: r.update(age=99))
    """

    def __init__(
        self,
        resolver: IdentityResolver,
        get_base_row: Callable[[RowIdentity], Row | None],
    ):
        """Initialize the reconciler.

        Args:
            resolver: Identity resolver for incoming rows.
            get_base_row: Looks up the original row for an identity, or None.
        """
        self._resolver = resolver
        self._get_base_row = get_base_row

    # --- Add ---

    def add_row(
        self,
        overlay: ChangeOverlay,
        row: Row,
        policy: IdentityCollisionPolicy = IdentityCollisionPolicy.OVERWRITE,
    ) -> str:
        """Track a new row as ADDED.

        Under OVERWRITE any existing entry for the identity is replaced,
        including DELETED. Under REJECT an identity already present in the
        base collection or the overlay raises.

        Returns:
            The overlay key of the added row.

        Raises:
            MissingIdentityError: If the row has no identity value.
            IdentityCollisionError: On a collision under REJECT.
        """
        key = self._resolver.key_of(row)

        if policy is IdentityCollisionPolicy.REJECT and (
            key in overlay or self._get_base_row(key) is not None
        ):
            raise IdentityCollisionError(key)

        previous = overlay.get(key)
        if previous is not None:
            logger.debug(f"add_row: {key!r} overwrites {previous.type} entry")

        overlay.set(key, Modification.added(clone_row(row)))
        return key

    # --- Delete ---

    def delete_rows(self, overlay: ChangeOverlay, ids: Iterable[RowIdentity]) -> None:
        """Mark rows deleted.

        An ADDED row was never committed, so it is dropped instead of being
        marked. Any MODIFIED data is discarded. Unknown ids are skipped.
        """
        for row_id in ids:
            key = identity_key(row_id)
            current = overlay.get(key)

            if current is not None and current.is_added:
                overlay.remove(key)
            elif current is not None or self._get_base_row(key) is not None:
                overlay.set(key, Modification.deleted())
            else:
                logger.debug(f"delete_rows: skipping unknown row {key!r}")

    # --- Modify ---

    def modify_rows(
        self,
        overlay: ChangeOverlay,
        ids: Iterable[RowIdentity],
        transform: RowTransform,
    ) -> None:
        """Apply a transform to each row and reconcile the result.

        1. DELETED rows are skipped.
        2. The transform runs on a copy of the current effective row.
        3. ADDED rows stay ADDED with the new data.
        4. Base rows become MODIFIED, or leave the overlay when the result
           equals the original row.
        """
        for row_id in ids:
            key = identity_key(row_id)
            current = overlay.get(key)

            if current is not None and current.is_deleted:
                logger.debug(f"modify_rows: {key!r} is deleted, skipping")
                continue

            original = self._get_base_row(key)
            if current is not None:
                effective = current.data
            elif original is not None:
                effective = original
            else:
                logger.debug(f"modify_rows: skipping unknown row {key!r}")
                continue

            updated = apply_transform(transform, effective)

            if current is not None and current.is_added:
                overlay.set(key, Modification.added(updated))
            elif original is not None and deep_equal(updated, original):
                # Edited back to the original values
                overlay.remove(key)
            else:
                overlay.set(key, Modification.modified(updated))

    def apply_cell_edit(
        self,
        overlay: ChangeOverlay,
        row_id: RowIdentity,
        field_name: str,
        value: Any,
    ) -> None:
        """Set one field of one row (single-row modify_rows)."""
        self.modify_rows(overlay, [row_id], set_field_transform(field_name, value))

    # --- Undo ---

    @staticmethod
    def undo_row(overlay: ChangeOverlay, row_id: RowIdentity) -> None:
        """Drop whatever entry a row has; absent entries are a no-op."""
        overlay.remove(row_id)

    @staticmethod
    def reset(overlay: ChangeOverlay) -> None:
        """Drop every entry."""
        overlay.clear()

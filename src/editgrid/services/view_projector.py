"""View projection: merges the base collection with the change overlay.

The projected view is derived on demand and never stored, so the display
state shown for a row can never drift from what the overlay tracks.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import NamedTuple

from ..data.change_overlay import ChangeOverlay
from ..debug_trace import perf_timer
from ..models.constants import DisplayState
from ..models.equality import Row, clone_row
from ..models.row_identity import IdentityResolver


class ProjectedRow(NamedTuple):
    """One row of the rendered grid."""

    key: str
    data: Row
    state: DisplayState


class ViewProjector:
    """Builds the ordered rows to render and their display states.

    Order: base rows in their original order (MODIFIED data substituted,
    DELETED rows kept with original values), then ADDED rows in the order
    they were added. A base row replaced by an added row with the same
    identity is shown as DELETED.

    Usage:
        projector = ViewProjector(resolver)
        for key, data, state in projector.project(base_rows, overlay):
            ...
    """

    def __init__(self, resolver: IdentityResolver):
        self._resolver = resolver

    @staticmethod
    def display_state(overlay: ChangeOverlay, key: str) -> DisplayState:
        """Get the display state of a row identity."""
        modification = overlay.get(key)
        if modification is None:
            return DisplayState.UNCHANGED
        return modification.display_state

    def project(self, base_rows: Sequence[Row], overlay: ChangeOverlay) -> list[ProjectedRow]:
        """Compute the projected view.

        Args:
            base_rows: The caller's original rows (not modified).
            overlay: Current change overlay.

        Returns:
            List of ProjectedRow. Engine-owned data is copied; base rows are
            passed through as-is.
        """
        with perf_timer("project", row_count=len(base_rows) + len(overlay)):
            result: list[ProjectedRow] = []

            for original in base_rows:
                key = self._resolver.key_of(original)
                modification = overlay.get(key)

                if modification is None:
                    result.append(ProjectedRow(key, original, DisplayState.UNCHANGED))
                elif modification.is_modified:
                    result.append(
                        ProjectedRow(key, clone_row(modification.data), DisplayState.MODIFIED)
                    )
                else:
                    # Original values shown as deleted. An ADDED entry at a base
                    # identity supersedes the base row; its data is appended below
                    result.append(ProjectedRow(key, original, DisplayState.DELETED))

            for key, modification in overlay.added_entries():
                result.append(ProjectedRow(key, clone_row(modification.data), DisplayState.ADDED))

            return result


def selected_identities(view: Sequence[ProjectedRow], indices: Iterable[int]) -> set[str]:
    """Map grid row indices to row identities.

    Args:
        view: The projected view currently shown.
        indices: Selected row indices (out-of-range ones are ignored).

    Returns:
        Set of identity keys.
    """
    count = len(view)
    return {view[idx].key for idx in indices if 0 <= idx < count}

"""Panel widget for an editable grid backed by an EditableGridStore.

Uses tksheet for table display in read-only-edit mode: the sheet never
writes an edited value itself. Each edit is handed to the store, and the
sheet is redrawn from the store's projected view.
"""

from __future__ import annotations

import tkinter as tk
from collections.abc import Sequence
from tkinter import ttk

from tksheet import Sheet

from ..data.grid_store import EditableGridStore
from ..debug_trace import logger, perf_timer
from ..models.column_def import ColumnDef
from ..models.constants import COL_UNDO, UNDO_COLUMN_WIDTH, UNDO_LABEL, DisplayState
from ..services.view_projector import ProjectedRow, selected_identities
from .row_styler import GridRowStyler


class EditableGridPanel(ttk.Frame):
    """Panel displaying the projected view of a grid store.

    Column 0 is a pinned undo column: clicking "Undo" on a changed row
    discards that row's pending change. The remaining columns follow the
    given column definitions; non-editable ones are read-only.

    Edits are routed to the store by row identity. A base row replaced by an
    added row of the same identity is shown as deleted and ignores edits;
    the added row below it is the one to edit.
    """

    def _row_cells(self, projected: ProjectedRow) -> list[str]:
        """Build display cells for one row (undo cell first)."""
        undo_cell = UNDO_LABEL if projected.state is not DisplayState.UNCHANGED else ""
        return [undo_cell] + [
            column.format_value(projected.data.get(column.field)) for column in self.columns
        ]

    def _populate_sheet(self) -> None:
        """Redraw the sheet from the store's projected view."""
        self._refresh_after_id = None
        self._view = self.store.project()

        with perf_timer("populate_sheet", row_count=len(self._view)):
            data = [self._row_cells(projected) for projected in self._view]

            self.sheet.set_sheet_data(data, reset_col_positions=False)
            self.sheet.set_index_data([str(i + 1) for i in range(len(self._view))])
            self.styler.apply_all_styling()
            self._update_status()

    def _schedule_refresh(self) -> None:
        """Redraw once the current Tk callback has returned."""
        if self._refresh_after_id is None:
            self._refresh_after_id = self.after_idle(self._populate_sheet)

    def _on_store_changed(self, store: EditableGridStore, affected_keys: set[str]) -> None:
        """Handle overlay changes from the store."""
        logger.debug(f"Grid panel refresh for {len(affected_keys)} changed row(s)")
        self._schedule_refresh()

    def _update_status(self) -> None:
        """Update the status label."""
        pending = self.store.get_total_modified_count()
        dirty_text = f" ({pending} pending change{'s' if pending != 1 else ''})" if pending else ""
        self.status_label.config(text=f"Rows: {len(self._view)}{dirty_text}")

    def _column_at(self, sheet_col: int) -> ColumnDef | None:
        """Get the column definition for a sheet column (None for undo)."""
        idx = sheet_col - 1
        if 0 <= idx < len(self.columns):
            return self.columns[idx]
        return None

    def _validate_edit(self, event) -> None:
        """Route a cell edit to the store instead of writing it to the sheet.

        Args:
            event: The edit validation event from tksheet

        Returns:
            None, so tksheet discards the edit; the redraw shows the result.
        """
        column = self._column_at(getattr(event, "column", -1))
        row_idx = getattr(event, "row", -1)
        if column is None or not column.editable or not 0 <= row_idx < len(self._view):
            return None

        projected = self._view[row_idx]
        if projected.state is DisplayState.DELETED:
            return None

        try:
            value = column.coerce(event.value)
        except ValueError as e:
            logger.warning(f"Ignoring edit of {column.field!r}: {e}")
            return None

        self.store.apply_cell_edit(projected.key, column.field, value)
        return None

    def _on_cell_select(self, event) -> None:
        """Handle clicks on the undo column."""
        selected = getattr(event, "selected", None)
        if not selected or selected.column != COL_UNDO:
            return
        if not 0 <= selected.row < len(self._view):
            return

        projected = self._view[selected.row]
        if projected.state is not DisplayState.UNCHANGED:
            self.store.undo_row(projected.key)

    def _create_widgets(self) -> None:
        """Create all panel widgets."""
        self.sheet = Sheet(
            self,
            headers=[""] + [column.title for column in self.columns],
            show_row_index=True,
            height=400,
            width=600,
        )
        self.sheet.pack(fill=tk.BOTH, expand=True, padx=5, pady=5)

        # Enable standard bindings
        self.sheet.enable_bindings()

        # Rows are added and removed through the store only
        self.sheet.disable_bindings(
            "column_drag_and_drop",
            "row_drag_and_drop",
            "rc_select_column",
            "rc_insert_column",
            "rc_delete_column",
            "rc_insert_row",
            "rc_delete_row",
            "sort_cells",
            "sort_row",
            "sort_column",
            "sort_rows",
            "sort_columns",
        )

        self.sheet.set_column_widths([UNDO_COLUMN_WIDTH] + [c.width for c in self.columns])
        self.sheet.row_index(40)

        readonly = [COL_UNDO] + [
            idx + 1 for idx, column in enumerate(self.columns) if not column.editable
        ]
        self.sheet.readonly_columns(readonly)

        self.sheet.edit_validation(self._validate_edit)
        self.sheet.extra_bindings("cell_select", self._on_cell_select)

        self.styler = GridRowStyler(
            sheet=self.sheet,
            get_rows=lambda: self._view,
            num_columns=len(self.columns) + 1,
        )

        # Footer with status
        footer = ttk.Frame(self)
        footer.pack(fill=tk.X, padx=5, pady=(2, 5))

        self.status_label = ttk.Label(footer, text="")
        self.status_label.pack(side=tk.LEFT)

    def _on_destroy(self, event) -> None:
        """Handle panel destruction."""
        # Only handle destruction of this widget, not children
        if event.widget == self:
            self.store.remove_observer(self._on_store_changed)
            self.store.set_selection_provider(None)

    def __init__(
        self,
        parent: tk.Widget,
        store: EditableGridStore,
        columns: Sequence[ColumnDef],
    ):
        """Initialize the grid panel.

        Args:
            parent: Parent widget
            store: The grid store to display and edit
            columns: Column definitions, in display order
        """
        super().__init__(parent)

        self.store = store
        self.columns = list(columns)

        self._view: list[ProjectedRow] = []
        self._refresh_after_id: str | None = None

        self._create_widgets()
        self._populate_sheet()

        store.add_observer(self._on_store_changed)
        store.set_selection_provider(self.get_selected_ids)

        # Stop observing when panel is destroyed
        self.bind("<Destroy>", self._on_destroy)

    # --- Public API ---

    def get_selected_ids(self) -> set[str]:
        """Get identities of the rows selected in the sheet."""
        return selected_identities(self._view, self.sheet.get_selected_rows())

    def deselect_all(self) -> None:
        """Clear the sheet selection."""
        self.sheet.deselect()

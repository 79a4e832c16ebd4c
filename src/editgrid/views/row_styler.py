"""Row styling logic for the editable grid sheet.

Encapsulates all visual styling derived from display states: green for
added rows, yellow for modified rows, red with dimmed text for deleted rows,
plus a matching tint on the row index.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING

from ..models.constants import (
    COLOR_DELETED_FG,
    STATE_BG_COLORS,
    STATE_INDEX_COLORS,
    DisplayState,
)

if TYPE_CHECKING:
    from tksheet import Sheet

    from ..services.view_projector import ProjectedRow


class GridRowStyler:
    """Encapsulates ALL styling logic for the grid sheet.

    Styling is recomputed from the projected view every time; nothing about
    a row's state is remembered between refreshes.

    Usage:
        styler = GridRowStyler(
            sheet=self.sheet,
            get_rows=lambda: self._view,
            num_columns=len(self.columns) + 1,
        )
        styler.apply_all_styling()  # After every sheet redraw
    """

    def __init__(
        self,
        sheet: Sheet,
        get_rows: Callable[[], Sequence[ProjectedRow]],
        num_columns: int,
    ):
        """Initialize the styler.

        Args:
            sheet: The tksheet Sheet instance
            get_rows: Callable returning the current projected view
            num_columns: Number of sheet columns (including the undo column)
        """
        self.sheet = sheet
        self._get_rows = get_rows
        self._num_columns = num_columns

    def _apply_row_highlights(self, data_idx: int) -> None:
        """Apply highlights for a single row."""
        state = self._get_rows()[data_idx].state
        if state is DisplayState.UNCHANGED:
            return

        fg = COLOR_DELETED_FG if state is DisplayState.DELETED else "black"
        for col in range(self._num_columns):
            self.sheet.highlight_cells(
                row=data_idx,
                column=col,
                bg=STATE_BG_COLORS[state],
                fg=fg,
            )

        self.sheet.highlight_cells(
            row=data_idx,
            bg=STATE_INDEX_COLORS[state],
            canvas="row_index",
        )

    # --- Public API ---

    def apply_all_styling(self) -> None:
        """Apply full styling refresh (dehighlight all, then apply).

        Call after the sheet data was replaced.
        """
        self.sheet.dehighlight_all()
        for data_idx in range(len(self._get_rows())):
            self._apply_row_highlights(data_idx)

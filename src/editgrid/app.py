"""Demo application for the editable grid.

Left pane: toolbar and grid. Right pane: the pending changes as JSON,
updated after every edit.
"""

from __future__ import annotations

import json
import tkinter as tk
from collections.abc import Mapping
from tkinter import messagebox, simpledialog, ttk

from .data.grid_config import GridConfig
from .data.grid_store import EditableGridStore
from .debug_trace import logger, setup_debug_logging
from .demo_data import (
    COLUMN_DEFS,
    ID_FIELD,
    INITIAL_DATA,
    new_row,
    toggle_vegetarian,
    validate_new_name,
)
from .models.modification import Modification, changes_to_dict
from .views.grid_panel import EditableGridPanel


def get_version():
    """Get version from package metadata."""
    try:
        from importlib.metadata import version

        return version("editgrid")
    except Exception:
        return "Development"


class EditableGridDemo:
    """Main window of the demo application."""

    def _on_changes(self, changes: Mapping[str, Modification]) -> None:
        """Show the latest change set in the diff pane."""
        text = json.dumps(changes_to_dict(changes), indent=2)
        self.diff_text.config(state=tk.NORMAL)
        self.diff_text.delete("1.0", tk.END)
        self.diff_text.insert("1.0", text)
        self.diff_text.config(state=tk.DISABLED)

    def _add_row(self) -> None:
        name = simpledialog.askstring(
            "Add Row", "Enter unique name for the new row:", parent=self.root
        )
        if name is None:
            return

        existing = [projected.key for projected in self.store.project()]
        is_valid, error = validate_new_name(name, existing)
        if not is_valid:
            messagebox.showwarning("Add Row", error, parent=self.root)
            return

        self.store.add_row(new_row(name))

    def _delete_rows(self) -> None:
        self.store.delete_selected_rows()
        self.grid_panel.deselect_all()

    def _reset(self) -> None:
        self.store.reset()

    def _toggle_vegetarian(self) -> None:
        self.store.modify_selected_rows(toggle_vegetarian)

    def _create_toolbar(self, parent: ttk.Frame) -> None:
        toolbar = ttk.Frame(parent)
        toolbar.pack(fill=tk.X, padx=5, pady=5)

        for text, command in (
            ("Add Row", self._add_row),
            ("Delete Rows", self._delete_rows),
            ("Reset", self._reset),
            ("Toggle Vegetarian", self._toggle_vegetarian),
        ):
            ttk.Button(toolbar, text=text, command=command).pack(side=tk.LEFT, padx=(0, 5))

    def _create_widgets(self) -> None:
        paned = ttk.PanedWindow(self.root, orient=tk.HORIZONTAL)
        paned.pack(fill=tk.BOTH, expand=True)

        # Left pane - grid with toolbar
        left = ttk.Frame(paned)
        self._create_toolbar(left)
        self.grid_panel = EditableGridPanel(left, self.store, COLUMN_DEFS)
        self.grid_panel.pack(fill=tk.BOTH, expand=True)
        paned.add(left, weight=1)

        # Right pane - JSON diff
        right = ttk.Frame(paned)
        ttk.Label(right, text="Changes (Delta/Diff)", font=("TkDefaultFont", 12, "bold")).pack(
            anchor=tk.W, padx=5, pady=5
        )
        self.diff_text = tk.Text(right, width=50, font=("TkFixedFont", 10), state=tk.DISABLED)
        self.diff_text.pack(fill=tk.BOTH, expand=True, padx=5, pady=(0, 5))
        paned.add(right, weight=1)

    def __init__(self):
        self.root = tk.Tk()
        self.root.title(f"Editable Grid Demo {get_version()}")
        self.root.geometry("1100x500")

        self.store = EditableGridStore(
            INITIAL_DATA,
            GridConfig(id_field=ID_FIELD, on_change=self._on_changes),
        )

        self._create_widgets()
        self._on_changes(self.store.get_changes())

    def run(self) -> None:
        logger.debug("Starting editable grid demo")
        self.root.mainloop()


def main() -> None:
    """Entry point for the demo application."""
    setup_debug_logging()
    app = EditableGridDemo()
    app.run()


def main_debug() -> None:
    """Entry point with debug logging on the console."""
    setup_debug_logging(debug=True)
    app = EditableGridDemo()
    app.run()


if __name__ == "__main__":
    main()

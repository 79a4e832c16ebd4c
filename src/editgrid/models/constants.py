# ==============================================================================
# Row Modification States
# ==============================================================================

from enum import Enum, IntEnum


class RowModificationState(str, Enum):
    """Kind of pending edit stored in the change overlay.

    The value is the "type" string used when a change set is shown as JSON.
    """

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"


class DisplayState(IntEnum):
    """Per-row visual classification, ordered by priority.

    DELETED > ADDED > MODIFIED > UNCHANGED
    """

    UNCHANGED = 0
    MODIFIED = 1
    ADDED = 2
    DELETED = 3


# Overlay state -> display state
MODIFICATION_TO_DISPLAY: dict[RowModificationState, DisplayState] = {
    RowModificationState.ADDED: DisplayState.ADDED,
    RowModificationState.MODIFIED: DisplayState.MODIFIED,
    RowModificationState.DELETED: DisplayState.DELETED,
}


# ==============================================================================
# Identity Handling
# ==============================================================================


class IdentityCollisionPolicy(str, Enum):
    """What add_row does when the new row's identity is already known."""

    OVERWRITE = "overwrite"  # Replace any entry with Added (last write wins)
    REJECT = "reject"  # Raise IdentityCollisionError, overlay untouched


# Identity values the engine accepts (bool is excluded explicitly)
IDENTITY_TYPES: tuple[type, ...] = (str, int)


# ==============================================================================
# Grid Styling
# ==============================================================================

# Row background by display state (no entry means default background)
STATE_BG_COLORS: dict[DisplayState, str] = {
    DisplayState.ADDED: "#dcfce7",  # green-100
    DisplayState.MODIFIED: "#fef9c3",  # yellow-100
    DisplayState.DELETED: "#fee2e2",  # red-100
}

# Deleted rows get dimmed text in place of a strike-through
COLOR_DELETED_FG = "#9ca3af"

# Row index tint by display state
STATE_INDEX_COLORS: dict[DisplayState, str] = {
    DisplayState.ADDED: "#86efac",
    DisplayState.MODIFIED: "#fde047",
    DisplayState.DELETED: "#fca5a5",
}

# Undo column (pinned first column of the grid)
COL_UNDO = 0
UNDO_LABEL = "Undo"
UNDO_COLUMN_WIDTH = 60
DEFAULT_COLUMN_WIDTH = 140

"""Editable grid change-overlay engine.

Tracks pending row edits (add, modify, delete) as a delta over an immutable
base collection, projects the merged view, and supports per-row undo and
global reset.
"""

from .data.change_overlay import ChangeOverlay, OverlaySnapshot
from .data.grid_config import GridConfig
from .data.grid_store import EditableGridStore
from .models.constants import DisplayState, IdentityCollisionPolicy, RowModificationState
from .models.errors import (
    ConfigurationError,
    DuplicateIdentityError,
    EditGridError,
    IdentityCollisionError,
    MissingIdentityError,
)
from .models.modification import Modification, changes_to_dict
from .services.view_projector import ProjectedRow

__all__ = [
    "ChangeOverlay",
    "ConfigurationError",
    "DisplayState",
    "DuplicateIdentityError",
    "EditGridError",
    "EditableGridStore",
    "GridConfig",
    "IdentityCollisionError",
    "IdentityCollisionPolicy",
    "MissingIdentityError",
    "Modification",
    "OverlaySnapshot",
    "ProjectedRow",
    "RowModificationState",
    "changes_to_dict",
]

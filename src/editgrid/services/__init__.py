"""Service layer for the change-overlay engine.

Services:
- EditReconciler: decides the overlay entry produced by each edit instruction
- ViewProjector: merges base collection and overlay into the rendered rows

Services hold no overlay of their own. EditableGridStore owns the overlay
and runs every instruction against a working copy before committing it.
"""

from .reconciler import EditReconciler, apply_transform, set_field_transform
from .view_projector import ProjectedRow, ViewProjector, selected_identities

__all__ = [
    "EditReconciler",
    "ProjectedRow",
    "ViewProjector",
    "apply_transform",
    "selected_identities",
    "set_field_transform",
]

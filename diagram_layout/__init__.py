"""Automatic layout and grouping for node/edge diagrams."""

__version__ = "0.1.0"

from diagram_layout.layout import (
    apply_grouping,
    auto_layout,
    fit_group_bounds,
    get_layouted_elements,
    layout_generated_diagram,
    resolve_collisions,
)
from diagram_layout.models import (
    CollisionOptions,
    GroupMetadata,
    LayoutAlgorithm,
    LayoutDirection,
    LayoutEdge,
    LayoutNode,
    LayoutResult,
)

__all__ = [
    "apply_grouping",
    "auto_layout",
    "fit_group_bounds",
    "get_layouted_elements",
    "layout_generated_diagram",
    "resolve_collisions",
    "CollisionOptions",
    "GroupMetadata",
    "LayoutAlgorithm",
    "LayoutDirection",
    "LayoutEdge",
    "LayoutNode",
    "LayoutResult",
]

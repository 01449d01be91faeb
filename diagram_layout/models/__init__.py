"""Pydantic value types for layout calls."""

from .layout_models import (
    AlgorithmFamily,
    BoundingBox,
    CollisionOptions,
    Dimensions,
    GroupMetadata,
    Handle,
    LayoutAlgorithm,
    LayoutDirection,
    LayoutEdge,
    LayoutNode,
    LayoutResult,
    LayoutSpacing,
    NodeStyle,
    NodeType,
    Position,
    Size,
)

__all__ = [
    "AlgorithmFamily",
    "BoundingBox",
    "CollisionOptions",
    "Dimensions",
    "GroupMetadata",
    "Handle",
    "LayoutAlgorithm",
    "LayoutDirection",
    "LayoutEdge",
    "LayoutNode",
    "LayoutResult",
    "LayoutSpacing",
    "NodeStyle",
    "NodeType",
    "Position",
    "Size",
]

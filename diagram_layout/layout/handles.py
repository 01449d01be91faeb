"""Edge handle normalization.

Decides which side of a node each edge leaves from and enters at. Edges
inside the strict hierarchy (mind map) always follow the layout direction
and get the dedicated connector type; other edges keep the handles the
caller supplied, and ``infer_handles`` fills missing ones from geometry.
"""

import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from diagram_layout.layout.geometry import absolute_positions
from diagram_layout.layout.sizing import SizePolicy, resolve_size
from diagram_layout.models.layout_models import (
    Handle,
    LayoutDirection,
    LayoutEdge,
    LayoutNode,
)

logger = logging.getLogger(__name__)

HIERARCHY_EDGE_TYPE = "hierarchy_connector"

_DIRECTION_HANDLES: Dict[LayoutDirection, Tuple[Handle, Handle]] = {
    LayoutDirection.DOWN: (Handle.BOTTOM, Handle.TOP),
    LayoutDirection.UP: (Handle.TOP, Handle.BOTTOM),
    LayoutDirection.RIGHT: (Handle.RIGHT, Handle.LEFT),
    LayoutDirection.LEFT: (Handle.LEFT, Handle.RIGHT),
}


def handle_ids(direction: LayoutDirection) -> Tuple[Handle, Handle]:
    """(source handle, target handle) dictated by a layout direction."""
    return _DIRECTION_HANDLES[LayoutDirection.coerce(direction)]


def hierarchy_node_ids(nodes: List[LayoutNode]) -> Set[str]:
    return {node.id for node in nodes if node.is_hierarchy}


def apply_node_handles(nodes: List[LayoutNode], direction: LayoutDirection) -> List[LayoutNode]:
    """Copy of ``nodes`` with source/target sides set from the direction."""
    source, target = handle_ids(direction)
    return [
        node.model_copy(update={"source_position": source, "target_position": target})
        for node in nodes
    ]


def normalize_handles(
    nodes: List[LayoutNode],
    edges: List[LayoutEdge],
    direction: LayoutDirection,
    hierarchy_ids: Optional[Iterable[str]] = None,
) -> List[LayoutEdge]:
    """Force direction handles on strict-hierarchy edges.

    Edges with both endpoints in the hierarchy subset get the handle pair
    of ``direction`` and the hierarchy connector type, regardless of where
    the nodes ended up. All other edges are returned unchanged.

    Args:
        nodes: Laid out nodes
        edges: Edges to normalize
        direction: Layout direction
        hierarchy_ids: The hierarchy subset; the mind map nodes if None
    """
    hierarchy = hierarchy_node_ids(nodes) if hierarchy_ids is None else set(hierarchy_ids)
    if not hierarchy:
        return list(edges)
    source, target = handle_ids(direction)

    normalized = []
    for edge in edges:
        if edge.source in hierarchy and edge.target in hierarchy:
            edge = edge.model_copy(update={
                "source_handle": source.value,
                "target_handle": target.value,
                "type": HIERARCHY_EDGE_TYPE,
                "data": {**edge.data, "connector_type": "default"},
            })
        normalized.append(edge)
    return normalized


def infer_handle_pair(
    source_center: Tuple[float, float], target_center: Tuple[float, float]
) -> Tuple[Handle, Handle]:
    """Handles for an edge from the relative position of its endpoints.

    A mostly horizontal edge uses left/right sides, a mostly vertical one
    top/bottom; ties count as horizontal.
    """
    dx = target_center[0] - source_center[0]
    dy = target_center[1] - source_center[1]
    if abs(dx) >= abs(dy):
        return (Handle.RIGHT, Handle.LEFT) if dx >= 0 else (Handle.LEFT, Handle.RIGHT)
    return (Handle.BOTTOM, Handle.TOP) if dy >= 0 else (Handle.TOP, Handle.BOTTOM)


def infer_handles(
    nodes: List[LayoutNode],
    edges: List[LayoutEdge],
    policy: Optional[SizePolicy] = None,
) -> List[LayoutEdge]:
    """Fill in missing handles from absolute node centers.

    Handles the caller already set are kept; edges with an unknown
    endpoint are returned unchanged.
    """
    by_id = {node.id: node for node in nodes}
    absolute = absolute_positions(nodes)

    def center(node_id: str) -> Tuple[float, float]:
        x, y = absolute[node_id]
        size = resolve_size(by_id[node_id], policy)
        return x + size.width / 2, y + size.height / 2

    result = []
    for edge in edges:
        if edge.source_handle and edge.target_handle:
            result.append(edge)
            continue
        if edge.source not in by_id or edge.target not in by_id:
            result.append(edge)
            continue
        source, target = infer_handle_pair(center(edge.source), center(edge.target))
        result.append(edge.model_copy(update={
            "source_handle": edge.source_handle or source.value,
            "target_handle": edge.target_handle or target.value,
        }))
    return result

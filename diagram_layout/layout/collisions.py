"""Overlap removal by pairwise relaxation.

Every pair of nodes that are not ancestor-related is compared on absolute
rectangles: a container and its contents are allowed to overlap, while
nodes in different containers must stay apart like any other pair. A
pushed node carries its descendants along.

Each pass pushes every overlapping pair apart along the axis of least
penetration, half the depth per node. Passes repeat until one finishes
without corrections or ``max_iterations`` is reached, so the result is a
best effort for dense layouts.
"""

import logging
from typing import Dict, List, Optional, Set, Tuple

from diagram_layout.layout.geometry import Rect, absolute_positions, node_rect
from diagram_layout.layout.grouping import fit_group
from diagram_layout.layout.sizing import SizePolicy
from diagram_layout.models.layout_models import CollisionOptions, LayoutNode

logger = logging.getLogger(__name__)


def _parents(nodes: List[LayoutNode]) -> Dict[str, Optional[str]]:
    """Parent per node; dangling parents count as top level."""
    node_ids = {node.id for node in nodes}
    return {
        node.id: node.parent_id if node.parent_id in node_ids else None
        for node in nodes
    }


def _frames(nodes: List[LayoutNode]) -> Dict[Optional[str], List[LayoutNode]]:
    """Sibling sets keyed by parent id."""
    parent_map = _parents(nodes)
    frames: Dict[Optional[str], List[LayoutNode]] = {}
    for node in nodes:
        frames.setdefault(parent_map[node.id], []).append(node)
    return frames


def _ancestors(node_id: str, parent_map: Dict[str, Optional[str]]) -> List[str]:
    chain: List[str] = []
    parent = parent_map.get(node_id)
    while parent is not None and parent != node_id and parent not in chain:
        chain.append(parent)
        parent = parent_map.get(parent)
    return chain


def relax(
    boxes: List[Rect],
    options: CollisionOptions,
    related: Optional[Set[Tuple[int, int]]] = None,
    carried: Optional[Dict[int, List[int]]] = None,
    shifts: Optional[List[List[float]]] = None,
) -> int:
    """Push overlapping boxes apart in place.

    Args:
        boxes: Margin-expanded rectangles, updated in place
        options: Iteration budget and overlap threshold
        related: Index pairs ``(i, j)`` with ``i < j`` that may overlap
        carried: Box index -> indices of the boxes that move with it
        shifts: Per box [dx, dy] of its own moves, accumulated in place

    Returns:
        Number of passes that made corrections
    """
    related = related or set()
    carried = carried or {}
    pairs = [
        (i, j)
        for i in range(len(boxes))
        for j in range(i + 1, len(boxes))
        if (i, j) not in related
    ]

    def push(index: int, dx: float, dy: float) -> None:
        if shifts is not None:
            shifts[index][0] += dx
            shifts[index][1] += dy
        for k in (index, *carried.get(index, ())):
            boxes[k].x += dx
            boxes[k].y += dy

    threshold = options.overlap_threshold
    passes = 0
    for _ in range(options.max_iterations):
        moved = False
        for i, j in pairs:
            a, b = boxes[i], boxes[j]
            (ax, ay), (bx, by) = a.center, b.center
            dx, dy = ax - bx, ay - by
            px, py = a.overlap(b)
            if px <= threshold or py <= threshold:
                continue
            moved = True
            if px < py:
                shift = px / 2 if dx > 0 else -px / 2
                push(i, shift, 0.0)
                push(j, -shift, 0.0)
            else:
                shift = py / 2 if dy > 0 else -py / 2
                push(i, 0.0, shift)
                push(j, 0.0, -shift)
        if not moved:
            break
        passes += 1
    return passes


def _resolve_frame(
    siblings: List[LayoutNode],
    options: CollisionOptions,
    policy: Optional[SizePolicy],
) -> List[LayoutNode]:
    if len(siblings) < 2:
        return list(siblings)

    margin = options.margin
    boxes = [node_rect(node, policy).expanded(margin) for node in siblings]
    start = [(box.x, box.y) for box in boxes]
    passes = relax(boxes, options)
    if passes:
        logger.debug(f"Collision relaxation took {passes} pass(es) for {len(siblings)} nodes")

    result = []
    for node, box, origin in zip(siblings, boxes, start):
        if (box.x, box.y) == origin:
            result.append(node)
        else:
            result.append(node.moved_to(box.x + margin, box.y + margin))
    return result


def resolve_collisions(
    nodes: List[LayoutNode],
    options: Optional[CollisionOptions] = None,
    policy: Optional[SizePolicy] = None,
) -> List[LayoutNode]:
    """Separate overlapping nodes that are not ancestor-related.

    Ownership never changes; a node pushed out of its container stays
    parented to it (``resolve_collisions_with_groups`` refits containers
    instead).

    Args:
        nodes: Current snapshot
        options: Relaxation tuning (defaults: 50 passes, 0.5px, 15px margin)
        policy: Size policy for the node rectangles

    Returns:
        New node list in input order; nodes that did not move are returned as-is
    """
    options = options or CollisionOptions()
    if len(nodes) < 2:
        return list(nodes)

    parent_map = _parents(nodes)
    index = {node.id: i for i, node in enumerate(nodes)}
    absolute = absolute_positions(nodes)
    margin = options.margin
    boxes = [node_rect(node, policy, absolute[node.id]).expanded(margin) for node in nodes]

    related: Set[Tuple[int, int]] = set()
    carried: Dict[int, List[int]] = {}
    for node in nodes:
        i = index[node.id]
        for ancestor in _ancestors(node.id, parent_map):
            j = index[ancestor]
            related.add((min(i, j), max(i, j)))
            carried.setdefault(j, []).append(i)

    shifts = [[0.0, 0.0] for _ in nodes]
    passes = relax(boxes, options, related, carried, shifts)
    if passes:
        logger.debug(f"Collision relaxation took {passes} pass(es) for {len(nodes)} nodes")

    result = []
    for node, (dx, dy) in zip(nodes, shifts):
        if dx == 0 and dy == 0:
            result.append(node)
        else:
            result.append(node.moved_to(node.position.x + dx, node.position.y + dy))
    return result


def resolve_collisions_with_groups(
    nodes: List[LayoutNode],
    options: Optional[CollisionOptions] = None,
    policy: Optional[SizePolicy] = None,
) -> List[LayoutNode]:
    """Separate overlapping siblings and keep groups fitted to their contents.

    Frames are processed deepest first; after a group's children are
    separated the group is refit, so its parent frame sees the final size.
    """
    options = options or CollisionOptions()
    frames = _frames(nodes)
    parent_map = {node.id: node.parent_id for node in nodes}

    def depth(frame: Optional[str]) -> int:
        level = 0
        seen = set()
        while frame is not None and frame not in seen:
            seen.add(frame)
            level += 1
            frame = parent_map.get(frame)
        return level

    current = {node.id: node for node in nodes}
    for frame in sorted(frames, key=depth, reverse=True):
        siblings = [current[node.id] for node in frames[frame]]
        siblings = _resolve_frame(siblings, options, policy)
        if frame is not None and current[frame].is_group:
            group, siblings = fit_group(current[frame], siblings, policy)
            current[frame] = group
        for node in siblings:
            current[node.id] = node

    return [current[node.id] for node in nodes]

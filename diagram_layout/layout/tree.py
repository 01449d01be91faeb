"""Tree and cluster placement.

Trees are laid out on a uniform slot grid: every node gets one breadth
slot per leaf below it and one depth level per generation. Consecutive
leaves with different parents are separated by two slots instead of one,
which keeps sibling groups visually apart. The ``tree`` variant puts each
node on its own depth; the ``cluster`` variant aligns all leaves on the
deepest level.
"""

from collections import deque
from typing import Dict, List, Optional, Sequence, Tuple

from diagram_layout.models.layout_models import LayoutDirection

TREE = "tree"
CLUSTER = "cluster"


def spanning_forest(
    order: Sequence[str], edges: Sequence[Tuple[str, str]]
) -> Tuple[List[str], Dict[str, List[str]]]:
    """Breadth-first spanning forest of a directed graph.

    Roots are the nodes without incoming edges, in ``order``; nodes only
    reachable through cycles become roots in ``order`` as well. A node's
    parent is the first node that discovers it.

    Returns:
        (roots, children) where children maps every node to its tree children
    """
    adjacency: Dict[str, List[str]] = {node: [] for node in order}
    in_degree: Dict[str, int] = {node: 0 for node in order}
    for source, target in edges:
        if source == target or source not in adjacency or target not in adjacency:
            continue
        adjacency[source].append(target)
        in_degree[target] += 1

    children: Dict[str, List[str]] = {node: [] for node in order}
    visited = set()
    roots: List[str] = []

    def grow(root: str) -> None:
        visited.add(root)
        queue = deque([root])
        while queue:
            node = queue.popleft()
            for target in adjacency[node]:
                if target not in visited:
                    visited.add(target)
                    children[node].append(target)
                    queue.append(target)

    for node in order:
        if in_degree[node] == 0 and node not in visited:
            roots.append(node)
            grow(node)
    for node in order:
        if node not in visited:
            roots.append(node)
            grow(node)

    return roots, children


def tree_levels(
    root: str, children: Dict[str, List[str]], variant: str = TREE
) -> Dict[str, Tuple[float, int]]:
    """Slot coordinates of every node below ``root``.

    Returns:
        node id -> (breadth slot relative to the root, depth level)
    """
    preorder: List[str] = []
    stack = [root]
    while stack:
        node = stack.pop()
        preorder.append(node)
        stack.extend(reversed(children.get(node, [])))

    parent: Dict[str, Optional[str]] = {root: None}
    depth: Dict[str, int] = {root: 0}
    for node in preorder:
        for child in children.get(node, []):
            parent[child] = node
            depth[child] = depth[node] + 1

    breadth: Dict[str, float] = {}
    cursor = 0.0
    previous: Optional[str] = None
    for node in preorder:
        if children.get(node):
            continue
        if previous is not None:
            cursor += 1.0 if parent[node] == parent[previous] else 2.0
        breadth[node] = cursor
        previous = node

    height: Dict[str, int] = {}
    for node in reversed(preorder):
        kids = children.get(node, [])
        if not kids:
            height[node] = 0
            continue
        height[node] = 1 + max(height[kid] for kid in kids)
        if variant == CLUSTER:
            breadth[node] = sum(breadth[kid] for kid in kids) / len(kids)
        else:
            breadth[node] = (breadth[kids[0]] + breadth[kids[-1]]) / 2

    offset = breadth[root]
    levels: Dict[str, Tuple[float, int]] = {}
    for node in preorder:
        level = depth[node] if variant != CLUSTER else height[root] - height[node]
        levels[node] = (breadth[node] - offset, level)
    return levels


def map_tree_point(
    breadth: float,
    depth: float,
    size: Tuple[float, float],
    direction: LayoutDirection,
) -> Tuple[float, float]:
    """Top-left corner of a node centered at tree coordinates (breadth, depth).

    The tree grows along +depth; for left/right layouts the axes are
    swapped and for up/left the depth axis is flipped.
    """
    width, height = size
    if direction is LayoutDirection.DOWN:
        return breadth - width / 2, depth - height / 2
    if direction is LayoutDirection.UP:
        return breadth - width / 2, -depth - height / 2
    if direction is LayoutDirection.RIGHT:
        return depth - width / 2, breadth - height / 2
    return -depth - width / 2, breadth - height / 2


def slot_steps(
    sizes: Dict[str, Tuple[float, float]],
    direction: LayoutDirection,
    spacing: Tuple[float, float],
) -> Tuple[float, float]:
    """Uniform (breadth, depth) step for a set of node sizes."""
    if direction.is_horizontal:
        breadth_extent = max(h for _, h in sizes.values())
        depth_extent = max(w for w, _ in sizes.values())
    else:
        breadth_extent = max(w for w, _ in sizes.values())
        depth_extent = max(h for _, h in sizes.values())
    return breadth_extent + spacing[0], depth_extent + spacing[1]


def place_forest(
    order: Sequence[str],
    edges: Sequence[Tuple[str, str]],
    sizes: Dict[str, Tuple[float, float]],
    direction: LayoutDirection,
    spacing: Tuple[float, float],
    variant: str = TREE,
) -> Dict[str, Tuple[float, float]]:
    """Lay out a graph as a forest of trees packed along the breadth axis.

    Returns:
        node id -> top-left corner, content starting at (0, 0)
    """
    if not order:
        return {}
    roots, children = spanning_forest(order, edges)
    breadth_step, depth_step = slot_steps(sizes, direction, spacing)

    positions: Dict[str, Tuple[float, float]] = {}
    cursor = 0.0
    for root in roots:
        levels = tree_levels(root, children, variant)
        slots = [b for b, _ in levels.values()]
        shift = cursor - min(slots) * breadth_step
        for node, (slot, level) in levels.items():
            positions[node] = map_tree_point(
                slot * breadth_step + shift, level * depth_step, sizes[node], direction
            )
        cursor += (max(slots) - min(slots)) * breadth_step + breadth_step

    return normalize_origin(positions)


def normalize_origin(positions: Dict[str, Tuple[float, float]]) -> Dict[str, Tuple[float, float]]:
    """Translate positions so the smallest x and y are 0."""
    if not positions:
        return {}
    min_x = min(x for x, _ in positions.values())
    min_y = min(y for _, y in positions.values())
    return {node: (x - min_x, y - min_y) for node, (x, y) in positions.items()}

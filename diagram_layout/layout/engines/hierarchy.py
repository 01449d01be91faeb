"""Strict-hierarchy layout engine (tidy tree and cluster/dendrogram).

Lays out a single-rooted tree: the top-level mind-map nodes, or every
top-level plain node when the diagram has no mind-map nodes. A node's
parent is the source of its first incoming edge. Every node occupies a
uniform slot so nodes of different sizes never overlap.
"""

import logging
from typing import Dict, List, Optional, Tuple

from diagram_layout.config.settings import get_setting
from diagram_layout.layout.compound import container_ids, sanitize_edges, sanitize_parents
from diagram_layout.layout.engines.base import LayoutEngine
from diagram_layout.layout.handles import apply_node_handles, normalize_handles
from diagram_layout.layout.sizing import resolve_size
from diagram_layout.layout.transforms import shift_layout_left
from diagram_layout.layout.tree import (
    CLUSTER,
    TREE,
    map_tree_point,
    normalize_origin,
    slot_steps,
    tree_levels,
)
from diagram_layout.models.layout_models import (
    AlgorithmFamily,
    LayoutAlgorithm,
    LayoutDirection,
    LayoutEdge,
    LayoutNode,
    LayoutResult,
    LayoutSpacing,
    Position,
)

logger = logging.getLogger(__name__)


def hierarchy_subset(nodes: List[LayoutNode]) -> List[str]:
    """Ids of the nodes the tree is built from, in input order."""
    top_level = [n for n in nodes if n.parent_id is None]
    mind_map = [n.id for n in top_level if n.is_hierarchy]
    if mind_map:
        return mind_map
    containers = container_ids(nodes)
    return [n.id for n in top_level if n.id not in containers]


def find_root(subset: List[str], edges: List[Tuple[str, str]]) -> Optional[str]:
    """The single node without an incoming edge, or None if there is not exactly one."""
    targets = {t for _, t in edges}
    roots = [node for node in subset if node not in targets]
    if len(roots) != 1:
        return None
    return roots[0]


def build_tree(root: str, edges: List[Tuple[str, str]]) -> Dict[str, List[str]]:
    """Children per node, taking each node's first incoming edge as its parent."""
    parent: Dict[str, str] = {}
    children: Dict[str, List[str]] = {}
    for source, target in edges:
        if target == root or target in parent:
            continue
        parent[target] = source
        children.setdefault(source, []).append(target)
    return children


class HierarchyLayoutEngine(LayoutEngine):
    """Tree (``tree``) and dendrogram (``cluster``) placement of a strict hierarchy."""

    @property
    def name(self) -> str:
        return "hierarchy"

    @property
    def family(self) -> AlgorithmFamily:
        return AlgorithmFamily.STRICT_HIERARCHY

    @property
    def supports_compound(self) -> bool:
        return False

    async def is_available(self) -> bool:
        return True

    async def layout(
        self,
        nodes: List[LayoutNode],
        edges: List[LayoutEdge],
        direction: LayoutDirection,
        spacing: LayoutSpacing,
        algorithm: LayoutAlgorithm = LayoutAlgorithm.TREE,
    ) -> LayoutResult:
        """Lay out the hierarchy subset as a tree.

        If the subset does not have exactly one root the nodes are returned
        unchanged; only dangling edges are removed.

        Args:
            nodes: Nodes to lay out
            edges: Edges between the nodes
            direction: Growth direction of the tree
            spacing: (between siblings, between levels)
            algorithm: ``tree`` or ``cluster``

        Returns:
            LayoutResult with positioned nodes and normalized edges
        """
        direction = LayoutDirection.coerce(direction)
        algorithm = LayoutAlgorithm.coerce(algorithm)
        variant = CLUSTER if algorithm is LayoutAlgorithm.CLUSTER else TREE

        nodes = sanitize_parents(nodes)
        edges = sanitize_edges(nodes, edges)

        subset = hierarchy_subset(nodes)
        members = set(subset)
        pairs = [(e.source, e.target) for e in edges
                 if e.source in members and e.target in members and e.source != e.target]
        root = find_root(subset, pairs)
        if root is None:
            logger.warning(
                f"Hierarchy layout needs exactly one root among {len(subset)} nodes, "
                f"returning input unchanged"
            )
            return LayoutResult(nodes=list(nodes), edges=edges)

        levels = tree_levels(root, build_tree(root, pairs), variant)
        by_id = {node.id: node for node in nodes}
        sizes = {}
        for node_id in levels:
            size = resolve_size(by_id[node_id], self._policy)
            sizes[node_id] = (size.width, size.height)
        breadth_step, depth_step = slot_steps(sizes, direction, spacing)

        corners = {
            node_id: map_tree_point(slot * breadth_step, level * depth_step, sizes[node_id], direction)
            for node_id, (slot, level) in levels.items()
        }
        padding = get_setting('layout_padding')
        positions = {
            node_id: (x + padding, y + padding)
            for node_id, (x, y) in normalize_origin(corners).items()
        }
        unplaced = len(subset) - len(positions)
        if unplaced:
            logger.debug(f"{unplaced} node(s) unreachable from root {root} keep their positions")

        placed = []
        for node in nodes:
            if node.id in positions:
                x, y = positions[node.id]
                node = node.model_copy(update={"position": Position(x=x, y=y)})
            placed.append(node)

        placed = apply_node_handles(placed, direction)
        placed = shift_layout_left(placed, anchor_ids=subset)
        return LayoutResult(
            nodes=placed, edges=normalize_handles(placed, edges, direction, hierarchy_ids=subset)
        )

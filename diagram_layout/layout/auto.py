"""Algorithm catalogue and automatic option selection."""

import logging
from collections import Counter
from typing import Dict, List, Tuple, Union

import networkx as nx

from diagram_layout.layout.placement import assign_ranks
from diagram_layout.models.layout_models import (
    AlgorithmFamily,
    LayoutAlgorithm,
    LayoutDirection,
    LayoutEdge,
    LayoutNode,
    LayoutSpacing,
    NodeType,
)

logger = logging.getLogger(__name__)

# Node types with freeform positions, never moved by auto layout
LAYOUT_EXCLUDED_TYPES = frozenset({NodeType.FREE_DRAW.value, NodeType.EDGE_ANCHOR.value})

ALGORITHM_FAMILIES: List[Tuple[AlgorithmFamily, str]] = [
    (AlgorithmFamily.LAYERED, "Layered"),
    (AlgorithmFamily.RANK_BASED, "Rank-based"),
    (AlgorithmFamily.STRICT_HIERARCHY, "Hierarchy"),
]

# Strategies per family, default first
ALGORITHM_SUB_OPTIONS: Dict[AlgorithmFamily, List[Tuple[LayoutAlgorithm, str]]] = {
    AlgorithmFamily.LAYERED: [
        (LayoutAlgorithm.LAYERED, "Layered"),
        (LayoutAlgorithm.MRTREE, "Mr. Tree"),
        (LayoutAlgorithm.BOX, "Box"),
        (LayoutAlgorithm.FORCE, "Force"),
        (LayoutAlgorithm.RADIAL, "Radial"),
        (LayoutAlgorithm.STRESS, "Stress"),
    ],
    AlgorithmFamily.RANK_BASED: [(LayoutAlgorithm.RANK, "Default")],
    AlgorithmFamily.STRICT_HIERARCHY: [
        (LayoutAlgorithm.TREE, "Tree"),
        (LayoutAlgorithm.CLUSTER, "Cluster"),
    ],
}

LAYOUT_ALGORITHMS: List[Tuple[LayoutAlgorithm, str]] = [
    option for family, _ in ALGORITHM_FAMILIES for option in ALGORITHM_SUB_OPTIONS[family]
]

MIND_MAP_SPACING: LayoutSpacing = (120.0, 100.0)
GROUPED_SPACING: LayoutSpacing = (240.0, 200.0)
GENERAL_SPACING: LayoutSpacing = (160.0, 120.0)


def get_algorithm_family(algorithm: Union[LayoutAlgorithm, str]) -> AlgorithmFamily:
    """Family of an algorithm, in any spelling ``LayoutAlgorithm.coerce`` accepts."""
    return LayoutAlgorithm.coerce(algorithm).family


def get_default_algorithm_for_family(family: Union[AlgorithmFamily, str]) -> LayoutAlgorithm:
    """First strategy listed for a family; layered for unknown families."""
    try:
        family = AlgorithmFamily(family)
    except ValueError:
        logger.warning(f"Unknown algorithm family {family!r}, using layered")
        return LayoutAlgorithm.LAYERED
    return ALGORITHM_SUB_OPTIONS[family][0][0]


def is_strict_tree(nodes: List[LayoutNode], edges: List[LayoutEdge]) -> bool:
    """Whether the edges form a single tree spanning all nodes."""
    if not nodes:
        return False
    graph = nx.DiGraph()
    graph.add_nodes_from(node.id for node in nodes)
    node_ids = set(graph.nodes)
    graph.add_edges_from(
        (e.source, e.target) for e in edges if e.source in node_ids and e.target in node_ids
    )
    return nx.is_arborescence(graph)


def choose_best_layout_options(
    nodes: List[LayoutNode], edges: List[LayoutEdge]
) -> Tuple[LayoutAlgorithm, LayoutDirection, LayoutSpacing]:
    """Pick algorithm, direction and spacing from the shape of the graph.

    - only mind-map nodes: tree placement, left to right, compact spacing
    - a single tree: tree placement, left to right
    - group containers present: layered, left to right, wide spacing
    - otherwise layered, top to bottom when the graph is wider than deep

    Returns:
        (algorithm, direction, spacing)
    """
    if nodes and all(node.is_hierarchy for node in nodes):
        return LayoutAlgorithm.MRTREE, LayoutDirection.RIGHT, MIND_MAP_SPACING

    if is_strict_tree(nodes, edges):
        return LayoutAlgorithm.MRTREE, LayoutDirection.RIGHT, GENERAL_SPACING

    if any(node.is_group for node in nodes):
        return LayoutAlgorithm.LAYERED, LayoutDirection.RIGHT, GROUPED_SPACING

    order = [node.id for node in nodes]
    known = set(order)
    pairs = [(e.source, e.target) for e in edges
             if e.source in known and e.target in known and e.source != e.target]
    direction = LayoutDirection.RIGHT
    if order:
        ranks, _ = assign_ranks(order, pairs)
        widest = max(Counter(ranks.values()).values())
        layers = max(ranks.values()) + 1
        if widest > layers:
            direction = LayoutDirection.DOWN
    logger.debug(f"Auto layout options: layered, {direction.value}")
    return LayoutAlgorithm.LAYERED, direction, GENERAL_SPACING

"""Placement strategies of the layered family.

Each strategy lays out one frame (a flat list of sized nodes plus the
edges between them) and returns top-left corners with the frame's content
starting at (0, 0). Nesting is handled by the caller, which places the
innermost frames first and treats each container as a single sized node
of its parent frame.

Strategies:
- layered: longest-path ranking + barycenter crossing reduction
- mrtree:  spanning forest placed as tidy trees
- box:     uniform grid
- force:   networkx spring embedder (fixed seed)
- radial:  concentric rings around a root, wedges weighted by leaf count
- stress:  networkx Kamada-Kawai stress majorization
"""

import logging
import math
from typing import Callable, Dict, List, Sequence, Tuple

import networkx as nx

from diagram_layout.config.settings import get_setting
from diagram_layout.layout.compound import CompoundEdge, CompoundNode
from diagram_layout.layout.tree import TREE, normalize_origin, place_forest, spanning_forest
from diagram_layout.models.layout_models import LayoutAlgorithm, LayoutDirection, LayoutSpacing

logger = logging.getLogger(__name__)

Sizes = Dict[str, Tuple[float, float]]
Placement = Dict[str, Tuple[float, float]]

# Alternating down/up barycenter sweeps
ORDERING_SWEEPS = 12

_ON_STACK = 1
_DONE = 2


# =============================================================================
# Layered
# =============================================================================


def break_cycles(order: Sequence[str], edges: Sequence[Tuple[str, str]]) -> List[Tuple[str, str]]:
    """Reverse the back edges of a depth-first search so the graph is acyclic.

    The search starts from nodes in ``order`` and follows edges in the
    given order, so the result is deterministic.
    """
    adjacency: Dict[str, List[str]] = {node: [] for node in order}
    for source, target in edges:
        adjacency[source].append(target)

    state: Dict[str, int] = {}
    back_edges = set()
    for start in order:
        if start in state:
            continue
        state[start] = _ON_STACK
        stack = [(start, iter(adjacency[start]))]
        while stack:
            node, targets = stack[-1]
            target = next(targets, None)
            if target is None:
                state[node] = _DONE
                stack.pop()
                continue
            status = state.get(target)
            if status == _ON_STACK:
                back_edges.add((node, target))
            elif status is None:
                state[target] = _ON_STACK
                stack.append((target, iter(adjacency[target])))

    return [(t, s) if (s, t) in back_edges else (s, t) for s, t in edges]


def assign_ranks(order: Sequence[str], edges: Sequence[Tuple[str, str]]) -> Tuple[Dict[str, int], nx.DiGraph]:
    """Longest-path layering of the graph after cycle breaking.

    Returns:
        (rank per node, acyclic graph used for ranking)
    """
    dag = nx.DiGraph()
    dag.add_nodes_from(order)
    dag.add_edges_from(break_cycles(order, edges))

    index = {node: i for i, node in enumerate(order)}
    ranks: Dict[str, int] = {}
    for node in nx.lexicographical_topological_sort(dag, key=index.__getitem__):
        predecessors = list(dag.predecessors(node))
        ranks[node] = max(ranks[p] + 1 for p in predecessors) if predecessors else 0
    return ranks, dag


def _sort_by_barycenter(
    layer: List[str], neighbors: Dict[str, List[str]], ref: Dict[str, float]
) -> List[str]:
    def barycenter(node: str) -> float:
        values = [ref[n] for n in neighbors.get(node, []) if n in ref]
        return sum(values) / len(values) if values else ref[node]

    return sorted(layer, key=barycenter)


def _layer_positions(layers: List[List[str]]) -> Dict[str, float]:
    return {node: float(i) for layer in layers for i, node in enumerate(layer)}


def order_layers(layers: List[List[str]], dag: nx.DiGraph) -> List[List[str]]:
    """Reduce edge crossings with alternating barycenter sweeps."""
    layers = [list(layer) for layer in layers]
    upper = {node: list(dag.predecessors(node)) for node in dag.nodes}
    lower = {node: list(dag.successors(node)) for node in dag.nodes}

    for _ in range(ORDERING_SWEEPS):
        before = [list(layer) for layer in layers]

        ref = _layer_positions(layers)
        for i in range(1, len(layers)):
            layers[i] = _sort_by_barycenter(layers[i], upper, ref)
            ref.update({node: float(j) for j, node in enumerate(layers[i])})

        for i in range(len(layers) - 2, -1, -1):
            layers[i] = _sort_by_barycenter(layers[i], lower, ref)
            ref.update({node: float(j) for j, node in enumerate(layers[i])})

        if layers == before:
            break

    return layers


def _extents(size: Tuple[float, float], direction: LayoutDirection) -> Tuple[float, float]:
    """(breadth extent, depth extent) of a node for the given direction."""
    width, height = size
    return (height, width) if direction.is_horizontal else (width, height)


def place_layered(
    order: Sequence[str],
    edges: Sequence[Tuple[str, str]],
    sizes: Sizes,
    direction: LayoutDirection,
    spacing: LayoutSpacing,
) -> Placement:
    if not order:
        return {}
    ranks, dag = assign_ranks(order, edges)
    layers: List[List[str]] = [[] for _ in range(max(ranks.values()) + 1)]
    for node in order:
        layers[ranks[node]].append(node)
    layers = order_layers(layers, dag)

    sibling_gap, rank_gap = spacing
    bands = [max(_extents(sizes[n], direction)[1] for n in layer) for layer in layers]
    spans = [
        sum(_extents(sizes[n], direction)[0] for n in layer) + sibling_gap * (len(layer) - 1)
        for layer in layers
    ]
    widest = max(spans)
    total_depth = sum(bands) + rank_gap * (len(layers) - 1)

    positions: Placement = {}
    depth_cursor = 0.0
    for layer, band, span in zip(layers, bands, spans):
        breadth_cursor = (widest - span) / 2
        for node in layer:
            breadth_ext, depth_ext = _extents(sizes[node], direction)
            depth = depth_cursor + (band - depth_ext) / 2
            if direction.is_reversed:
                depth = total_depth - depth - depth_ext
            if direction.is_horizontal:
                positions[node] = (depth, breadth_cursor)
            else:
                positions[node] = (breadth_cursor, depth)
            breadth_cursor += breadth_ext + sibling_gap
        depth_cursor += band + rank_gap

    return positions


# =============================================================================
# Tree, box
# =============================================================================


def place_tree(
    order: Sequence[str],
    edges: Sequence[Tuple[str, str]],
    sizes: Sizes,
    direction: LayoutDirection,
    spacing: LayoutSpacing,
) -> Placement:
    return place_forest(order, edges, sizes, direction, spacing, variant=TREE)


def place_box(
    order: Sequence[str],
    edges: Sequence[Tuple[str, str]],
    sizes: Sizes,
    direction: LayoutDirection,
    spacing: LayoutSpacing,
) -> Placement:
    """Uniform grid in input order; edges and direction are ignored."""
    if not order:
        return {}
    columns = math.ceil(math.sqrt(len(order)))
    rows = math.ceil(len(order) / columns)
    col_widths = [0.0] * columns
    row_heights = [0.0] * rows
    for i, node in enumerate(order):
        width, height = sizes[node]
        col_widths[i % columns] = max(col_widths[i % columns], width)
        row_heights[i // columns] = max(row_heights[i // columns], height)

    gap = spacing[0]
    col_x = [sum(col_widths[:c]) + gap * c for c in range(columns)]
    row_y = [sum(row_heights[:r]) + gap * r for r in range(rows)]
    return {node: (col_x[i % columns], row_y[i // columns]) for i, node in enumerate(order)}


# =============================================================================
# Force, stress, radial
# =============================================================================


def _undirected(order: Sequence[str], edges: Sequence[Tuple[str, str]]) -> nx.Graph:
    graph = nx.Graph()
    graph.add_nodes_from(order)
    graph.add_edges_from((s, t) for s, t in edges if s != t)
    return graph


def _components(graph: nx.Graph, order: Sequence[str]) -> List[List[str]]:
    index = {node: i for i, node in enumerate(order)}
    components = [sorted(c, key=index.__getitem__) for c in nx.connected_components(graph)]
    return sorted(components, key=lambda c: index[c[0]])


def _unit(sizes: Sizes, nodes: Sequence[str], gap: float) -> float:
    return max(max(sizes[n]) for n in nodes) + gap


def _centers_to_corners(centers: Dict[str, Tuple[float, float]], sizes: Sizes) -> Placement:
    return normalize_origin({
        node: (float(cx) - sizes[node][0] / 2, float(cy) - sizes[node][1] / 2)
        for node, (cx, cy) in centers.items()
    })


def pack_row(parts: List[Placement], sizes: Sizes, gap: float) -> Placement:
    """Place independently laid out parts side by side, left to right."""
    positions: Placement = {}
    cursor = 0.0
    for part in parts:
        part = normalize_origin(part)
        for node, (x, y) in part.items():
            positions[node] = (x + cursor, y)
        cursor += max(x + sizes[node][0] for node, (x, _) in part.items()) + gap
    return positions


def place_force(
    order: Sequence[str],
    edges: Sequence[Tuple[str, str]],
    sizes: Sizes,
    direction: LayoutDirection,
    spacing: LayoutSpacing,
) -> Placement:
    """Spring embedding; overlaps are left to the collision resolver."""
    if not order:
        return {}
    if len(order) == 1:
        return {order[0]: (0.0, 0.0)}
    graph = _undirected(order, edges)
    scale = _unit(sizes, order, spacing[0]) * math.sqrt(len(order)) / 2
    centers = nx.spring_layout(graph, seed=int(get_setting('force_seed')), scale=scale, center=(0, 0))
    return _centers_to_corners(centers, sizes)


def place_stress(
    order: Sequence[str],
    edges: Sequence[Tuple[str, str]],
    sizes: Sizes,
    direction: LayoutDirection,
    spacing: LayoutSpacing,
) -> Placement:
    """Kamada-Kawai per connected component, components packed in a row."""
    if not order:
        return {}
    graph = _undirected(order, edges)
    parts: List[Placement] = []
    for component in _components(graph, order):
        if len(component) == 1:
            parts.append({component[0]: (0.0, 0.0)})
            continue
        scale = _unit(sizes, component, spacing[0]) * math.sqrt(len(component)) / 2
        centers = nx.kamada_kawai_layout(graph.subgraph(component), scale=scale, center=(0, 0))
        parts.append(_centers_to_corners(centers, sizes))
    return pack_row(parts, sizes, spacing[0])


def _radial_centers(
    component: List[str],
    graph: nx.Graph,
    in_degree: Dict[str, int],
    sizes: Sizes,
    spacing: LayoutSpacing,
) -> Dict[str, Tuple[float, float]]:
    root = next((n for n in component if in_degree[n] == 0), component[0])
    local_edges = [(s, t) for s, t in graph.edges(component)]
    local_edges += [(t, s) for s, t in local_edges]
    _, children = spanning_forest([root] + [n for n in component if n != root], local_edges)

    preorder: List[str] = []
    stack = [root]
    while stack:
        node = stack.pop()
        preorder.append(node)
        stack.extend(reversed(children[node]))

    leaves: Dict[str, int] = {}
    for node in reversed(preorder):
        leaves[node] = sum(leaves[c] for c in children[node]) or 1

    depth = {root: 0}
    start = {root: 0.0}
    span = {root: 2 * math.pi}
    for node in preorder:
        angle = start[node]
        for child in children[node]:
            depth[child] = depth[node] + 1
            start[child] = angle
            span[child] = span[node] * leaves[child] / leaves[node]
            angle += span[child]

    unit = _unit(sizes, component, spacing[0])
    ring_step = _unit(sizes, component, spacing[1])
    per_ring: Dict[int, int] = {}
    for node in preorder:
        per_ring[depth[node]] = per_ring.get(depth[node], 0) + 1

    radius = {0: 0.0}
    for level in range(1, max(depth.values()) + 1):
        needed = per_ring.get(level, 0) * unit / (2 * math.pi)
        radius[level] = max(level * ring_step, needed, radius[level - 1] + ring_step)

    centers = {}
    for node in preorder:
        theta = start[node] + span[node] / 2
        r = radius[depth[node]]
        centers[node] = (r * math.cos(theta), r * math.sin(theta))
    return centers


def place_radial(
    order: Sequence[str],
    edges: Sequence[Tuple[str, str]],
    sizes: Sizes,
    direction: LayoutDirection,
    spacing: LayoutSpacing,
) -> Placement:
    """Rings of increasing radius around a root, one layout per component."""
    if not order:
        return {}
    graph = _undirected(order, edges)
    in_degree = {node: 0 for node in order}
    for source, target in edges:
        if source != target:
            in_degree[target] += 1
    parts = [
        _centers_to_corners(_radial_centers(component, graph, in_degree, sizes, spacing), sizes)
        for component in _components(graph, order)
    ]
    return pack_row(parts, sizes, spacing[0])


# =============================================================================
# Dispatch
# =============================================================================


STRATEGIES: Dict[LayoutAlgorithm, Callable[..., Placement]] = {
    LayoutAlgorithm.LAYERED: place_layered,
    LayoutAlgorithm.MRTREE: place_tree,
    LayoutAlgorithm.BOX: place_box,
    LayoutAlgorithm.FORCE: place_force,
    LayoutAlgorithm.RADIAL: place_radial,
    LayoutAlgorithm.STRESS: place_stress,
}


def place_frame(
    algorithm: LayoutAlgorithm,
    items: List[CompoundNode],
    edges: List[CompoundEdge],
    direction: LayoutDirection,
    spacing: LayoutSpacing,
) -> Placement:
    """Lay out one frame with the strategy named by ``algorithm``.

    Algorithms outside the layered family use layered placement.

    Args:
        algorithm: Strategy to use
        items: Sized members of the frame
        edges: Promoted edges between members
        direction: Flow direction
        spacing: (between siblings, between ranks)

    Returns:
        member id -> top-left corner, content starting at (0, 0)
    """
    strategy = STRATEGIES.get(algorithm, place_layered)
    order = [item.id for item in items]
    known = set(order)
    pairs = [(e.source, e.target) for e in edges
             if e.source in known and e.target in known and e.source != e.target]
    sizes = {item.id: (item.width, item.height) for item in items}
    return normalize_origin(strategy(order, pairs, sizes, direction, spacing))

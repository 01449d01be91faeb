"""Rank-based layout engine via grandalf.

Runs grandalf's Sugiyama layout (ranking, crossing reduction and
coordinate assignment in one pass) over the flat top-level graph. Nested
containers are not supported: containers and their contents keep their
positions.

grandalf is imported lazily on every call. If it cannot be imported the
engine degrades to an identity pass-through so a layout request never
hard-fails.
"""

import logging
from typing import Any, Dict, List, Tuple

import networkx as nx

from diagram_layout.config.settings import get_setting
from diagram_layout.layout.compound import container_ids, sanitize_edges, sanitize_parents
from diagram_layout.layout.engines.base import LayoutEngine
from diagram_layout.layout.errors import SolverUnavailableError
from diagram_layout.layout.handles import apply_node_handles, normalize_handles
from diagram_layout.layout.sizing import resolve_size
from diagram_layout.layout.transforms import shift_layout_left
from diagram_layout.layout.tree import normalize_origin
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

Placement = Dict[str, Tuple[float, float]]


class _VertexView:
    """View object grandalf reads sizes from and writes centers to."""

    def __init__(self, w: float, h: float):
        self.w = w
        self.h = h
        self.xy = (0.0, 0.0)


def _load_solver() -> Tuple[Any, Any, Any, Any]:
    """Import grandalf's graph classes and Sugiyama layout.

    Raises:
        SolverUnavailableError: If grandalf cannot be imported
    """
    try:
        from grandalf.graphs import Edge, Graph, Vertex
        from grandalf.layouts import SugiyamaLayout
    except ImportError as e:
        raise SolverUnavailableError("grandalf", str(e)) from e
    return Vertex, Edge, Graph, SugiyamaLayout


def _map_center(cx: float, cy: float, direction: LayoutDirection) -> Tuple[float, float]:
    """Map a Sugiyama center (ranks along +y) onto the layout direction."""
    if direction is LayoutDirection.DOWN:
        return cx, cy
    if direction is LayoutDirection.UP:
        return cx, -cy
    if direction is LayoutDirection.RIGHT:
        return cy, cx
    return -cy, cx


class RankLayoutEngine(LayoutEngine):
    """Single-pass rank-and-order layout of top-level nodes."""

    @property
    def name(self) -> str:
        return "rank"

    @property
    def family(self) -> AlgorithmFamily:
        return AlgorithmFamily.RANK_BASED

    @property
    def supports_compound(self) -> bool:
        return False

    async def is_available(self) -> bool:
        try:
            _load_solver()
        except SolverUnavailableError as e:
            logger.warning(f"Rank engine unavailable: {e}")
            return False
        return True

    async def layout(
        self,
        nodes: List[LayoutNode],
        edges: List[LayoutEdge],
        direction: LayoutDirection,
        spacing: LayoutSpacing,
        algorithm: LayoutAlgorithm = LayoutAlgorithm.RANK,
    ) -> LayoutResult:
        """Compute a Sugiyama layout of the top-level, non-container nodes.

        Args:
            nodes: Nodes to lay out; containers and parented nodes are kept
            edges: Edges between the nodes
            direction: Flow direction
            spacing: (between siblings, between ranks)
            algorithm: Ignored, the family has a single strategy

        Returns:
            LayoutResult with positioned nodes and normalized edges
        """
        direction = LayoutDirection.coerce(direction)
        nodes = sanitize_parents(nodes)
        edges = sanitize_edges(nodes, edges)

        try:
            solver = _load_solver()
        except SolverUnavailableError as e:
            logger.warning(f"{e}; keeping input positions")
            placed = apply_node_handles(nodes, direction)
            return LayoutResult(nodes=placed, edges=normalize_handles(placed, edges, direction))

        containers = container_ids(nodes)
        order = [n.id for n in nodes if n.parent_id is None and n.id not in containers]
        sizes = {}
        for node in nodes:
            if node.id in order:
                size = resolve_size(node, self._policy)
                sizes[node.id] = (size.width, size.height)

        known = set(order)
        pairs = list(dict.fromkeys(
            (e.source, e.target) for e in edges
            if e.source in known and e.target in known and e.source != e.target
        ))
        positions = self._solve(solver, order, pairs, sizes, direction, spacing)
        logger.debug(f"Rank layout ({direction.value}): {len(positions)} of {len(nodes)} nodes placed")

        placed = []
        for node in nodes:
            if node.id in positions:
                x, y = positions[node.id]
                node = node.model_copy(update={"position": Position(x=x, y=y)})
            placed.append(node)

        placed = apply_node_handles(placed, direction)
        placed = shift_layout_left(placed)
        return LayoutResult(nodes=placed, edges=normalize_handles(placed, edges, direction))

    def _solve(
        self,
        solver: Tuple[Any, Any, Any, Any],
        order: List[str],
        pairs: List[Tuple[str, str]],
        sizes: Dict[str, Tuple[float, float]],
        direction: LayoutDirection,
        spacing: LayoutSpacing,
    ) -> Placement:
        """Lay out each connected component and pack them along the sibling axis."""
        if not order:
            return {}

        graph = nx.Graph()
        graph.add_nodes_from(order)
        graph.add_edges_from(pairs)
        index = {node: i for i, node in enumerate(order)}
        components = sorted(
            (sorted(c, key=index.__getitem__) for c in nx.connected_components(graph)),
            key=lambda c: index[c[0]],
        )

        padding = get_setting('layout_padding')
        positions: Placement = {}
        cursor = 0.0
        for component in components:
            members = set(component)
            part = self._solve_component(
                solver,
                component,
                [(s, t) for s, t in pairs if s in members],
                sizes,
                direction,
                spacing,
            )
            for node_id, (x, y) in part.items():
                if direction.is_horizontal:
                    positions[node_id] = (x + padding, y + cursor + padding)
                else:
                    positions[node_id] = (x + cursor + padding, y + padding)
            if direction.is_horizontal:
                extent = max(y + sizes[n][1] for n, (_, y) in part.items())
            else:
                extent = max(x + sizes[n][0] for n, (x, _) in part.items())
            cursor += extent + spacing[0]

        return positions

    def _solve_component(
        self,
        solver: Tuple[Any, Any, Any, Any],
        component: List[str],
        pairs: List[Tuple[str, str]],
        sizes: Dict[str, Tuple[float, float]],
        direction: LayoutDirection,
        spacing: LayoutSpacing,
    ) -> Placement:
        if len(component) == 1:
            return {component[0]: (0.0, 0.0)}

        Vertex, Edge, Graph, SugiyamaLayout = solver
        vertices = {}
        for node_id in component:
            width, height = sizes[node_id]
            vertex = Vertex(node_id)
            # Sugiyama ranks along y; horizontal layouts swap the extents.
            if direction.is_horizontal:
                vertex.view = _VertexView(height, width)
            else:
                vertex.view = _VertexView(width, height)
            vertices[node_id] = vertex

        g = Graph(
            [vertices[n] for n in component],
            [Edge(vertices[s], vertices[t]) for s, t in pairs],
        )
        sug = SugiyamaLayout(g.C[0])
        sug.xspace = spacing[0]
        sug.yspace = spacing[1]
        sug.init_all()
        sug.draw()

        corners = {}
        for node_id, vertex in vertices.items():
            cx, cy = _map_center(vertex.view.xy[0], vertex.view.xy[1], direction)
            width, height = sizes[node_id]
            corners[node_id] = (cx - width / 2, cy - height / 2)
        return normalize_origin(corners)

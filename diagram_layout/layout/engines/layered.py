"""Layered-family layout engine.

Compound-aware: containers are laid out bottom-up, each frame with the
selected placement strategy, so children always end up inside their
container and every container is sized to hold its content.

Coordinate conventions:
    - Positions are top-left corners
    - Children are relative to their container's top-left corner
    - Container content starts at (padding, padding + header)
    - The top frame starts at (layout_padding, layout_padding)
"""

import logging
from typing import Dict, List, Tuple

from diagram_layout.config.settings import get_setting
from diagram_layout.layout.compound import (
    CompoundGraph,
    CompoundNode,
    build_graph,
    sanitize_edges,
    sanitize_parents,
)
from diagram_layout.layout.engines.base import LayoutEngine
from diagram_layout.layout.handles import apply_node_handles, normalize_handles
from diagram_layout.layout.placement import Placement, place_frame
from diagram_layout.layout.sizing import content_origin, fit_container
from diagram_layout.layout.transforms import shift_layout_left
from diagram_layout.models.layout_models import (
    AlgorithmFamily,
    LayoutAlgorithm,
    LayoutDirection,
    LayoutEdge,
    LayoutNode,
    LayoutResult,
    LayoutSpacing,
    NodeStyle,
    Position,
    Size,
)

logger = logging.getLogger(__name__)


def _content_extent(placement: Placement, items: List[CompoundNode]) -> Tuple[float, float]:
    if not placement:
        return 0.0, 0.0
    by_id = {item.id: item for item in items}
    width = max(x + by_id[node_id].width for node_id, (x, _) in placement.items())
    height = max(y + by_id[node_id].height for node_id, (_, y) in placement.items())
    return width, height


def solve_compound(
    graph: CompoundGraph,
    algorithm: LayoutAlgorithm,
    direction: LayoutDirection,
    spacing: LayoutSpacing,
    layout_padding: float = 0.0,
) -> Tuple[Placement, Dict[str, Tuple[float, float]]]:
    """Place every frame of a compound graph, innermost first.

    Args:
        graph: Compound graph from ``build_graph``
        algorithm: Layered-family strategy applied to every frame
        direction: Flow direction
        spacing: (between siblings, between ranks)
        layout_padding: Offset of the top frame

    Returns:
        (positions, container sizes); positions of children are relative
        to their container
    """
    positions: Placement = {}
    container_sizes: Dict[str, Tuple[float, float]] = {}
    origin_x, origin_y = content_origin()

    def place_container(container: CompoundNode) -> None:
        for child in container.children:
            if child.is_container:
                place_container(child)

        local = place_frame(algorithm, container.children, container.edges, direction, spacing)
        for node_id, (x, y) in local.items():
            positions[node_id] = (x + origin_x, y + origin_y)

        content_w, content_h = _content_extent(local, container.children)
        base_w, base_h = container.base_size or (container.width, container.height)
        fitted = fit_container(content_w, content_h, Size(width=base_w, height=base_h))
        container.width, container.height = fitted.width, fitted.height
        container_sizes[container.id] = (fitted.width, fitted.height)

    for node in graph.children:
        if node.is_container:
            place_container(node)

    top = place_frame(algorithm, graph.children, graph.edges, direction, spacing)
    for node_id, (x, y) in top.items():
        positions[node_id] = (x + layout_padding, y + layout_padding)

    return positions, container_sizes


class LayeredLayoutEngine(LayoutEngine):
    """In-process layered layout (layered, mrtree, box, force, radial, stress).

    Placement runs on networkx; nested containers are handled by placing
    each frame separately and sizing containers around their content.
    """

    @property
    def name(self) -> str:
        return "layered"

    @property
    def family(self) -> AlgorithmFamily:
        return AlgorithmFamily.LAYERED

    @property
    def supports_compound(self) -> bool:
        return True

    async def is_available(self) -> bool:
        return True

    async def layout(
        self,
        nodes: List[LayoutNode],
        edges: List[LayoutEdge],
        direction: LayoutDirection,
        spacing: LayoutSpacing,
        algorithm: LayoutAlgorithm = LayoutAlgorithm.LAYERED,
    ) -> LayoutResult:
        """Compute a compound layered layout.

        Args:
            nodes: Nodes to lay out, containers included
            edges: Edges between the nodes
            direction: Flow direction
            spacing: (between siblings, between ranks)
            algorithm: Layered-family strategy (others fall back to layered)

        Returns:
            LayoutResult with positioned nodes and normalized edges
        """
        direction = LayoutDirection.coerce(direction)
        algorithm = LayoutAlgorithm.coerce(algorithm)
        if algorithm.family is not self.family:
            logger.warning(f"{algorithm.value} is not a layered strategy, using layered")
            algorithm = LayoutAlgorithm.LAYERED

        nodes = sanitize_parents(nodes)
        edges = sanitize_edges(nodes, edges)
        if not nodes:
            return LayoutResult(nodes=[], edges=[])

        graph = build_graph(nodes, edges, self._policy, spacing)
        positions, container_sizes = solve_compound(
            graph, algorithm, direction, spacing, get_setting('layout_padding')
        )
        logger.debug(
            f"Layered layout ({algorithm.value}, {direction.value}): "
            f"{len(nodes)} nodes, {len(container_sizes)} containers"
        )

        placed = []
        for node in nodes:
            if node.id not in positions:
                # owned by a non-group node, moves with it
                placed.append(node)
                continue
            x, y = positions[node.id]
            update = {"position": Position(x=x, y=y)}
            if node.id in container_sizes:
                width, height = container_sizes[node.id]
                style = node.style.model_dump()
                style.update(width=width, height=height)
                update["style"] = NodeStyle(**style)
            placed.append(node.model_copy(update=update))

        placed = apply_node_handles(placed, direction)
        placed = shift_layout_left(placed)
        return LayoutResult(nodes=placed, edges=normalize_handles(placed, edges, direction))

"""Layout entry points used by the editor and the diagram generator.

- ``get_layouted_elements``: one layout pass with an explicit algorithm
- ``auto_layout``: "layout all / layout selection" with automatic options,
  inner group layout and overlap removal
- ``layout_generated_diagram``: layout of a freshly generated flat
  diagram, optionally materializing groups and laying out again
- ``prepare_saved_diagram``: cleanup of a loaded diagram without moving
  top-level nodes
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, Union

from diagram_layout.config.settings import get_setting
from diagram_layout.layout.auto import (
    GENERAL_SPACING,
    GROUPED_SPACING,
    LAYOUT_EXCLUDED_TYPES,
    MIND_MAP_SPACING,
    choose_best_layout_options,
)
from diagram_layout.layout.collisions import resolve_collisions_with_groups
from diagram_layout.layout.compound import sanitize_edges
from diagram_layout.layout.engines import engine_for_algorithm
from diagram_layout.layout.grouping import (
    apply_grouping,
    ensure_parent_extent,
    fit_group_bounds,
    layout_children_inside_groups,
)
from diagram_layout.layout.handles import infer_handles
from diagram_layout.layout.sizing import SizePolicy
from diagram_layout.models.layout_models import (
    CollisionOptions,
    GroupMetadata,
    LayoutAlgorithm,
    LayoutDirection,
    LayoutEdge,
    LayoutNode,
    LayoutResult,
    LayoutSpacing,
)

logger = logging.getLogger(__name__)

NodeInput = Union[LayoutNode, Dict[str, Any]]
EdgeInput = Union[LayoutEdge, Dict[str, Any]]

# Overlap removal after auto layout: many passes, no tolerance, wide clearance
AUTO_LAYOUT_COLLISIONS = CollisionOptions(max_iterations=150, overlap_threshold=0, margin=24)


def coerce_nodes(nodes: Sequence[NodeInput]) -> List[LayoutNode]:
    """Validate editor node dicts (camelCase accepted); models pass through."""
    return [n if isinstance(n, LayoutNode) else LayoutNode.model_validate(n) for n in nodes]


def coerce_edges(edges: Sequence[EdgeInput]) -> List[LayoutEdge]:
    """Validate editor edge dicts (camelCase accepted); models pass through."""
    return [e if isinstance(e, LayoutEdge) else LayoutEdge.model_validate(e) for e in edges]


def _spacing(spacing: Optional[Sequence[float]]) -> LayoutSpacing:
    if spacing is None:
        return (get_setting('default_spacing_x'), get_setting('default_spacing_y'))
    x, y = spacing
    return (float(x), float(y))


async def get_layouted_elements(
    nodes: Sequence[NodeInput],
    edges: Sequence[EdgeInput],
    direction: Union[LayoutDirection, str, None] = LayoutDirection.RIGHT,
    spacing: Optional[Sequence[float]] = None,
    algorithm: Union[LayoutAlgorithm, str, None] = LayoutAlgorithm.LAYERED,
    policy: Optional[SizePolicy] = None,
) -> LayoutResult:
    """Lay out a snapshot with the engine that implements ``algorithm``.

    Args:
        nodes: Nodes (models or editor dicts)
        edges: Edges (models or editor dicts); dangling edges are dropped
        direction: Flow direction; unknown values fall back to left-to-right
        spacing: (between siblings, between ranks), settings defaults if None
        algorithm: Algorithm name; unknown values fall back to layered
        policy: Size policy (default table if None)

    Returns:
        LayoutResult with new node and edge lists
    """
    nodes = coerce_nodes(nodes)
    edges = sanitize_edges(nodes, coerce_edges(edges))
    direction = LayoutDirection.coerce(direction)
    algorithm = LayoutAlgorithm.coerce(algorithm)

    engine = engine_for_algorithm(algorithm)(policy)
    logger.info(
        f"Running {engine.name} layout ({algorithm.value}, {direction.value}) "
        f"on {len(nodes)} nodes, {len(edges)} edges"
    )
    return await engine.layout(nodes, edges, direction, _spacing(spacing), algorithm)


async def auto_layout(
    nodes: Sequence[NodeInput],
    edges: Sequence[EdgeInput],
    selection_only: bool = False,
    direction: Union[LayoutDirection, str, None] = None,
    collision: Optional[CollisionOptions] = None,
    policy: Optional[SizePolicy] = None,
) -> LayoutResult:
    """Lay out all (or the selected) layoutable nodes with automatic options.

    Free-drawn shapes and edge anchors are never moved. Positions, group
    sizes and edge handles are merged back into the full snapshot; fewer
    than two layoutable nodes leave the snapshot unchanged.

    Args:
        nodes: Full editor snapshot
        edges: Full edge list
        selection_only: Only lay out nodes with ``selected`` set
        direction: Override for the automatically chosen direction
        collision: Overlap removal tuning (150 passes, 0px, 24px margin if None)
        policy: Size policy (default table if None)

    Returns:
        LayoutResult covering every input node and edge
    """
    nodes = coerce_nodes(nodes)
    edges = coerce_edges(edges)

    targets = [
        n for n in nodes
        if n.type not in LAYOUT_EXCLUDED_TYPES and (not selection_only or n.selected)
    ]
    target_ids = {n.id for n in targets}
    target_edges = [e for e in edges if e.source in target_ids and e.target in target_ids]
    if len(targets) < 2:
        logger.info(f"Auto layout skipped: {len(targets)} layoutable node(s)")
        return LayoutResult(nodes=nodes, edges=edges)

    algorithm, chosen_direction, spacing = choose_best_layout_options(targets, target_edges)
    direction = LayoutDirection.coerce(direction) if direction is not None else chosen_direction

    result = await get_layouted_elements(
        targets, target_edges, direction, spacing, algorithm, policy
    )
    laid_out = await layout_children_inside_groups(
        result.nodes, result.edges, direction, policy=policy
    )
    laid_out = resolve_collisions_with_groups(
        ensure_parent_extent(laid_out), collision or AUTO_LAYOUT_COLLISIONS, policy
    )

    placed = {n.id: n for n in laid_out}
    merged_nodes = []
    for node in nodes:
        update = placed.get(node.id)
        if update is None:
            merged_nodes.append(node)
            continue
        changes = {"position": update.position}
        if update.is_group:
            changes["style"] = update.style
        merged_nodes.append(node.model_copy(update=changes))

    handled = {e.id: e for e in result.edges}
    merged_edges = []
    for edge in edges:
        update = handled.get(edge.id)
        if update is None:
            merged_edges.append(edge)
            continue
        merged_edges.append(edge.model_copy(update={
            "source_handle": update.source_handle or edge.source_handle,
            "target_handle": update.target_handle or edge.target_handle,
        }))

    return LayoutResult(nodes=merged_nodes, edges=merged_edges)


async def layout_generated_diagram(
    nodes: Sequence[NodeInput],
    edges: Sequence[EdgeInput],
    groups: Optional[Sequence[Union[GroupMetadata, Dict[str, Any]]]] = None,
    direction: Union[LayoutDirection, str, None] = None,
    spacing: Optional[Sequence[float]] = None,
    algorithm: Union[LayoutAlgorithm, str, None] = None,
    policy: Optional[SizePolicy] = None,
) -> LayoutResult:
    """Lay out a generated flat diagram and materialize its groups.

    The flat layout runs first with generous spacing; groups are then
    created around their members, fitted, and the diagram is laid out
    again so groups are spaced correctly. Mind maps are never grouped.

    Args:
        nodes: Flat generated nodes
        edges: Generated edges; dangling references are dropped
        groups: Optional group requests
        direction: Flow direction (left to right if None)
        spacing: Spacing override; chosen from the diagram kind if None
        algorithm: Algorithm override; tree for mind maps, layered otherwise
        policy: Size policy (default table if None)

    Returns:
        LayoutResult with groups materialized
    """
    nodes = coerce_nodes(nodes)
    edges = sanitize_edges(nodes, coerce_edges(edges))
    groups = [
        g if isinstance(g, GroupMetadata) else GroupMetadata.model_validate(g)
        for g in (groups or [])
    ]

    is_mind_map = bool(nodes) and all(n.is_hierarchy for n in nodes)
    direction = LayoutDirection.coerce(direction) if direction is not None else LayoutDirection.RIGHT
    if spacing is None:
        if is_mind_map:
            spacing = MIND_MAP_SPACING
        else:
            spacing = GROUPED_SPACING if groups else GENERAL_SPACING
    if algorithm is None:
        algorithm = LayoutAlgorithm.MRTREE if is_mind_map else LayoutAlgorithm.LAYERED

    result = await get_layouted_elements(nodes, edges, direction, spacing, algorithm, policy)
    if is_mind_map or not groups:
        return result

    grouped = fit_group_bounds(apply_grouping(result.nodes, groups, policy), policy)
    again = await get_layouted_elements(grouped, result.edges, direction, spacing, algorithm, policy)
    laid_out = await layout_children_inside_groups(again.nodes, again.edges, direction, policy=policy)
    return LayoutResult(nodes=ensure_parent_extent(laid_out), edges=again.edges)


def prepare_saved_diagram(
    nodes: Sequence[NodeInput],
    edges: Sequence[EdgeInput],
    policy: Optional[SizePolicy] = None,
) -> LayoutResult:
    """Normalize a loaded diagram without re-running layout.

    Detaches nodes with a missing parent, constrains the rest to their
    containers, refits groups, drops dangling edges and fills in missing
    edge handles from node geometry.
    """
    nodes = ensure_parent_extent(coerce_nodes(nodes))
    if any(n.is_group for n in nodes):
        nodes = fit_group_bounds(nodes, policy)
    edges = sanitize_edges(nodes, coerce_edges(edges))
    return LayoutResult(nodes=nodes, edges=infer_handles(nodes, edges, policy))

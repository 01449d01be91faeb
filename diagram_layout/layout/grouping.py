"""Group containers: materialization, bounds fitting and inner layout.

Group nodes own their children through ``parent_id``; children positions
are relative to the group. Every operation here returns a new node list
and keeps containers ahead of their contents in list order.

Group geometry:
    - ``group_padding`` clearance on every side of the content
    - ``group_header_inset`` extra clearance on top for the label
    - never smaller than the group's own explicit or default size
"""

import logging
from typing import Dict, List, Optional, Set, Tuple

from diagram_layout.config.settings import get_setting
from diagram_layout.layout.compound import CompoundNode, promote_edge
from diagram_layout.layout.geometry import absolute_positions, bounding_rect, node_rect
from diagram_layout.layout.placement import place_frame
from diagram_layout.layout.sizing import (
    DEFAULT_SIZE_POLICY,
    GROUP_HEADER_INSET,
    GROUP_PADDING,
    SizePolicy,
    content_origin,
    fit_container,
    resolve_size,
)
from diagram_layout.models.layout_models import (
    GroupMetadata,
    LayoutAlgorithm,
    LayoutDirection,
    LayoutEdge,
    LayoutNode,
    LayoutSpacing,
    NodeStyle,
    NodeType,
    Position,
    Size,
)

logger = logging.getLogger(__name__)

PARENT_EXTENT = "parent"


def _group_minimum(group_type: str, policy: Optional[SizePolicy]) -> Size:
    width, height = (policy or DEFAULT_SIZE_POLICY).default_for(group_type)
    return Size(width=width, height=height)


def _with_size(node: LayoutNode, size: Size) -> Dict:
    style = node.style.model_dump()
    style.update(width=size.width, height=size.height)
    return {"style": NodeStyle(**style)}


def _depth(node_id: str, parent_map: Dict[str, Optional[str]]) -> int:
    depth = 0
    seen = {node_id}
    parent = parent_map.get(node_id)
    while parent is not None and parent in parent_map and parent not in seen:
        seen.add(parent)
        depth += 1
        parent = parent_map.get(parent)
    return depth


def _ancestors(node_id: str, parent_map: Dict[str, Optional[str]]) -> List[str]:
    chain: List[str] = []
    parent = parent_map.get(node_id)
    while parent is not None and parent in parent_map and parent not in chain and parent != node_id:
        chain.append(parent)
        parent = parent_map.get(parent)
    return chain


def _descendants(
    roots: Set[str], nodes: List[LayoutNode], stop: Optional[Set[str]] = None
) -> Set[str]:
    """Ids of every node below ``roots`` (roots excluded), not descending into ``stop``."""
    stop = stop or set()
    children: Dict[str, List[str]] = {}
    for node in nodes:
        if node.parent_id is not None:
            children.setdefault(node.parent_id, []).append(node.id)
    found: Set[str] = set()
    stack = list(roots)
    while stack:
        for child in children.get(stack.pop(), []):
            if child not in found and child not in roots and child not in stop:
                found.add(child)
                stack.append(child)
    return found


# =============================================================================
# Materialization
# =============================================================================


def apply_grouping(
    nodes: List[LayoutNode],
    groups: List[GroupMetadata],
    policy: Optional[SizePolicy] = None,
) -> List[LayoutNode]:
    """Wrap sets of nodes in new group containers.

    Each group is placed around the absolute rectangles of its members,
    expanded by the padding and the label header. Members become children
    of the group (relative positions, ``extent="parent"``). Requests whose
    member list is empty after filtering are skipped.

    Args:
        nodes: Current snapshot
        groups: Group requests, applied in order
        policy: Size policy used to measure members

    Returns:
        Ungrouped nodes first, then each group followed by its members and
        their descendants
    """
    by_id = {node.id: node for node in nodes}
    parent_map = {node.id: node.parent_id for node in nodes}
    absolute = absolute_positions(nodes)

    claimed: Dict[str, str] = {}
    created: List[Tuple[LayoutNode, List[str]]] = []
    created_ids: Set[str] = set()

    for meta in groups:
        if meta.id in by_id or meta.id in created_ids:
            logger.warning(f"Group id {meta.id} is already in use, skipping group")
            continue

        candidates = [
            node_id for node_id in dict.fromkeys(meta.node_ids)
            if node_id in by_id and node_id not in claimed
        ]
        candidate_set = set(candidates)
        # Members nested below another member move with it.
        members = [
            node_id for node_id in candidates
            if not any(
                ancestor in candidate_set
                for ancestor in _ancestors(node_id, parent_map)
            )
        ]
        if not members:
            logger.debug(f"Group {meta.id} has no existing members, skipping")
            continue

        box = bounding_rect(node_rect(by_id[m], policy, absolute[m]) for m in members)
        size = fit_container(box.width, box.height, _group_minimum(NodeType.GROUP.value, policy))
        group = LayoutNode(
            id=meta.id,
            type=NodeType.GROUP.value,
            position=Position(x=box.x - GROUP_PADDING, y=box.y - GROUP_PADDING - GROUP_HEADER_INSET),
            style=NodeStyle(width=size.width, height=size.height),
            data={"label": meta.label},
        )
        for member in members:
            claimed[member] = meta.id
        created.append((group, members))
        created_ids.add(meta.id)
        logger.debug(f"Created group {meta.id} around {len(members)} node(s)")

    if not created:
        return list(nodes)

    moved = _descendants(set(claimed), nodes)
    result = [n for n in nodes if n.id not in claimed and n.id not in moved]

    for group, members in created:
        result.append(group)
        for member in members:
            ax, ay = absolute[member]
            result.append(by_id[member].model_copy(update={
                "position": Position(x=ax - group.position.x, y=ay - group.position.y),
                "parent_id": group.id,
                "extent": PARENT_EXTENT,
            }))
        below = _descendants(set(members), nodes, stop=set(claimed))
        result.extend(n for n in nodes if n.id in below)

    return result


# =============================================================================
# Bounds fitting
# =============================================================================


def fit_group(
    group: LayoutNode,
    children: List[LayoutNode],
    policy: Optional[SizePolicy] = None,
) -> Tuple[LayoutNode, List[LayoutNode]]:
    """Resize one group around its direct children.

    Children are centered horizontally and placed right below the header;
    the group keeps its position and never drops below its current size.

    Returns:
        (resized group, re-positioned children)
    """
    if not children:
        return group, list(children)

    box = bounding_rect(node_rect(child, policy) for child in children)
    size = fit_container(box.width, box.height, resolve_size(group, policy))
    dx = (size.width - box.width) / 2 - box.x
    dy = GROUP_PADDING + GROUP_HEADER_INSET - box.y

    fitted = group.model_copy(update=_with_size(group, size))
    moved = [
        child.moved_to(child.position.x + dx, child.position.y + dy)
        for child in children
    ]
    return fitted, moved


def fit_group_bounds(
    nodes: List[LayoutNode], policy: Optional[SizePolicy] = None
) -> List[LayoutNode]:
    """Refit every group node around its children, deepest groups first.

    Ownership is never changed; only group sizes and children positions.
    """
    current = {node.id: node for node in nodes}
    parent_map = {node.id: node.parent_id for node in nodes}
    children_of: Dict[str, List[str]] = {}
    for node in nodes:
        if node.parent_id is not None and node.parent_id in current:
            children_of.setdefault(node.parent_id, []).append(node.id)

    groups = [n.id for n in nodes if n.is_group and n.id in children_of]
    groups.sort(key=lambda node_id: _depth(node_id, parent_map), reverse=True)

    for group_id in groups:
        kids = [current[child] for child in children_of[group_id]]
        fitted, moved = fit_group(current[group_id], kids, policy)
        current[group_id] = fitted
        for child in moved:
            current[child.id] = child

    return [current[node.id] for node in nodes]


def ensure_parent_extent(nodes: List[LayoutNode]) -> List[LayoutNode]:
    """Constrain every parented node to its container.

    Nodes referencing a missing parent are detached instead.
    """
    node_ids = {node.id for node in nodes}
    result = []
    for node in nodes:
        if node.parent_id is None:
            result.append(node)
        elif node.parent_id not in node_ids:
            logger.warning(f"Node {node.id} references missing parent {node.parent_id}, detaching")
            result.append(node.model_copy(update={"parent_id": None, "extent": None}))
        elif node.extent != PARENT_EXTENT:
            result.append(node.model_copy(update={"extent": PARENT_EXTENT}))
        else:
            result.append(node)
    return result


# =============================================================================
# Inner layout
# =============================================================================


async def layout_children_inside_groups(
    nodes: List[LayoutNode],
    edges: List[LayoutEdge],
    direction: LayoutDirection,
    spacing: Optional[LayoutSpacing] = None,
    algorithm: LayoutAlgorithm = LayoutAlgorithm.LAYERED,
    policy: Optional[SizePolicy] = None,
) -> List[LayoutNode]:
    """Lay out the direct children of every group, deepest groups first.

    Children are placed with a layered-family strategy starting at the
    content origin and the group is resized around them. Edges that reach
    into nested groups count as edges between the group's direct children.

    Args:
        nodes: Current snapshot
        edges: Edges of the snapshot
        direction: Flow direction inside groups
        spacing: (between siblings, between ranks), group defaults if None
        algorithm: Layered-family strategy (others fall back to layered)
        policy: Size policy for the children

    Returns:
        New node list in the input order
    """
    direction = LayoutDirection.coerce(direction)
    algorithm = LayoutAlgorithm.coerce(algorithm)
    if algorithm.family is not LayoutAlgorithm.LAYERED.family:
        algorithm = LayoutAlgorithm.LAYERED
    if spacing is None:
        spacing = (get_setting('group_child_spacing_x'), get_setting('group_child_spacing_y'))

    current = {node.id: node for node in nodes}
    parent_map = {node.id: node.parent_id for node in nodes}
    children_of: Dict[str, List[str]] = {}
    for node in nodes:
        if node.parent_id is not None and node.parent_id in current:
            children_of.setdefault(node.parent_id, []).append(node.id)

    frame_edges: Dict[str, list] = {}
    for edge in edges:
        if edge.source not in current or edge.target not in current:
            continue
        promoted = promote_edge(edge, parent_map)
        if promoted is not None and promoted[0] is not None:
            frame_edges.setdefault(promoted[0], []).append(promoted[1])

    groups = [n.id for n in nodes if n.is_group and n.id in children_of]
    groups.sort(key=lambda node_id: _depth(node_id, parent_map), reverse=True)
    origin_x, origin_y = content_origin()

    for group_id in groups:
        items = []
        for child_id in children_of[group_id]:
            size = resolve_size(current[child_id], policy)
            items.append(CompoundNode(id=child_id, width=size.width, height=size.height))

        placement = place_frame(algorithm, items, frame_edges.get(group_id, []), direction, spacing)
        for child_id, (x, y) in placement.items():
            current[child_id] = current[child_id].moved_to(x + origin_x, y + origin_y)

        content_w = max(placement[item.id][0] + item.width for item in items)
        content_h = max(placement[item.id][1] + item.height for item in items)
        group = current[group_id]
        size = fit_container(content_w, content_h, resolve_size(group, policy))
        current[group_id] = group.model_copy(update=_with_size(group, size))

    logger.debug(f"Laid out children of {len(groups)} group(s)")
    return [current[node.id] for node in nodes]

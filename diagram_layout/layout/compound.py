"""Compound graph builder.

Turns the flat node list (ownership expressed through ``parent_id``) into a
tree of frames: the top-level frame plus one frame per container. Each
frame holds its direct member nodes and the edges between them, so a flat
placement strategy can lay out any frame on its own.

Only group nodes are containers. Nodes owned by any other node are left
out of the graph and keep their position relative to their owner.

Edges that cross a container boundary are promoted: both endpoints are
rewritten to the ancestor that is a direct member of the lowest frame
containing both. For the top frame that is the top-level ancestor of each
endpoint. Promotions that collapse onto a single node are dropped.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Set, Tuple

from diagram_layout.layout.sizing import SizePolicy, fit_container, resolve_size
from diagram_layout.models.layout_models import LayoutEdge, LayoutNode, LayoutSpacing

logger = logging.getLogger(__name__)


@dataclass
class CompoundEdge:
    id: str
    source: str
    target: str


@dataclass
class CompoundNode:
    """A node of the compound graph.

    ``width``/``height`` are the resolved size for plain nodes and the
    estimated container size for containers; ``base_size`` is always the
    node's own resolved size.
    """

    id: str
    width: float
    height: float
    children: List["CompoundNode"] = field(default_factory=list)
    edges: List[CompoundEdge] = field(default_factory=list)
    base_size: Optional[Tuple[float, float]] = None

    @property
    def is_container(self) -> bool:
        return bool(self.children)


@dataclass
class CompoundGraph:
    children: List[CompoundNode]
    edges: List[CompoundEdge]

    def walk(self) -> Iterator[CompoundNode]:
        """All nodes, depth-first, parents before children."""
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def find(self, node_id: str) -> Optional[CompoundNode]:
        for node in self.walk():
            if node.id == node_id:
                return node
        return None


def sanitize_edges(nodes: List[LayoutNode], edges: List[LayoutEdge]) -> List[LayoutEdge]:
    """Drop edges whose source or target is not in ``nodes``."""
    node_ids = {node.id for node in nodes}
    kept = [e for e in edges if e.source in node_ids and e.target in node_ids]
    dropped = len(edges) - len(kept)
    if dropped:
        logger.debug(f"Dropped {dropped} edge(s) with unknown endpoints")
    return kept


def sanitize_parents(nodes: List[LayoutNode]) -> List[LayoutNode]:
    """Clear ``parent_id`` references that are dangling or cyclic.

    A cycle is broken at the first member encountered in list order.
    Unchanged nodes are returned as-is.
    """
    node_ids = {node.id for node in nodes}
    parent_of: Dict[str, Optional[str]] = {}
    cleared = set()

    for node in nodes:
        parent = node.parent_id
        if parent is not None and parent not in node_ids:
            logger.warning(f"Node {node.id} references missing parent {parent}, detaching")
            parent = None
            cleared.add(node.id)
        parent_of[node.id] = parent

    for node in nodes:
        seen = {node.id}
        current = parent_of.get(node.id)
        while current is not None:
            if current == node.id:
                logger.warning(f"Node {node.id} is part of a parent cycle, detaching")
                parent_of[node.id] = None
                cleared.add(node.id)
                break
            if current in seen:
                break
            seen.add(current)
            current = parent_of.get(current)

    if not cleared:
        return list(nodes)
    return [
        node.model_copy(update={"parent_id": None, "extent": None}) if node.id in cleared else node
        for node in nodes
    ]


def container_ids(nodes: List[LayoutNode]) -> Set[str]:
    """Ids of the group nodes that own at least one node."""
    groups = {node.id for node in nodes if node.is_group}
    return {node.parent_id for node in nodes if node.parent_id in groups}


def get_root_id(node_id: str, parent_map: Dict[str, Optional[str]]) -> str:
    """Top-level ancestor of ``node_id``.

    Stops at the last node before a dangling reference or a repeated node,
    so malformed ``parent_id`` chains cannot loop forever.
    """
    current = node_id
    seen = {current}
    while True:
        parent = parent_map.get(current)
        if parent is None or parent not in parent_map or parent in seen:
            return current
        seen.add(parent)
        current = parent


def _ancestor_chain(node_id: str, parent_map: Dict[str, Optional[str]]) -> List[str]:
    chain = [node_id]
    while True:
        parent = parent_map.get(chain[-1])
        if parent is None or parent in chain:
            return chain
        chain.append(parent)


def promote_edge(
    edge: LayoutEdge, parent_map: Dict[str, Optional[str]]
) -> Optional[Tuple[Optional[str], CompoundEdge]]:
    """Frame and promoted endpoints of an edge.

    Returns:
        (frame id, promoted edge), frame id None for the top level, or
        None if both endpoints collapse onto the same member.
    """
    source_chain = _ancestor_chain(edge.source, parent_map)
    target_chain = _ancestor_chain(edge.target, parent_map)

    # Frames are the strict ancestors of each endpoint plus the top level.
    target_frames = set(target_chain[1:])
    frame: Optional[str] = None
    for candidate in source_chain[1:]:
        if candidate in target_frames:
            frame = candidate
            break

    def member_of(chain: List[str]) -> str:
        for node_id in chain:
            if parent_map.get(node_id) == frame:
                return node_id
        return chain[-1]

    source = member_of(source_chain)
    target = member_of(target_chain)
    if source == target:
        return None
    return frame, CompoundEdge(id=edge.id, source=source, target=target)


def estimate_group_content(children: List[CompoundNode], spacing: float) -> Tuple[float, float]:
    """Rough content extent of a container before its children are placed.

    Width is the widest child; height stacks all children with ``spacing``
    between them.
    """
    if not children:
        return 0.0, 0.0
    width = max(child.width for child in children)
    height = sum(child.height for child in children) + spacing * (len(children) - 1)
    return width, height


def build_graph(
    nodes: List[LayoutNode],
    edges: List[LayoutEdge],
    policy: Optional[SizePolicy] = None,
    spacing: Optional[LayoutSpacing] = None,
) -> CompoundGraph:
    """Build the compound graph for a node/edge snapshot.

    Args:
        nodes: Flat node list, ownership via ``parent_id``
        edges: Edge list; dangling edges are dropped
        policy: Size policy for plain nodes
        spacing: (between siblings, between ranks) used for content estimates

    Returns:
        CompoundGraph whose frames carry promoted edges
    """
    nodes = sanitize_parents(nodes)
    edges = sanitize_edges(nodes, edges)
    stack_spacing = spacing[1] if spacing else 0.0

    parent_map: Dict[str, Optional[str]] = {node.id: node.parent_id for node in nodes}
    members: Dict[Optional[str], List[LayoutNode]] = defaultdict(list)
    for node in nodes:
        members[node.parent_id].append(node)

    frame_edges: Dict[Optional[str], List[CompoundEdge]] = defaultdict(list)
    for edge in edges:
        promoted = promote_edge(edge, parent_map)
        if promoted is None:
            continue
        frame, compound_edge = promoted
        frame_edges[frame].append(compound_edge)

    def build(node: LayoutNode) -> CompoundNode:
        nested = members.get(node.id, []) if node.is_group else []
        children = [build(child) for child in nested]
        size = resolve_size(node, policy)
        width, height = size.width, size.height
        if children:
            content_w, content_h = estimate_group_content(children, stack_spacing)
            fitted = fit_container(content_w, content_h, size)
            width, height = fitted.width, fitted.height
        return CompoundNode(
            id=node.id,
            width=width,
            height=height,
            children=children,
            edges=list(frame_edges.get(node.id, [])) if children else [],
            base_size=(size.width, size.height),
        )

    top_level = [build(node) for node in members.get(None, [])]
    return CompoundGraph(children=top_level, edges=list(frame_edges.get(None, [])))

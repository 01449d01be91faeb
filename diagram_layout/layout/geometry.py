"""Rectangle helpers shared by the layout passes."""

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from diagram_layout.layout.sizing import SizePolicy, resolve_size
from diagram_layout.models.layout_models import BoundingBox, LayoutNode


@dataclass
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    def expanded(self, margin: float) -> "Rect":
        return Rect(
            self.x - margin,
            self.y - margin,
            self.width + 2 * margin,
            self.height + 2 * margin,
        )

    def overlap(self, other: "Rect") -> Tuple[float, float]:
        """Penetration depth along x and y (positive means overlapping)."""
        ax, ay = self.center
        bx, by = other.center
        px = (self.width + other.width) / 2 - abs(ax - bx)
        py = (self.height + other.height) / 2 - abs(ay - by)
        return px, py

    def contains(self, other: "Rect", tolerance: float = 1e-6) -> bool:
        return (
            other.x >= self.x - tolerance
            and other.y >= self.y - tolerance
            and other.right <= self.right + tolerance
            and other.bottom <= self.bottom + tolerance
        )


def bounding_rect(rects: Iterable[Rect]) -> Rect:
    """Smallest rect enclosing all ``rects``.

    Raises:
        ValueError: If rects is empty
    """
    rects = list(rects)
    if not rects:
        raise ValueError("Cannot compute bounding rect of no rectangles")
    min_x = min(r.x for r in rects)
    min_y = min(r.y for r in rects)
    max_x = max(r.right for r in rects)
    max_y = max(r.bottom for r in rects)
    return Rect(min_x, min_y, max_x - min_x, max_y - min_y)


def absolute_positions(nodes: List[LayoutNode]) -> Dict[str, Tuple[float, float]]:
    """Absolute top-left corner of every node.

    Positions of parented nodes are relative to their parent; this sums
    them up the ``parent_id`` chain. Dangling parents end the chain and a
    ``parent_id`` cycle is cut at the first repeated node.
    """
    by_id = {node.id: node for node in nodes}
    resolved: Dict[str, Tuple[float, float]] = {}

    for node in nodes:
        if node.id in resolved:
            continue
        chain = []
        seen = set()
        current: Optional[LayoutNode] = node
        while current is not None and current.id not in resolved and current.id not in seen:
            seen.add(current.id)
            chain.append(current)
            current = by_id.get(current.parent_id) if current.parent_id else None

        base_x, base_y = (0.0, 0.0)
        if current is not None and current.id in resolved:
            base_x, base_y = resolved[current.id]

        for link in reversed(chain):
            base_x += link.position.x
            base_y += link.position.y
            resolved[link.id] = (base_x, base_y)

    return resolved


def node_rect(
    node: LayoutNode,
    policy: Optional[SizePolicy] = None,
    origin: Optional[Tuple[float, float]] = None,
) -> Rect:
    """Rect of a node, at ``origin`` if given, else at its own position."""
    size = resolve_size(node, policy)
    x, y = origin if origin is not None else (node.position.x, node.position.y)
    return Rect(x, y, size.width, size.height)


def layout_bounds(nodes: List[LayoutNode], policy: Optional[SizePolicy] = None) -> BoundingBox:
    """Bounding box of all nodes in absolute coordinates."""
    absolute = absolute_positions(nodes)
    box = bounding_rect(node_rect(n, policy, absolute[n.id]) for n in nodes)
    return BoundingBox(min_x=box.x, max_x=box.right, min_y=box.y, max_y=box.bottom)

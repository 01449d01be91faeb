"""Value types exchanged with the layout engine.

This module provides the schemas for a layout call:
- Nodes (position, ownership, explicit and measured size)
- Edges (endpoints and attachment handles)
- Group materialization requests
- Direction, algorithm and collision-resolution settings

Every layout call takes a snapshot of nodes and edges and returns a new
snapshot; nothing here is mutated by the engine. Field names follow Python
conventions but the editor's camelCase spelling (``parentId``,
``sourceHandle``, ``nodeIds`` ...) is accepted as an alias so editor JSON
validates directly.
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)

# (between siblings, between ranks) in pixels
LayoutSpacing = Tuple[float, float]


class NodeType(str, Enum):
    """Node types known to the size policy.

    ``LayoutNode.type`` stays a free string; unknown types simply resolve
    to the global default size.
    """
    DEFAULT = "default"
    SHAPE = "shape"
    TEXT = "text"
    IMAGE = "image"
    TABLE = "table"
    DATABASE_SCHEMA = "database_schema"
    SERVICE = "service"
    QUEUE = "queue"
    ACTOR = "actor"
    ICON = "icon"
    STICKY_NOTE = "sticky_note"
    GROUP = "group"
    MIND_MAP = "mind_map"
    FREE_DRAW = "free_draw"
    EDGE_ANCHOR = "edge_anchor"


class Handle(str, Enum):
    """Side of a node where an edge attaches."""
    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"


class LayoutDirection(str, Enum):
    """Primary flow direction of a layout.

    Values are the editor's rank-direction codes.
    """
    DOWN = "TB"
    UP = "BT"
    RIGHT = "LR"
    LEFT = "RL"

    @classmethod
    def coerce(cls, value: Union["LayoutDirection", str, None]) -> "LayoutDirection":
        """Parse a direction, falling back to left-to-right.

        Accepts members, values ("TB"), names ("DOWN") and plain words
        ("down"), case-insensitively.

        Args:
            value: Direction in any supported spelling

        Returns:
            Matching direction, or RIGHT if the value is not recognized
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().upper()
            for member in cls:
                if key in (member.value, member.name):
                    return member
        logger.warning(f"Unknown layout direction {value!r}, falling back to {cls.RIGHT.name}")
        return cls.RIGHT

    @property
    def is_horizontal(self) -> bool:
        """Whether ranks advance along the x axis."""
        return self in (LayoutDirection.RIGHT, LayoutDirection.LEFT)

    @property
    def is_reversed(self) -> bool:
        """Whether ranks advance toward negative coordinates."""
        return self in (LayoutDirection.UP, LayoutDirection.LEFT)


class AlgorithmFamily(str, Enum):
    """Solver families behind the algorithm names."""
    LAYERED = "layered"
    RANK_BASED = "rank"
    STRICT_HIERARCHY = "hierarchy"


class LayoutAlgorithm(str, Enum):
    """Supported layout strategies."""
    LAYERED = "layered"
    MRTREE = "mrtree"
    BOX = "box"
    FORCE = "force"
    RADIAL = "radial"
    STRESS = "stress"
    RANK = "rank"
    TREE = "tree"
    CLUSTER = "cluster"

    @classmethod
    def coerce(cls, value: Union["LayoutAlgorithm", str, None]) -> "LayoutAlgorithm":
        """Parse an algorithm name, falling back to layered placement.

        Besides the member values this accepts the editor's identifiers:
        ``elk-<strategy>`` for the layered family, ``dagre`` and
        ``d3-tree`` / ``d3-cluster``.

        Args:
            value: Algorithm in any supported spelling

        Returns:
            Matching algorithm, or LAYERED if the value is not recognized
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            key = _ALGORITHM_ALIASES.get(key, key)
            if key.startswith("elk-") and key[4:] in _LAYERED_STRATEGIES:
                key = key[4:]
            try:
                return cls(key)
            except ValueError:
                pass
        logger.warning(f"Unknown layout algorithm {value!r}, falling back to {cls.LAYERED.value}")
        return cls.LAYERED

    @property
    def family(self) -> AlgorithmFamily:
        """Solver family that implements this algorithm."""
        if self is LayoutAlgorithm.RANK:
            return AlgorithmFamily.RANK_BASED
        if self in (LayoutAlgorithm.TREE, LayoutAlgorithm.CLUSTER):
            return AlgorithmFamily.STRICT_HIERARCHY
        return AlgorithmFamily.LAYERED


_LAYERED_STRATEGIES = {"layered", "mrtree", "box", "force", "radial", "stress"}

_ALGORITHM_ALIASES = {
    "dagre": "rank",
    "d3-tree": "tree",
    "d3-cluster": "cluster",
}


class Position(BaseModel):
    """Top-left corner of a node.

    For a node with a parent the position is relative to the parent's
    top-left corner.
    """

    x: float = Field(default=0.0, description="Horizontal coordinate")
    y: float = Field(default=0.0, description="Vertical coordinate")

    @classmethod
    def from_list(cls, pos: List[float]) -> "Position":
        """Create Position from [x, y] list.

        Raises:
            ValueError: If pos doesn't have exactly 2 elements
        """
        if len(pos) != 2:
            raise ValueError(f"Position must be [x, y], got {len(pos)} elements")
        return cls(x=pos[0], y=pos[1])

    def to_list(self) -> List[float]:
        return [self.x, self.y]


class Size(BaseModel):
    """Resolved node footprint."""

    width: float = Field(..., gt=0, description="Width in pixels")
    height: float = Field(..., gt=0, description="Height in pixels")


class Dimensions(BaseModel):
    """Optional width/height pair as reported by the editor.

    Either value may be missing or zero before the editor has measured
    the node.
    """

    model_config = ConfigDict(extra="allow")

    width: Optional[float] = Field(default=None, description="Width in pixels")
    height: Optional[float] = Field(default=None, description="Height in pixels")


class NodeStyle(Dimensions):
    """Visual style of a node; only the explicit size matters to layout."""


class LayoutNode(BaseModel):
    """A node of the diagram snapshot.

    Attributes:
        id: Caller-supplied identifier, unique within a layout call
        type: Node type tag, used to pick a default size
        position: Top-left position (relative to the parent if parented)
        parent_id: Owning container, if any
        extent: "parent" when the node is constrained to its container
        measured: Size reported by the editor
        style: Explicit style size (mostly used by group containers)
        data: Opaque payload (labels etc.), passed through
        source_position: Side outgoing edges leave from
        target_position: Side incoming edges enter at
        selected: Editor selection flag, used by "layout selection"
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(..., min_length=1, description="Unique node id")
    type: str = Field(default=NodeType.DEFAULT.value, description="Node type tag")
    position: Position = Field(default_factory=Position, description="Top-left position")
    parent_id: Optional[str] = Field(
        default=None, alias="parentId", description="Id of the owning container"
    )
    extent: Optional[str] = Field(
        default=None, description="'parent' when constrained to the container"
    )
    measured: Optional[Dimensions] = Field(default=None, description="Measured size")
    style: NodeStyle = Field(default_factory=NodeStyle, description="Explicit style size")
    data: Dict[str, Any] = Field(default_factory=dict, description="Opaque node payload")
    source_position: Optional[Handle] = Field(
        default=None, alias="sourcePosition", description="Outgoing handle side"
    )
    target_position: Optional[Handle] = Field(
        default=None, alias="targetPosition", description="Incoming handle side"
    )
    selected: Optional[bool] = Field(default=None, description="Selected in the editor")

    @field_validator("type", mode="before")
    @classmethod
    def default_type(cls, v: Any) -> Any:
        """Treat a missing type as the default node type."""
        if v is None or v == "":
            return NodeType.DEFAULT.value
        if isinstance(v, Enum):
            return v.value
        return v

    @property
    def is_group(self) -> bool:
        return self.type == NodeType.GROUP.value

    @property
    def is_hierarchy(self) -> bool:
        """Whether the node belongs to the strict-hierarchy (mind map) subset."""
        return self.type == NodeType.MIND_MAP.value

    def moved_to(self, x: float, y: float) -> "LayoutNode":
        """Return a copy placed at (x, y)."""
        return self.model_copy(update={"position": Position(x=x, y=y)})

    def to_dict(self) -> Dict[str, Any]:
        """Export in the editor's camelCase spelling."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class LayoutEdge(BaseModel):
    """A directed edge between two nodes of the same snapshot."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    id: str = Field(..., min_length=1, description="Unique edge id")
    source: str = Field(..., description="Source node id")
    target: str = Field(..., description="Target node id")
    source_handle: Optional[str] = Field(
        default=None, alias="sourceHandle", description="Side the edge leaves from"
    )
    target_handle: Optional[str] = Field(
        default=None, alias="targetHandle", description="Side the edge enters at"
    )
    type: Optional[str] = Field(default=None, description="Edge rendering type")
    data: Dict[str, Any] = Field(default_factory=dict, description="Opaque edge payload")

    def to_dict(self) -> Dict[str, Any]:
        """Export in the editor's camelCase spelling."""
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class GroupMetadata(BaseModel):
    """Request to wrap a set of nodes in a new group container.

    Consumed once by ``apply_grouping``; never persisted.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., min_length=1, description="Id of the group node to create")
    label: str = Field(default="Group", description="Group label")
    node_ids: List[str] = Field(
        default_factory=list, alias="nodeIds", description="Ids of the member nodes"
    )


class CollisionOptions(BaseModel):
    """Tuning for the collision resolver.

    Attributes:
        max_iterations: Upper bound on relaxation passes
        overlap_threshold: Overlap (px, per axis) tolerated without correction
        margin: Clearance added around every node before testing overlap
    """

    max_iterations: int = Field(default=50, ge=0, description="Maximum relaxation passes")
    overlap_threshold: float = Field(default=0.5, ge=0, description="Tolerated overlap in px")
    margin: float = Field(default=15.0, ge=0, description="Clearance around nodes in px")


class BoundingBox(BaseModel):
    """Axis-aligned box around a set of rectangles."""

    min_x: float = Field(..., description="Minimum x coordinate")
    max_x: float = Field(..., description="Maximum x coordinate")
    min_y: float = Field(..., description="Minimum y coordinate")
    max_y: float = Field(..., description="Maximum y coordinate")

    @property
    def width(self) -> float:
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        return self.max_y - self.min_y

    @property
    def center(self) -> Tuple[float, float]:
        return (
            (self.min_x + self.max_x) / 2,
            (self.min_y + self.max_y) / 2
        )


class LayoutResult(BaseModel):
    """New snapshot returned by a layout call."""

    nodes: List[LayoutNode] = Field(default_factory=list, description="Positioned nodes")
    edges: List[LayoutEdge] = Field(default_factory=list, description="Normalized edges")

    def get_node(self, node_id: str) -> Optional[LayoutNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_edge(self, edge_id: str) -> Optional[LayoutEdge]:
        for edge in self.edges:
            if edge.id == edge_id:
                return edge
        return None


__all__ = [
    "LayoutSpacing",
    "NodeType",
    "Handle",
    "LayoutDirection",
    "AlgorithmFamily",
    "LayoutAlgorithm",
    "Position",
    "Size",
    "Dimensions",
    "NodeStyle",
    "LayoutNode",
    "LayoutEdge",
    "GroupMetadata",
    "CollisionOptions",
    "BoundingBox",
    "LayoutResult",
]

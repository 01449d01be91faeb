"""Effective node sizes.

A node's footprint comes from, in order: an explicit style size (group
containers only), the size measured by the editor, the default for its
type, and finally a global default. The type table is a ``SizePolicy`` so
new node types only need a table entry.
"""

import math
from typing import Dict, Optional, Tuple

from diagram_layout.config.settings import get_setting
from diagram_layout.models.layout_models import LayoutNode, NodeType, Size

DEFAULT_NODE_SIZE: Tuple[float, float] = (150.0, 50.0)

GROUP_PADDING = get_setting('group_padding')
GROUP_HEADER_INSET = get_setting('group_header_inset')

DEFAULT_TYPE_SIZES: Dict[str, Tuple[float, float]] = {
    NodeType.MIND_MAP.value: (170.0, 44.0),
    NodeType.SHAPE.value: (150.0, 50.0),
    NodeType.TEXT.value: (160.0, 40.0),
    NodeType.IMAGE.value: (160.0, 120.0),
    NodeType.TABLE.value: (240.0, 160.0),
    NodeType.DATABASE_SCHEMA.value: (220.0, 200.0),
    NodeType.SERVICE.value: (160.0, 72.0),
    NodeType.QUEUE.value: (140.0, 64.0),
    NodeType.ACTOR.value: (100.0, 100.0),
    NodeType.ICON.value: (64.0, 64.0),
    NodeType.STICKY_NOTE.value: (180.0, 180.0),
    NodeType.GROUP.value: (180.0, 120.0),
}


def _positive(value: Optional[float]) -> Optional[float]:
    if value is None:
        return None
    try:
        value = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(value) or math.isinf(value) or value <= 0:
        return None
    return value


class SizePolicy:
    """Maps node types to default footprints.

    Args:
        defaults: node type -> (width, height)
        fallback: size for types missing from the table
    """

    def __init__(
        self,
        defaults: Optional[Dict[str, Tuple[float, float]]] = None,
        fallback: Tuple[float, float] = DEFAULT_NODE_SIZE,
    ):
        self._defaults = dict(DEFAULT_TYPE_SIZES if defaults is None else defaults)
        self._fallback = fallback

    def default_for(self, node_type: str) -> Tuple[float, float]:
        """Default (width, height) for a node type."""
        return self._defaults.get(node_type, self._fallback)

    def with_overrides(self, overrides: Dict[str, Tuple[float, float]]) -> "SizePolicy":
        """Return a policy with some entries replaced."""
        return SizePolicy({**self._defaults, **overrides}, self._fallback)

    def resolve(self, node: LayoutNode) -> Size:
        """Effective size of a node.

        Args:
            node: Node to size

        Returns:
            Size with strictly positive width and height
        """
        default_w, default_h = self.default_for(node.type)
        width = height = None

        if node.is_group:
            width = _positive(node.style.width)
            height = _positive(node.style.height)

        if node.measured is not None:
            width = width or _positive(node.measured.width)
            height = height or _positive(node.measured.height)

        return Size(
            width=width or _positive(default_w) or DEFAULT_NODE_SIZE[0],
            height=height or _positive(default_h) or DEFAULT_NODE_SIZE[1],
        )


DEFAULT_SIZE_POLICY = SizePolicy()


def resolve_size(node: LayoutNode, policy: Optional[SizePolicy] = None) -> Size:
    """Effective size of a node under ``policy`` (default table if None)."""
    return (policy or DEFAULT_SIZE_POLICY).resolve(node)


def content_origin() -> Tuple[float, float]:
    """Top-left corner of a container's content area, relative to the container."""
    return (GROUP_PADDING, GROUP_PADDING + GROUP_HEADER_INSET)


def fit_container(content_width: float, content_height: float, minimum: Size) -> Size:
    """Container size that holds content of the given extent.

    The content is padded on all sides and gets the label header on top;
    the result never drops below ``minimum``.
    """
    return Size(
        width=max(minimum.width, content_width + 2 * GROUP_PADDING),
        height=max(minimum.height, content_height + 2 * GROUP_PADDING + GROUP_HEADER_INSET),
    )

"""Whole-layout translations applied after placement."""

import logging
from typing import Iterable, List, Optional

from diagram_layout.config.settings import get_setting
from diagram_layout.models.layout_models import LayoutNode, Position

logger = logging.getLogger(__name__)

ROOT_LEFT_PADDING = get_setting('root_left_padding')


def shift_layout_left(
    nodes: List[LayoutNode],
    left_padding: Optional[float] = None,
    anchor_ids: Optional[Iterable[str]] = None,
) -> List[LayoutNode]:
    """Shift top-level nodes so the leftmost hierarchy node sits at ``left_padding``.

    The hierarchy is ``anchor_ids`` when given, the top-level mind map
    nodes otherwise. Without any anchor the nodes are returned unchanged.
    Parented nodes are relative to their container and move with it.
    """
    padding = ROOT_LEFT_PADDING if left_padding is None else left_padding
    if anchor_ids is None:
        anchors = [n for n in nodes if n.is_hierarchy and n.parent_id is None]
    else:
        wanted = set(anchor_ids)
        anchors = [n for n in nodes if n.id in wanted and n.parent_id is None]
    if not anchors:
        return list(nodes)

    min_x = min(n.position.x for n in anchors)
    dx = padding - min_x
    logger.debug(f"Shifting layout by {dx:.1f}px to place the hierarchy root at x={padding}")

    shifted = []
    for node in nodes:
        if node.parent_id is not None:
            shifted.append(node)
            continue
        # Land exactly on the padding for the leftmost node.
        x = padding if node.position.x == min_x else node.position.x + dx
        shifted.append(node.model_copy(update={"position": Position(x=x, y=node.position.y)}))
    return shifted

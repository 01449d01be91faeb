"""Tests for edge handle normalization and the root shift."""

import pytest

from diagram_layout.layout.handles import (
    HIERARCHY_EDGE_TYPE,
    apply_node_handles,
    handle_ids,
    infer_handle_pair,
    infer_handles,
    normalize_handles,
)
from diagram_layout.layout.transforms import shift_layout_left
from diagram_layout.models.layout_models import Handle, LayoutDirection

from diagram_fixtures import edge, node, positions


class TestHandleIds:
    """Test direction to handle mapping."""

    @pytest.mark.parametrize("direction,expected", [
        (LayoutDirection.DOWN, (Handle.BOTTOM, Handle.TOP)),
        (LayoutDirection.UP, (Handle.TOP, Handle.BOTTOM)),
        (LayoutDirection.RIGHT, (Handle.RIGHT, Handle.LEFT)),
        (LayoutDirection.LEFT, (Handle.LEFT, Handle.RIGHT)),
        ("TB", (Handle.BOTTOM, Handle.TOP)),
    ])
    def test_handle_ids(self, direction, expected):
        assert handle_ids(direction) == expected

    def test_apply_node_handles(self):
        nodes = [node("a"), node("b")]
        placed = apply_node_handles(nodes, LayoutDirection.LEFT)
        assert all(n.source_position is Handle.LEFT for n in placed)
        assert all(n.target_position is Handle.RIGHT for n in placed)
        assert nodes[0].source_position is None


class TestNormalizeHandles:
    """Test hierarchy edge normalization."""

    def test_hierarchy_edges_rewritten(self):
        nodes = [node("A", node_type="mind_map"), node("B", node_type="mind_map")]
        edges = [edge("A", "B", sourceHandle="top", data={"weight": 2})]
        (normalized,) = normalize_handles(nodes, edges, LayoutDirection.DOWN)
        assert (normalized.source_handle, normalized.target_handle) == ("bottom", "top")
        assert normalized.type == HIERARCHY_EDGE_TYPE
        assert normalized.data == {"weight": 2, "connector_type": "default"}
        # Input untouched
        assert edges[0].source_handle == "top"

    def test_mixed_edges_untouched(self):
        nodes = [node("A", node_type="mind_map"), node("x")]
        edges = [edge("A", "x", sourceHandle="top")]
        assert normalize_handles(nodes, edges, LayoutDirection.DOWN) == edges

    def test_no_hierarchy(self):
        nodes = [node("a"), node("b")]
        edges = [edge("a", "b")]
        assert normalize_handles(nodes, edges, LayoutDirection.RIGHT) == edges

    def test_explicit_hierarchy_subset(self):
        nodes = [node("a"), node("b"), node("x")]
        edges = [edge("a", "b"), edge("a", "x", sourceHandle="top")]
        first, second = normalize_handles(nodes, edges, LayoutDirection.RIGHT, hierarchy_ids=["a", "b"])
        assert (first.source_handle, first.target_handle) == ("right", "left")
        assert first.type == HIERARCHY_EDGE_TYPE
        assert second == edges[1]


class TestInferHandles:
    """Test geometric handle inference."""

    @pytest.mark.parametrize("source,target,expected", [
        ((0, 0), (100, 10), (Handle.RIGHT, Handle.LEFT)),
        ((0, 0), (-100, 10), (Handle.LEFT, Handle.RIGHT)),
        ((0, 0), (10, 100), (Handle.BOTTOM, Handle.TOP)),
        ((0, 0), (10, -100), (Handle.TOP, Handle.BOTTOM)),
        ((0, 0), (50, 50), (Handle.RIGHT, Handle.LEFT)),
    ])
    def test_infer_handle_pair(self, source, target, expected):
        assert infer_handle_pair(source, target) == expected

    def test_fills_missing_handles(self):
        nodes = [node("a"), node("b", y=300)]
        edges = [edge("a", "b"), edge("b", "a", targetHandle="left")]
        first, second = infer_handles(nodes, edges)
        assert (first.source_handle, first.target_handle) == ("bottom", "top")
        assert (second.source_handle, second.target_handle) == ("top", "left")

    def test_uses_absolute_positions(self):
        nodes = [
            node("g", x=1000, node_type="group"),
            node("a", x=24, y=56, parent="g"),
            node("b", x=0, y=56),
        ]
        (inferred,) = infer_handles(nodes, [edge("b", "a")])
        assert inferred.source_handle == "right"

    def test_unknown_endpoint_kept(self):
        e = edge("a", "ghost")
        assert infer_handles([node("a")], [e]) == [e]


class TestShiftLayoutLeft:
    """Test the hierarchy root shift."""

    def test_leftmost_hierarchy_node_lands_on_padding(self):
        nodes = [
            node("A", x=412.37, y=5, node_type="mind_map"),
            node("B", x=700.1, node_type="mind_map"),
            node("note", x=10),
        ]
        shifted = positions(shift_layout_left(nodes))
        assert shifted["A"] == (80, 5)
        assert shifted["B"][0] == pytest.approx(700.1 - 332.37)
        assert shifted["note"][0] == pytest.approx(10 - 332.37)

    def test_parented_nodes_not_moved(self):
        nodes = [
            node("g", x=300, node_type="group"),
            node("A", x=24, y=56, node_type="mind_map", parent="g"),
            node("B", x=500, node_type="mind_map"),
        ]
        shifted = positions(shift_layout_left(nodes))
        assert shifted["A"] == (24, 56)
        assert shifted["B"] == (80, 0)
        assert shifted["g"] == (-120, 0)

    def test_no_hierarchy_nodes(self):
        nodes = [node("a", x=500)]
        assert positions(shift_layout_left(nodes)) == {"a": (500, 0)}

    def test_custom_padding(self):
        nodes = [node("A", x=5, node_type="mind_map")]
        assert positions(shift_layout_left(nodes, left_padding=0)) == {"A": (0, 0)}

    def test_explicit_anchors(self):
        nodes = [node("R", x=12), node("a", x=222), node("note", x=5, y=400)]
        shifted = positions(shift_layout_left(nodes, anchor_ids=["R", "a"]))
        assert shifted == {"R": (80, 0), "a": (290, 0), "note": (73, 400)}

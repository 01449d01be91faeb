"""Tests for the layout value types and settings.

Tests cover:
- Node/edge schemas and the editor's camelCase aliases
- Direction and algorithm parsing with fallbacks
- Settings lookup
"""

import pytest
from pydantic import ValidationError

from diagram_layout.config import get_all_settings, get_setting
from diagram_layout.models import (
    AlgorithmFamily,
    BoundingBox,
    CollisionOptions,
    GroupMetadata,
    Handle,
    LayoutAlgorithm,
    LayoutDirection,
    LayoutEdge,
    LayoutNode,
    LayoutResult,
    Position,
    Size,
)


class TestLayoutNode:
    """Test LayoutNode validation and export."""

    def test_camel_case_aliases(self):
        """Editor JSON validates directly."""
        node = LayoutNode.model_validate({
            "id": "a",
            "type": "mind_map",
            "parentId": "g1",
            "sourcePosition": "right",
            "targetPosition": "left",
            "position": {"x": 10, "y": 20},
        })
        assert node.parent_id == "g1"
        assert node.source_position is Handle.RIGHT
        assert node.target_position is Handle.LEFT
        assert node.is_hierarchy
        assert not node.is_group

    def test_missing_type_is_default(self):
        assert LayoutNode(id="a").type == "default"
        assert LayoutNode(id="a", type=None).type == "default"

    def test_extra_fields_pass_through(self):
        node = LayoutNode.model_validate({"id": "a", "draggable": False})
        assert node.to_dict()["draggable"] is False

    def test_to_dict_uses_aliases(self):
        node = LayoutNode(id="a", parent_id="g", extent="parent")
        exported = node.to_dict()
        assert exported["parentId"] == "g"
        assert "parent_id" not in exported
        assert "sourcePosition" not in exported

    def test_moved_to_returns_copy(self):
        node = LayoutNode(id="a")
        moved = node.moved_to(5, 6)
        assert (moved.position.x, moved.position.y) == (5, 6)
        assert (node.position.x, node.position.y) == (0, 0)

    def test_empty_id_rejected(self):
        with pytest.raises(ValidationError):
            LayoutNode(id="")


class TestValueTypes:
    """Test the small value models."""

    def test_position_from_list(self):
        assert Position.from_list([1, 2]).to_list() == [1, 2]
        with pytest.raises(ValueError):
            Position.from_list([1, 2, 3])

    def test_size_must_be_positive(self):
        with pytest.raises(ValidationError):
            Size(width=0, height=10)
        with pytest.raises(ValidationError):
            Size(width=10, height=-1)

    def test_collision_defaults(self):
        options = CollisionOptions()
        assert options.max_iterations == 50
        assert options.overlap_threshold == 0.5
        assert options.margin == 15

    def test_group_metadata_alias(self):
        meta = GroupMetadata.model_validate({"id": "g1", "nodeIds": ["a", "b"]})
        assert meta.node_ids == ["a", "b"]
        assert meta.label == "Group"

    def test_bounding_box(self):
        box = BoundingBox(min_x=0, max_x=100, min_y=10, max_y=50)
        assert box.width == 100
        assert box.height == 40
        assert box.center == (50, 30)

    def test_layout_result_lookup(self):
        result = LayoutResult(
            nodes=[LayoutNode(id="a")],
            edges=[LayoutEdge(id="e1", source="a", target="a")],
        )
        assert result.get_node("a").id == "a"
        assert result.get_node("zzz") is None
        assert result.get_edge("e1").source == "a"

    def test_edge_aliases(self):
        edge = LayoutEdge.model_validate(
            {"id": "e", "source": "a", "target": "b", "sourceHandle": "bottom"}
        )
        assert edge.source_handle == "bottom"
        assert edge.to_dict()["sourceHandle"] == "bottom"


class TestLayoutDirection:
    """Test direction parsing."""

    @pytest.mark.parametrize("value,expected", [
        ("TB", LayoutDirection.DOWN),
        ("down", LayoutDirection.DOWN),
        ("BT", LayoutDirection.UP),
        ("LR", LayoutDirection.RIGHT),
        ("right", LayoutDirection.RIGHT),
        ("RL", LayoutDirection.LEFT),
        (LayoutDirection.LEFT, LayoutDirection.LEFT),
    ])
    def test_coerce(self, value, expected):
        assert LayoutDirection.coerce(value) is expected

    def test_unknown_falls_back_to_right(self):
        assert LayoutDirection.coerce("diagonal") is LayoutDirection.RIGHT
        assert LayoutDirection.coerce(None) is LayoutDirection.RIGHT

    def test_axis_properties(self):
        assert LayoutDirection.RIGHT.is_horizontal
        assert not LayoutDirection.DOWN.is_horizontal
        assert LayoutDirection.UP.is_reversed
        assert LayoutDirection.LEFT.is_reversed
        assert not LayoutDirection.RIGHT.is_reversed


class TestLayoutAlgorithm:
    """Test algorithm parsing and families."""

    @pytest.mark.parametrize("value,expected", [
        ("layered", LayoutAlgorithm.LAYERED),
        ("elk-layered", LayoutAlgorithm.LAYERED),
        ("elk-mrtree", LayoutAlgorithm.MRTREE),
        ("ELK-Stress", LayoutAlgorithm.STRESS),
        ("dagre", LayoutAlgorithm.RANK),
        ("d3-tree", LayoutAlgorithm.TREE),
        ("d3-cluster", LayoutAlgorithm.CLUSTER),
    ])
    def test_coerce(self, value, expected):
        assert LayoutAlgorithm.coerce(value) is expected

    def test_unknown_falls_back_to_layered(self):
        assert LayoutAlgorithm.coerce("spring-magic") is LayoutAlgorithm.LAYERED
        assert LayoutAlgorithm.coerce("elk-unknown") is LayoutAlgorithm.LAYERED
        assert LayoutAlgorithm.coerce(None) is LayoutAlgorithm.LAYERED

    def test_families(self):
        assert LayoutAlgorithm.FORCE.family is AlgorithmFamily.LAYERED
        assert LayoutAlgorithm.RANK.family is AlgorithmFamily.RANK_BASED
        assert LayoutAlgorithm.CLUSTER.family is AlgorithmFamily.STRICT_HIERARCHY


class TestSettings:
    """Test settings lookup."""

    def test_defaults(self):
        assert get_setting('root_left_padding') == 80.0
        assert get_setting('group_child_spacing_x') == 40.0
        assert get_setting('group_child_spacing_y') == 32.0

    def test_unknown_setting(self):
        with pytest.raises(KeyError, match="Available settings"):
            get_setting('no_such_setting')

    def test_get_all_returns_copy(self):
        settings = get_all_settings()
        settings['root_left_padding'] = -1
        assert get_setting('root_left_padding') == 80.0

"""Tests for size resolution, container fitting and rectangle helpers."""

import math

import pytest

from diagram_layout.layout.geometry import Rect, absolute_positions, bounding_rect, layout_bounds
from diagram_layout.layout.sizing import (
    DEFAULT_NODE_SIZE,
    SizePolicy,
    content_origin,
    fit_container,
    resolve_size,
)
from diagram_layout.models.layout_models import LayoutNode, Size

from diagram_fixtures import node


class TestResolveSize:
    """Test the size resolution order."""

    def test_type_defaults(self):
        assert resolve_size(node("a", node_type="mind_map")) == Size(width=170, height=44)
        assert resolve_size(node("a", node_type="group")) == Size(width=180, height=120)

    def test_unknown_type_uses_global_default(self):
        size = resolve_size(node("a", node_type="hexagon_of_doom"))
        assert (size.width, size.height) == DEFAULT_NODE_SIZE

    def test_measured_beats_type_default(self):
        size = resolve_size(node("a", node_type="mind_map", size=(220, 60)))
        assert (size.width, size.height) == (220, 60)

    def test_group_style_beats_measured(self):
        group = node("g", node_type="group", size=(100, 100), style=(400, 300))
        assert resolve_size(group) == Size(width=400, height=300)

    def test_style_ignored_for_plain_nodes(self):
        plain = node("a", style=(400, 300))
        assert resolve_size(plain) == Size(width=150, height=50)

    @pytest.mark.parametrize("bad", [0, -20, math.nan, math.inf])
    def test_never_zero_or_negative(self, bad):
        size = resolve_size(node("a", size=(bad, bad)))
        assert size.width > 0 and size.height > 0
        assert (size.width, size.height) == (150, 50)

    def test_partial_measurement(self):
        n = LayoutNode.model_validate({"id": "a", "measured": {"width": 90}})
        assert resolve_size(n) == Size(width=90, height=50)

    def test_custom_policy(self):
        policy = SizePolicy().with_overrides({"chip": (40.0, 20.0)})
        assert resolve_size(node("a", node_type="chip"), policy) == Size(width=40, height=20)
        # Original table is untouched
        assert resolve_size(node("a", node_type="chip")) == Size(width=150, height=50)

    def test_policy_fallback(self):
        policy = SizePolicy(defaults={}, fallback=(10.0, 10.0))
        assert policy.default_for("mind_map") == (10.0, 10.0)


class TestFitContainer:
    """Test container sizing around content."""

    def test_content_origin(self):
        assert content_origin() == (24, 56)

    def test_grows_with_content(self):
        size = fit_container(300, 50, Size(width=180, height=120))
        assert size.width == 348
        assert size.height == 130

    def test_never_below_minimum(self):
        size = fit_container(10, 10, Size(width=180, height=120))
        assert (size.width, size.height) == (180, 120)


class TestGeometry:
    """Test rectangle helpers."""

    def test_overlap_depth(self):
        a = Rect(0, 0, 100, 50)
        b = Rect(80, 40, 100, 50)
        assert a.overlap(b) == (20, 10)

    def test_bounding_rect(self):
        box = bounding_rect([Rect(0, 0, 10, 10), Rect(20, -5, 10, 10)])
        assert (box.x, box.y, box.width, box.height) == (0, -5, 30, 15)

    def test_bounding_rect_empty(self):
        with pytest.raises(ValueError):
            bounding_rect([])

    def test_absolute_positions_follow_parents(self):
        nodes = [
            node("g", x=100, y=100, node_type="group"),
            node("inner", x=10, y=20, node_type="group", parent="g"),
            node("a", x=1, y=2, parent="inner"),
        ]
        absolute = absolute_positions(nodes)
        assert absolute["a"] == (111, 122)

    def test_absolute_positions_survive_cycles(self):
        nodes = [node("a", x=1, parent="b"), node("b", x=2, parent="a")]
        absolute = absolute_positions(nodes)
        assert set(absolute) == {"a", "b"}

    def test_layout_bounds(self):
        nodes = [node("a"), node("b", x=200, y=100)]
        bounds = layout_bounds(nodes)
        assert (bounds.min_x, bounds.min_y, bounds.max_x, bounds.max_y) == (0, 0, 350, 150)

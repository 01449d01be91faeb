"""Tests for overlap removal."""

import time

import pytest

from diagram_layout.layout.collisions import relax, resolve_collisions, resolve_collisions_with_groups
from diagram_layout.layout.geometry import Rect
from diagram_layout.models.layout_models import CollisionOptions

from diagram_fixtures import (
    assert_groups_contain_children,
    by_id,
    non_ancestor_overlaps,
    node,
    overlapping_pairs,
    positions,
    total_overlap_area,
)


class TestRelax:
    """Test the pairwise relaxation step."""

    def test_pushes_along_smaller_penetration(self):
        boxes = [Rect(0, 0, 100, 100), Rect(90, 10, 100, 100)]
        passes = relax(boxes, CollisionOptions(margin=0))
        assert passes == 1
        # 10px along x, 90px along y: only x changes
        assert (boxes[0].x, boxes[1].x) == (-5, 95)
        assert (boxes[0].y, boxes[1].y) == (0, 10)

    def test_touching_boxes_left_alone(self):
        boxes = [Rect(0, 0, 100, 100), Rect(100, 0, 100, 100)]
        assert relax(boxes, CollisionOptions()) == 0

    def test_zero_iterations(self):
        boxes = [Rect(0, 0, 100, 100), Rect(0, 0, 100, 100)]
        assert relax(boxes, CollisionOptions(max_iterations=0)) == 0
        assert (boxes[1].x, boxes[1].y) == (0, 0)


class TestResolveCollisions:
    """Test sibling overlap removal."""

    def test_default_options(self):
        nodes = [node("a"), node("b", x=10)]
        result = positions(resolve_collisions(nodes))
        assert result == {"a": (0, -40), "b": (10, 40)}

    def test_unmoved_nodes_returned_as_is(self):
        nodes = [node("a"), node("b", x=10), node("far", x=5000)]
        result = resolve_collisions(nodes)
        assert result[2] is nodes[2]
        assert [n.id for n in result] == ["a", "b", "far"]

    def test_converged_or_budget_exhausted(self):
        options = CollisionOptions(max_iterations=200, overlap_threshold=0.5)
        boxes = [Rect(i * 7, (i % 3) * 5, 150, 50) for i in range(8)]
        passes = relax(boxes, options)
        if passes < options.max_iterations:
            for i, a in enumerate(boxes):
                for b in boxes[i + 1:]:
                    px, py = a.overlap(b)
                    assert px <= options.overlap_threshold or py <= options.overlap_threshold

    def test_never_increases_overlap(self):
        nodes = [node(f"n{i}", x=(i * 37) % 120, y=(i * 53) % 90) for i in range(12)]
        start = time.monotonic()
        result = resolve_collisions(nodes, CollisionOptions(max_iterations=5))
        assert time.monotonic() - start < 5
        assert total_overlap_area(result) <= total_overlap_area(nodes)

    def test_parent_and_child_not_separated(self):
        nodes = [
            node("g", node_type="group", style=(400, 300)),
            node("a", x=24, y=56, parent="g"),
        ]
        result = resolve_collisions(nodes)
        assert positions(result) == positions(nodes)

    def test_nodes_in_separate_groups_left_alone(self):
        nodes = [
            node("g1", node_type="group"),
            node("g2", x=1000, node_type="group"),
            node("a", x=24, y=56, parent="g1"),
            node("b", x=24, y=56, parent="g2"),
        ]
        result = resolve_collisions(nodes)
        assert positions(result) == positions(nodes)

    def test_children_pushed_out_of_group_clear_other_groups(self):
        nodes = [node("g1", node_type="group", style=(200, 300))]
        nodes += [node(f"a{i}", x=100, y=56, parent="g1", size=(50, 200)) for i in range(4)]
        nodes += [
            node("g2", x=260, node_type="group"),
            node("b", x=24, y=56, parent="g2"),
        ]
        result = resolve_collisions(nodes, CollisionOptions(max_iterations=500))

        assert non_ancestor_overlaps(result) == []
        assert [n.parent_id for n in result] == [n.parent_id for n in nodes]

    def test_pushed_group_carries_children(self):
        nodes = [
            node("g", node_type="group"),
            node("a", x=24, y=56, parent="g"),
            node("c", x=170, y=-60),
        ]
        result = resolve_collisions(nodes)
        assert positions(result) == {"g": (0, 10), "a": (24, 56), "c": (170, -70)}
        assert result[1] is nodes[1]

    def test_max_iterations_zero(self):
        nodes = [node("a"), node("b")]
        result = resolve_collisions(nodes, CollisionOptions(max_iterations=0))
        assert positions(result) == positions(nodes)

    @pytest.mark.parametrize("count", [0, 1])
    def test_trivial_inputs(self, count):
        nodes = [node(f"n{i}") for i in range(count)]
        assert resolve_collisions(nodes) == nodes


class TestResolveCollisionsWithGroups:
    """Test overlap removal with group refitting."""

    def test_group_refit_after_separation(self):
        nodes = [
            node("g", node_type="group"),
            node("a", x=24, y=56, parent="g"),
            node("b", x=30, y=56, parent="g"),
            node("c", x=1000),
        ]
        options = CollisionOptions(max_iterations=150, overlap_threshold=0, margin=24)
        result = resolve_collisions_with_groups(nodes, options)
        assert overlapping_pairs(result) == []
        assert_groups_contain_children(result)

    def test_groups_pushed_apart(self):
        nodes = [
            node("g1", node_type="group"),
            node("a", x=24, y=56, parent="g1"),
            node("g2", x=50, node_type="group"),
            node("b", x=24, y=56, parent="g2"),
        ]
        result = resolve_collisions_with_groups(nodes)
        assert overlapping_pairs(result) == []
        placed = by_id(result)
        assert (placed["a"].parent_id, placed["b"].parent_id) == ("g1", "g2")
        assert_groups_contain_children(result)

    def test_crowded_group_refit_clears_neighbour(self):
        nodes = [node("g1", node_type="group", style=(200, 300))]
        nodes += [node(f"a{i}", x=100, y=56, parent="g1", size=(50, 200)) for i in range(4)]
        nodes += [
            node("g2", x=260, node_type="group"),
            node("b", x=24, y=56, parent="g2"),
        ]
        result = resolve_collisions_with_groups(nodes, CollisionOptions(max_iterations=500))

        assert non_ancestor_overlaps(result) == []
        assert_groups_contain_children(result)

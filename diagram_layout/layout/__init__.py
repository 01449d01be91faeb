"""Layout module for automatic diagram positioning.

This module provides:
- Layout engine abstraction (LayoutEngine protocol) and the three engine families
- Group materialization, bounds fitting and inner group layout
- Overlap removal
- The editor and generator entry points

All operations take a node/edge snapshot and return a new one.
"""

from diagram_layout.layout.auto import (
    ALGORITHM_SUB_OPTIONS,
    LAYOUT_ALGORITHMS,
    LAYOUT_EXCLUDED_TYPES,
    choose_best_layout_options,
    get_algorithm_family,
    get_default_algorithm_for_family,
)
from diagram_layout.layout.collisions import resolve_collisions, resolve_collisions_with_groups
from diagram_layout.layout.compound import build_graph, get_root_id
from diagram_layout.layout.engines import (
    ENGINES,
    HierarchyLayoutEngine,
    LayeredLayoutEngine,
    LayoutEngine,
    RankLayoutEngine,
    engine_for_algorithm,
    get_engine,
)
from diagram_layout.layout.errors import LayoutError, SolverUnavailableError, UnknownEngineError
from diagram_layout.layout.grouping import (
    apply_grouping,
    ensure_parent_extent,
    fit_group,
    fit_group_bounds,
    layout_children_inside_groups,
)
from diagram_layout.layout.handles import (
    HIERARCHY_EDGE_TYPE,
    handle_ids,
    infer_handles,
    normalize_handles,
)
from diagram_layout.layout.pipeline import (
    auto_layout,
    get_layouted_elements,
    layout_generated_diagram,
    prepare_saved_diagram,
)
from diagram_layout.layout.sizing import DEFAULT_SIZE_POLICY, SizePolicy, resolve_size
from diagram_layout.layout.transforms import ROOT_LEFT_PADDING, shift_layout_left

__all__ = [
    "ALGORITHM_SUB_OPTIONS",
    "LAYOUT_ALGORITHMS",
    "LAYOUT_EXCLUDED_TYPES",
    "choose_best_layout_options",
    "get_algorithm_family",
    "get_default_algorithm_for_family",
    "resolve_collisions",
    "resolve_collisions_with_groups",
    "build_graph",
    "get_root_id",
    "ENGINES",
    "LayoutEngine",
    "LayeredLayoutEngine",
    "RankLayoutEngine",
    "HierarchyLayoutEngine",
    "engine_for_algorithm",
    "get_engine",
    "LayoutError",
    "SolverUnavailableError",
    "UnknownEngineError",
    "apply_grouping",
    "ensure_parent_extent",
    "fit_group",
    "fit_group_bounds",
    "layout_children_inside_groups",
    "HIERARCHY_EDGE_TYPE",
    "handle_ids",
    "infer_handles",
    "normalize_handles",
    "auto_layout",
    "get_layouted_elements",
    "layout_generated_diagram",
    "prepare_saved_diagram",
    "DEFAULT_SIZE_POLICY",
    "SizePolicy",
    "resolve_size",
    "ROOT_LEFT_PADDING",
    "shift_layout_left",
]

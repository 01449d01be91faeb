"""Layout engines registry.

Available engines:
- layered: compound-aware layered family (layered, mrtree, box, force, radial, stress)
- rank: grandalf Sugiyama layout of the flat top-level graph
- hierarchy: tidy tree / cluster placement of a strict hierarchy
"""

from diagram_layout.layout.engines.base import LayoutEngine
from diagram_layout.layout.engines.hierarchy import HierarchyLayoutEngine
from diagram_layout.layout.engines.layered import LayeredLayoutEngine, solve_compound
from diagram_layout.layout.engines.rank import RankLayoutEngine
from diagram_layout.layout.errors import UnknownEngineError
from diagram_layout.models.layout_models import AlgorithmFamily, LayoutAlgorithm

# Engine registry
ENGINES = {
    "layered": LayeredLayoutEngine,
    "rank": RankLayoutEngine,
    "hierarchy": HierarchyLayoutEngine,
}

_FAMILY_ENGINES = {
    AlgorithmFamily.LAYERED: "layered",
    AlgorithmFamily.RANK_BASED: "rank",
    AlgorithmFamily.STRICT_HIERARCHY: "hierarchy",
}


def get_engine(name: str) -> type:
    """Get layout engine class by name.

    Args:
        name: Engine name ('layered', 'rank', 'hierarchy')

    Returns:
        Layout engine class

    Raises:
        UnknownEngineError: If engine not found (a ValueError)
    """
    if name not in ENGINES:
        raise UnknownEngineError(name, list(ENGINES.keys()))
    return ENGINES[name]


def engine_for_algorithm(algorithm) -> type:
    """Engine class implementing an algorithm (any spelling LayoutAlgorithm.coerce accepts)."""
    return get_engine(_FAMILY_ENGINES[LayoutAlgorithm.coerce(algorithm).family])


__all__ = [
    "LayoutEngine",
    "LayeredLayoutEngine",
    "RankLayoutEngine",
    "HierarchyLayoutEngine",
    "ENGINES",
    "get_engine",
    "engine_for_algorithm",
    "solve_compound",
]

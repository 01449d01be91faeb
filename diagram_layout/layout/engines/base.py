"""Base layout engine protocol.

Defines the interface that all algorithm families must implement.
"""

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from diagram_layout.layout.sizing import SizePolicy
from diagram_layout.models.layout_models import (
    AlgorithmFamily,
    LayoutAlgorithm,
    LayoutDirection,
    LayoutEdge,
    LayoutNode,
    LayoutResult,
    LayoutSpacing,
)


class LayoutEngine(ABC):
    """Abstract base class for layout engines.

    Layout engines turn a node/edge snapshot into a new snapshot with
    positions, node handle sides and normalized edge handles. Engines are
    stateless: nothing is cached between calls and inputs are never
    mutated.
    """

    def __init__(self, policy: Optional[SizePolicy] = None):
        """Initialize engine.

        Args:
            policy: Size policy for nodes (default table if None)
        """
        self._policy = policy

    @property
    @abstractmethod
    def name(self) -> str:
        """Engine name (e.g., 'layered', 'rank')."""
        ...

    @property
    @abstractmethod
    def family(self) -> AlgorithmFamily:
        """Algorithm family implemented by this engine."""
        ...

    @property
    @abstractmethod
    def supports_compound(self) -> bool:
        """Whether engine lays out nested containers natively."""
        ...

    @property
    def algorithms(self) -> Tuple[LayoutAlgorithm, ...]:
        """Algorithms served by this engine."""
        return tuple(a for a in LayoutAlgorithm if a.family is self.family)

    @abstractmethod
    async def layout(
        self,
        nodes: List[LayoutNode],
        edges: List[LayoutEdge],
        direction: LayoutDirection,
        spacing: LayoutSpacing,
        algorithm: LayoutAlgorithm,
    ) -> LayoutResult:
        """Compute layout for a snapshot.

        Args:
            nodes: Nodes to lay out (never mutated)
            edges: Edges between the nodes; dangling edges are dropped
            direction: Flow direction
            spacing: (between siblings, between ranks)
            algorithm: Strategy within this engine's family

        Returns:
            LayoutResult with new node and edge lists
        """
        ...

    @abstractmethod
    async def is_available(self) -> bool:
        """Check if the engine's solver can be loaded.

        Returns:
            True if engine can be used
        """
        ...

"""Exceptions raised by the layout engine.

Most input problems are recoverable and only logged; these exceptions mark
the few conditions a caller or an adapter must act on.
"""


class LayoutError(Exception):
    """Base class for layout engine errors."""


class SolverUnavailableError(LayoutError):
    """Raised when a solver backend cannot be loaded."""

    def __init__(self, solver: str, reason: str):
        self.solver = solver
        self.reason = reason
        super().__init__(f"Layout solver '{solver}' is unavailable: {reason}")


class UnknownEngineError(LayoutError, ValueError):
    """Raised when a layout engine name is not registered."""

    def __init__(self, name: str, available: list):
        self.name = name
        self.available = available
        super().__init__(f"Unknown layout engine: {name}. Available: {available}")

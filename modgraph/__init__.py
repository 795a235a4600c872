"""modgraph: module dependency graphs for JavaScript and TypeScript codebases."""

from .graph.model import DependencyGraph, GraphBuilder, entry_points_for
from .scanner.builder import build_graph

__version__ = "0.1.0"

__all__ = [
    "DependencyGraph",
    "GraphBuilder",
    "build_graph",
    "entry_points_for",
    "__version__",
]

"""Dependency graph model."""

from .model import (
    DependencyGraph,
    GraphBuilder,
    GraphMetadata,
    ModuleNode,
    entry_points_for,
    find_cycles,
)

__all__ = [
    "DependencyGraph",
    "GraphBuilder",
    "GraphMetadata",
    "ModuleNode",
    "entry_points_for",
    "find_cycles",
]

"""JSON exporter for dependency graphs (machine-friendly format)."""

import json
from typing import Any, Dict, List, Optional

from modgraph.graph.model import DependencyGraph


def to_json(
    graph: DependencyGraph,
    indent: int = 2,
    cycles: Optional[List[List[str]]] = None,
) -> str:
    """
    Convert a dependency graph to JSON.

    Args:
        graph: The dependency graph to export.
        indent: JSON indentation level.
        cycles: Optional cycle list to include under a ``cycles`` key.

    Returns:
        JSON string with ``rootNodes``, ``modules`` and ``metadata``.
    """
    data: Dict[str, Any] = graph.to_dict()
    if cycles is not None:
        data["cycles"] = cycles
    return json.dumps(data, indent=indent, ensure_ascii=False)

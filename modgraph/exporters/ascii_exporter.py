"""Tree-style text exporter for dependency graphs."""

from typing import List, Set, Tuple

from modgraph.graph.model import DependencyGraph


# Unicode tree characters
UNICODE_BRANCH = "├── "
UNICODE_LAST = "└── "
UNICODE_VERTICAL = "│   "
UNICODE_SPACE = "    "

# ASCII fallback characters
ASCII_BRANCH = "|-- "
ASCII_LAST = "\\-- "
ASCII_VERTICAL = "|   "
ASCII_SPACE = "    "

CYCLE_MARKER = " [*]"
SHARED_MARKER = " [...]"


def to_ascii(graph: DependencyGraph, style: str = "tree") -> str:
    """
    Render a dependency graph as one import tree per root node.

    A module that already appears on the path from its root is printed
    with a ``[*]`` marker and not expanded again. A module whose subtree
    was already drawn under the same root is printed with ``[...]``
    instead of being drawn twice. When every module has a dependent (the
    graph is one big cycle) all modules are used as roots.

    Args:
        graph: The dependency graph to export.
        style: "tree" (Unicode box drawing) or "ascii" (pure ASCII).

    Returns:
        Tree text, empty for an empty graph.
    """
    if style == "ascii":
        chars = (ASCII_BRANCH, ASCII_LAST, ASCII_VERTICAL, ASCII_SPACE)
    else:
        chars = (UNICODE_BRANCH, UNICODE_LAST, UNICODE_VERTICAL, UNICODE_SPACE)

    roots = graph.root_nodes or sorted(graph.modules)

    blocks: List[str] = []
    for root in roots:
        lines = [root]
        _render_children(graph, root, "", chars, {root}, {root}, lines)
        blocks.append("\n".join(lines))

    return "\n\n".join(blocks)


def _render_children(
    graph: DependencyGraph,
    node: str,
    prefix: str,
    chars: Tuple[str, str, str, str],
    on_path: Set[str],
    expanded: Set[str],
    lines: List[str],
) -> None:
    """Append the dependency subtree of ``node`` to ``lines``."""
    branch, last, vertical, space = chars
    children = graph.get(node).dependencies

    for index, child in enumerate(children):
        is_last = index == len(children) - 1
        connector = last if is_last else branch

        if child in on_path:
            lines.append(f"{prefix}{connector}{child}{CYCLE_MARKER}")
            continue
        has_children = child in graph and bool(graph.get(child).dependencies)
        if child in expanded and has_children:
            lines.append(f"{prefix}{connector}{child}{SHARED_MARKER}")
            continue

        lines.append(f"{prefix}{connector}{child}")
        expanded.add(child)
        if has_children:
            on_path.add(child)
            _render_children(
                graph,
                child,
                prefix + (space if is_last else vertical),
                chars,
                on_path,
                expanded,
                lines,
            )
            on_path.discard(child)

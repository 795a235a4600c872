"""Graph data model for module dependency relationships."""

import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, Iterator, List, Mapping, Set, Tuple


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class ModuleNode:
    """Sorted, deduplicated neighbours of one file."""

    dependencies: Tuple[str, ...] = ()
    dependents: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            "dependencies": list(self.dependencies),
            "dependents": list(self.dependents),
        }


@dataclass(frozen=True)
class GraphMetadata:
    """Information about how and when a graph was produced."""

    root: str
    total_files: int
    total_dependencies: int
    generated_at: str = field(default_factory=_timestamp)

    def to_dict(self) -> Dict[str, object]:
        return {
            "root": self.root,
            "totalFiles": self.total_files,
            "totalDependencies": self.total_dependencies,
            "generatedAt": self.generated_at,
        }


def find_cycles(adjacency: Mapping[str, Iterable[str]]) -> List[List[str]]:
    """
    Find dependency cycles with a depth-first traversal.

    Every node not yet visited starts a traversal, in sorted order. Reaching
    a node that is on the current path closes a cycle, recorded as the path
    from that node to the current one. Nodes already fully explored are not
    entered again, so a cycle reachable from several places is reported
    once per discovering traversal at most. A self-edge is a one-node cycle.

    Args:
        adjacency: Mapping of node to the nodes it depends on.

    Returns:
        List of cycles, each an ordered list of nodes.
    """
    visited: Set[str] = set()
    on_path: Set[str] = set()
    cycles: List[List[str]] = []

    for start in sorted(adjacency):
        if start in visited:
            continue

        path = [start]
        visited.add(start)
        on_path.add(start)
        pending: List[Iterator[str]] = [iter(sorted(adjacency.get(start, ())))]

        while pending:
            child = next(pending[-1], None)
            if child is None:
                pending.pop()
                on_path.discard(path.pop())
                continue
            if child in on_path:
                cycles.append(path[path.index(child):])
                continue
            if child in visited:
                continue
            visited.add(child)
            on_path.add(child)
            path.append(child)
            pending.append(iter(sorted(adjacency.get(child, ()))))

    return cycles


class DependencyGraph:
    """
    An immutable snapshot of a module dependency graph.

    Nodes are root-relative file paths. ``root_nodes`` are the files that
    nothing else in the graph imports.
    """

    def __init__(self, modules: Mapping[str, ModuleNode], metadata: GraphMetadata):
        self._modules: Dict[str, ModuleNode] = dict(sorted(modules.items()))
        self._root_nodes: Tuple[str, ...] = tuple(
            path for path, node in self._modules.items() if not node.dependents
        )
        self._metadata = metadata

    @property
    def modules(self) -> Dict[str, ModuleNode]:
        """Return a copy of the path -> node mapping."""
        return dict(self._modules)

    @property
    def root_nodes(self) -> List[str]:
        """Return files with no dependents, sorted."""
        return list(self._root_nodes)

    @property
    def metadata(self) -> GraphMetadata:
        return self._metadata

    def get(self, path: str) -> ModuleNode:
        """Get a node; raises KeyError for unknown paths."""
        return self._modules[path]

    def iter_edges(self) -> Iterator[Tuple[str, str]]:
        """Iterate over all edges as (source, target) tuples."""
        for source, node in self._modules.items():
            for target in node.dependencies:
                yield source, target

    def find_cycles(self) -> List[List[str]]:
        """Find dependency cycles among this graph's modules."""
        return find_cycles({path: node.dependencies for path, node in self._modules.items()})

    def reachable_from(self, entries: Iterable[str]) -> Set[str]:
        """
        Collect files reachable from the entries by following dependencies.

        Entries that are nodes of the graph are included themselves; entries
        not in the graph are ignored.
        """
        reachable: Set[str] = set()
        queue = deque(entry for entry in entries if entry in self._modules)
        reachable.update(queue)

        while queue:
            current = queue.popleft()
            for dependency in self._modules[current].dependencies:
                if dependency not in reachable and dependency in self._modules:
                    reachable.add(dependency)
                    queue.append(dependency)

        return reachable

    def scoped_to(self, entries: Iterable[str]) -> "DependencyGraph":
        """
        Restrict the graph to what the entries transitively import.

        Returns a new graph; this one is left untouched. Each kept node's
        neighbour lists are filtered to the kept set, so root nodes and
        counts are derived afresh.

        Args:
            entries: Root-relative entry point paths.

        Returns:
            The scoped DependencyGraph.
        """
        reachable = self.reachable_from(entries)
        modules = {
            path: ModuleNode(
                dependencies=tuple(dep for dep in node.dependencies if dep in reachable),
                dependents=tuple(dep for dep in node.dependents if dep in reachable),
            )
            for path, node in self._modules.items()
            if path in reachable
        }
        metadata = GraphMetadata(
            root=self._metadata.root,
            total_files=len(modules),
            total_dependencies=sum(len(node.dependencies) for node in modules.values()),
            generated_at=self._metadata.generated_at,
        )
        return DependencyGraph(modules, metadata)

    def entry_points_for(self, files: Iterable[str]) -> List[str]:
        """Find the entry points that transitively import any of ``files``."""
        return entry_points_for(files, self)

    def to_dict(self) -> Dict[str, object]:
        """Serializable form: rootNodes, modules and metadata."""
        return {
            "rootNodes": list(self._root_nodes),
            "modules": {path: node.to_dict() for path, node in self._modules.items()},
            "metadata": self._metadata.to_dict(),
        }

    def __len__(self) -> int:
        """Return the number of modules in the graph."""
        return len(self._modules)

    def __contains__(self, path: str) -> bool:
        return path in self._modules

    def __repr__(self) -> str:
        return (
            f"DependencyGraph(modules={len(self._modules)}, "
            f"dependencies={self._metadata.total_dependencies}, "
            f"roots={len(self._root_nodes)})"
        )


def entry_points_for(files: Iterable[str], graph: DependencyGraph) -> List[str]:
    """
    Find the entry points whose import trees include the given files.

    Walks dependents upward from each file until reaching files that nothing
    imports. A file with no dependents is its own entry point; files not in
    the graph contribute nothing.

    Args:
        files: Root-relative paths to look up.
        graph: Graph to walk.

    Returns:
        Sorted, deduplicated entry point paths.
    """
    modules = graph.modules
    found: Set[str] = set()

    for start in files:
        if start not in modules:
            continue
        visited = {start}
        stack = [start]
        while stack:
            current = stack.pop()
            dependents = modules[current].dependents
            if not dependents:
                found.add(current)
                continue
            for dependent in dependents:
                if dependent not in visited and dependent in modules:
                    visited.add(dependent)
                    stack.append(dependent)

    return sorted(found)


class GraphBuilder:
    """
    Accumulates import edges and produces DependencyGraph snapshots.

    Each edge is recorded in both directions under one lock, so the
    dependencies/dependents views never disagree.
    """

    def __init__(self, root: Path):
        self.root = root
        self._dependencies: Dict[str, Set[str]] = {}
        self._dependents: Dict[str, Set[str]] = {}
        self._lock = threading.Lock()

    def add_node(self, path: str) -> None:
        """Add a module without any edges."""
        with self._lock:
            self._ensure(path)

    def add_edge(self, source: str, target: str) -> bool:
        """
        Record that ``source`` imports ``target``.

        Both modules are created if needed. Adding an existing edge is a
        no-op.

        Returns:
            True if the edge was new.
        """
        with self._lock:
            self._ensure(source)
            self._ensure(target)
            if target in self._dependencies[source]:
                return False
            self._dependencies[source].add(target)
            self._dependents[target].add(source)
            return True

    def _ensure(self, path: str) -> None:
        if path not in self._dependencies:
            self._dependencies[path] = set()
            self._dependents[path] = set()

    def find_cycles(self) -> List[List[str]]:
        """Find dependency cycles among the edges added so far."""
        with self._lock:
            adjacency = {path: set(deps) for path, deps in self._dependencies.items()}
        return find_cycles(adjacency)

    def build(self) -> DependencyGraph:
        """Snapshot the current edges into a DependencyGraph."""
        with self._lock:
            modules = {
                path: ModuleNode(
                    dependencies=tuple(sorted(self._dependencies[path])),
                    dependents=tuple(sorted(self._dependents[path])),
                )
                for path in self._dependencies
            }
        metadata = GraphMetadata(
            root=str(self.root),
            total_files=len(modules),
            total_dependencies=sum(len(node.dependencies) for node in modules.values()),
        )
        return DependencyGraph(modules, metadata)

    def __len__(self) -> int:
        return len(self._dependencies)

    def __contains__(self, path: str) -> bool:
        return path in self._dependencies

    def __repr__(self) -> str:
        edges = sum(len(deps) for deps in self._dependencies.values())
        return f"GraphBuilder(modules={len(self._dependencies)}, edges={edges})"

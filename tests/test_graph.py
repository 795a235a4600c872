"""Tests for graph data model."""

import pytest
from pathlib import Path

from modgraph.graph.model import (
    DependencyGraph,
    GraphBuilder,
    entry_points_for,
    find_cycles,
)


def _simple_builder() -> GraphBuilder:
    """index -> helper, utils; utils -> helper."""
    builder = GraphBuilder(Path("/repo"))
    builder.add_edge("index.ts", "helper.ts")
    builder.add_edge("index.ts", "utils.ts")
    builder.add_edge("utils.ts", "helper.ts")
    return builder


class TestGraphBuilder:
    """Tests for GraphBuilder class."""

    def test_empty_graph(self):
        """Test empty builder produces an empty graph."""
        graph = GraphBuilder(Path("/repo")).build()
        assert len(graph) == 0
        assert graph.root_nodes == []
        assert graph.metadata.total_files == 0
        assert graph.metadata.total_dependencies == 0

    def test_simple_scenario(self):
        """Test the three-file scenario."""
        graph = _simple_builder().build()

        assert list(graph.get("index.ts").dependencies) == ["helper.ts", "utils.ts"]
        assert list(graph.get("helper.ts").dependents) == ["index.ts", "utils.ts"]
        assert list(graph.get("utils.ts").dependencies) == ["helper.ts"]
        assert graph.root_nodes == ["index.ts"]
        assert graph.metadata.total_dependencies == 3
        assert graph.metadata.total_files == 3

    def test_add_edge_is_idempotent(self):
        """Test adding the same edge twice records it once."""
        builder = GraphBuilder(Path("/repo"))

        assert builder.add_edge("a.ts", "b.ts") is True
        assert builder.add_edge("a.ts", "b.ts") is False

        graph = builder.build()
        assert list(graph.get("a.ts").dependencies) == ["b.ts"]
        assert list(graph.get("b.ts").dependents) == ["a.ts"]
        assert graph.metadata.total_dependencies == 1

    def test_add_node(self):
        """Test adding a node without edges."""
        builder = GraphBuilder(Path("/repo"))
        builder.add_node("main.ts")

        assert "main.ts" in builder
        graph = builder.build()
        assert graph.root_nodes == ["main.ts"]
        assert graph.get("main.ts").dependencies == ()

    def test_bidirectional_invariant(self):
        """Test every dependency has a matching dependent entry."""
        graph = _simple_builder().build()
        modules = graph.modules

        for source, target in graph.iter_edges():
            assert source in modules[target].dependents
        for path, node in modules.items():
            for dependent in node.dependents:
                assert path in modules[dependent].dependencies

    def test_root_nodes_are_nodes_without_dependents(self):
        """Test root nodes are exactly the modules nothing imports."""
        builder = _simple_builder()
        builder.add_edge("cli.ts", "utils.ts")
        builder.add_node("standalone.ts")
        graph = builder.build()

        expected = sorted(p for p, n in graph.modules.items() if not n.dependents)
        assert graph.root_nodes == expected
        assert graph.root_nodes == ["cli.ts", "index.ts", "standalone.ts"]

    def test_build_is_repeatable(self):
        """Test building twice yields the same modules and roots."""
        builder = _simple_builder()
        first = builder.build().to_dict()
        second = builder.build().to_dict()

        first["metadata"].pop("generatedAt")
        second["metadata"].pop("generatedAt")
        assert first == second

    def test_snapshot_not_affected_by_later_edges(self):
        """Test a built graph does not change when the builder does."""
        builder = _simple_builder()
        graph = builder.build()
        builder.add_edge("helper.ts", "extra.ts")

        assert "extra.ts" not in graph
        assert graph.metadata.total_dependencies == 3

    def test_repr(self):
        """Test string representation."""
        builder = GraphBuilder(Path("/repo"))
        builder.add_edge("a.ts", "b.ts")

        assert "modules=2" in repr(builder)
        assert "edges=1" in repr(builder)
        assert "modules=2" in repr(builder.build())


class TestCycles:
    """Tests for cycle detection."""

    def test_two_node_cycle(self):
        """Test a <-> b is reported as one cycle."""
        builder = GraphBuilder(Path("/repo"))
        builder.add_edge("a.ts", "b.ts")
        builder.add_edge("b.ts", "a.ts")

        cycles = builder.find_cycles()

        assert cycles == [["a.ts", "b.ts"]]
        graph = builder.build()
        assert "b.ts" in graph.get("a.ts").dependencies
        assert "a.ts" in graph.get("b.ts").dependencies

    def test_self_edge(self):
        """Test a file importing itself is a one-node cycle."""
        cycles = find_cycles({"a.ts": ["a.ts"]})
        assert cycles == [["a.ts"]]

    def test_longer_cycle(self):
        """Test the cycle is the path slice from the repeated node."""
        adjacency = {
            "entry.ts": ["a.ts"],
            "a.ts": ["b.ts"],
            "b.ts": ["c.ts"],
            "c.ts": ["a.ts"],
        }
        assert find_cycles(adjacency) == [["a.ts", "b.ts", "c.ts"]]

    def test_acyclic(self):
        """Test a DAG has no cycles."""
        assert _simple_builder().find_cycles() == []

    def test_graph_find_cycles(self):
        """Test the snapshot reports the same cycles as the builder."""
        builder = GraphBuilder(Path("/repo"))
        builder.add_edge("x.ts", "y.ts")
        builder.add_edge("y.ts", "x.ts")

        assert builder.build().find_cycles() == builder.find_cycles()

    def test_deep_chain(self):
        """Test long import chains do not exhaust the recursion limit."""
        adjacency = {f"m{i}.ts": [f"m{i + 1}.ts"] for i in range(5000)}
        adjacency["m5000.ts"] = ["m0.ts"]

        cycles = find_cycles(adjacency)

        assert len(cycles) == 1
        assert len(cycles[0]) == 5001


class TestScoping:
    """Tests for entry-point scoping and the inverse query."""

    def _graph(self) -> DependencyGraph:
        builder = _simple_builder()
        builder.add_edge("other.ts", "unrelated.ts")
        return builder.build()

    def test_reachable_from(self):
        """Test forward reachability includes the entry itself."""
        graph = self._graph()
        assert graph.reachable_from(["utils.ts"]) == {"utils.ts", "helper.ts"}
        assert graph.reachable_from(["missing.ts"]) == set()

    def test_scoped_to(self):
        """Test scoping filters nodes, neighbours, roots and counts."""
        graph = self._graph()
        scoped = graph.scoped_to(["utils.ts"])

        assert sorted(scoped.modules) == ["helper.ts", "utils.ts"]
        assert list(scoped.get("helper.ts").dependents) == ["utils.ts"]
        assert scoped.root_nodes == ["utils.ts"]
        assert scoped.metadata.total_files == 2
        assert scoped.metadata.total_dependencies == 1
        assert scoped.metadata.root == graph.metadata.root

    def test_scoped_to_leaves_original(self):
        """Test scoping returns a new graph."""
        graph = self._graph()
        graph.scoped_to(["utils.ts"])

        assert len(graph) == 5
        assert list(graph.get("helper.ts").dependents) == ["index.ts", "utils.ts"]

    def test_scoped_nodes_are_reachable(self):
        """Test every node of a scoped graph is reachable from an entry."""
        graph = self._graph()
        entries = ["index.ts", "other.ts"]
        scoped = graph.scoped_to(entries)

        assert set(scoped.modules) == graph.reachable_from(entries)

    def test_entry_points_for(self):
        """Test walking dependents up to the roots."""
        graph = self._graph()

        assert entry_points_for(["helper.ts"], graph) == ["index.ts"]
        assert entry_points_for(["helper.ts", "unrelated.ts"], graph) == ["index.ts", "other.ts"]

    def test_entry_point_is_its_own_entry(self):
        """Test a root node maps to itself."""
        assert entry_points_for(["index.ts"], self._graph()) == ["index.ts"]

    def test_entry_points_for_unknown_file(self):
        """Test files outside the graph are ignored."""
        graph = self._graph()
        assert entry_points_for(["nope.ts"], graph) == []
        assert graph.entry_points_for(["nope.ts", "helper.ts"]) == ["index.ts"]

    def test_entry_points_for_scoped_graph(self):
        """Test the inverse query on a scoped graph stays within the entries."""
        scoped = self._graph().scoped_to(["utils.ts"])
        assert entry_points_for(["helper.ts"], scoped) == ["utils.ts"]

    def test_entry_points_for_cycle(self):
        """Test cycles do not loop forever."""
        builder = GraphBuilder(Path("/repo"))
        builder.add_edge("main.ts", "a.ts")
        builder.add_edge("a.ts", "b.ts")
        builder.add_edge("b.ts", "a.ts")

        assert entry_points_for(["b.ts"], builder.build()) == ["main.ts"]


class TestSerialization:
    """Tests for the output format."""

    def test_to_dict(self):
        """Test the serialized layout and key names."""
        data = _simple_builder().build().to_dict()

        assert set(data) == {"rootNodes", "modules", "metadata"}
        assert data["rootNodes"] == ["index.ts"]
        assert data["modules"]["utils.ts"] == {
            "dependencies": ["helper.ts"],
            "dependents": ["index.ts"],
        }
        assert data["metadata"]["root"] == str(Path("/repo"))
        assert data["metadata"]["totalFiles"] == 3
        assert data["metadata"]["totalDependencies"] == 3

    def test_generated_at_is_utc(self):
        """Test the timestamp is ISO-8601 UTC."""
        generated_at = _simple_builder().build().metadata.generated_at
        assert generated_at.endswith("Z")
        assert "T" in generated_at

    def test_get_unknown(self):
        """Test looking up an unknown module raises KeyError."""
        with pytest.raises(KeyError):
            _simple_builder().build().get("nope.ts")

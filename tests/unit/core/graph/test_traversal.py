# tests/unit/core/graph/test_traversal.py
"""Tests for predicate-driven traversal and the two closures."""

from __future__ import annotations

from structlog.testing import capture_logs

from shadergraph.contracts.enums import ShaderStage
from shadergraph.core.graph.models import Graph
from shadergraph.core.graph.traversal import (
    Predicates,
    SearchResult,
    filter_graph_from_node,
    find_node_and_dependencies,
    find_node_tree,
    merge_search_results,
)
from tests.conftest import binary, build, data, edge, link, output, shader


def _chain() -> Graph:
    """n1 -> op -> frag -> output, with n2 also feeding op."""
    return build(
        [data("n1"), data("n2"), binary("op"), shader("frag"), output()],
        [
            edge("e1", "n1", "op", "a"),
            edge("e2", "n2", "op", "b"),
            edge("e3", "op", "frag", "x"),
            edge("e4", "frag", "output", "color", type=ShaderStage.FRAGMENT),
        ],
    )


class TestFilterGraphFromNode:
    def test_always_collects_everything_feeding_start(self) -> None:
        graph = _chain()
        result = filter_graph_from_node(graph, graph.find_node("frag"))

        assert set(result.nodes) == {"frag", "op", "n1", "n2"}
        assert next(iter(result.nodes)) == "frag"
        assert set(result.edges) == {"e1", "e2", "e3"}

    def test_does_not_walk_to_consumers(self) -> None:
        graph = _chain()
        result = filter_graph_from_node(graph, graph.find_node("op"))

        assert "frag" not in result.nodes
        assert "output" not in result.nodes

    def test_depth_limits_hops(self) -> None:
        graph = _chain()
        result = filter_graph_from_node(graph, graph.find_node("frag"), depth=1)

        assert set(result.nodes) == {"frag"}
        assert set(result.edges) == {"e3"}

    def test_edge_predicate_filters(self) -> None:
        graph = _chain()
        only_a = Predicates(edge=lambda node_input, to_node, e, from_node, acc: e.input != "b")

        result = filter_graph_from_node(graph, graph.find_node("op"), only_a)

        assert set(result.nodes) == {"op", "n1"}

    def test_node_predicate_stops_expansion(self) -> None:
        graph = _chain()
        no_ops = Predicates(node=lambda node, inbound, acc: node.type != "binary")

        result = filter_graph_from_node(graph, graph.find_node("frag"), no_ops)

        assert set(result.nodes) == {"frag"}
        assert "e3" in result.edges

    def test_records_inputs_when_declared(self) -> None:
        graph = _chain()
        result = filter_graph_from_node(graph, graph.find_node("op"))

        assert [i.id for i in result.inputs["op"]] == ["a", "b"]

    def test_excluded_nodes_not_entered(self) -> None:
        graph = _chain()
        result = filter_graph_from_node(graph, graph.find_node("frag"), exclude_node_ids=frozenset({"op"}))

        assert set(result.nodes) == {"frag"}

    def test_missing_source_logged_and_skipped(self) -> None:
        graph = build([shader("frag")], [edge("e1", "ghost", "frag", "x")])

        with capture_logs() as logs:
            result = filter_graph_from_node(graph, graph.find_node("frag"))

        assert set(result.nodes) == {"frag"}
        assert result.edges == {}
        assert logs[0]["event"] == "traversal_edge_source_missing"

    def test_link_edges_not_followed(self) -> None:
        graph = build([shader("v", ShaderStage.VERTEX), shader("f")], [link("l1", "v", "f")])
        result = filter_graph_from_node(graph, graph.find_node("f"))

        assert set(result.nodes) == {"f"}

    def test_cycle_terminates(self) -> None:
        graph = build([shader("a"), shader("b")], [edge("e1", "a", "b", "x"), edge("e2", "b", "a", "y")])
        result = filter_graph_from_node(graph, graph.find_node("a"))

        assert set(result.nodes) == {"a", "b"}


def test_merge_search_results_unions_in_order() -> None:
    graph = _chain()
    first = SearchResult(nodes={"a": graph.find_node("n1")})
    second = SearchResult(nodes={"a": graph.find_node("n2"), "b": graph.find_node("op")})

    merged = merge_search_results(first, second)

    assert merged.nodes["a"].id == "n1"
    assert list(merged.nodes) == ["a", "b"]


class TestDependencyClosure:
    def test_shared_data_node_does_not_take_operators(self, shared_feeder_graph: Graph) -> None:
        closure = find_node_and_dependencies(shared_feeder_graph, shared_feeder_graph.find_node("num"))

        assert closure.nodes_by_id == {"num"}
        assert "add1" not in closure.nodes_by_id
        assert "add2" not in closure.nodes_by_id
        assert closure.edges_by_id == {"e1", "e2"}

    def test_takes_exclusive_feeders(self, shared_feeder_graph: Graph) -> None:
        closure = find_node_and_dependencies(shared_feeder_graph, shared_feeder_graph.find_node("frag"))

        assert closure.nodes_by_id == {"frag", "add1", "add2", "num"}
        assert "output" not in closure.nodes_by_id
        assert "e5" in closure.edges_by_id

    def test_leaves_shared_feeder(self, shared_feeder_graph: Graph) -> None:
        closure = find_node_and_dependencies(shared_feeder_graph, shared_feeder_graph.find_node("add1"))

        assert closure.nodes_by_id == {"add1"}
        assert closure.edges_by_id == {"e1", "e3"}

    def test_folds_in_vertex_partner(self) -> None:
        graph = build(
            [data("nf"), data("nv"), shader("f"), shader("v", ShaderStage.VERTEX)],
            [edge("ef", "nf", "f", "x"), edge("ev", "nv", "v", "y"), link("l1", "v", "f")],
        )

        closure = find_node_and_dependencies(graph, graph.find_node("f"))

        assert closure.nodes_by_id == {"f", "v", "nf", "nv"}
        assert closure.linked_fragment_node.id == "f"
        assert closure.linked_vertex_node.id == "v"
        assert "l1" in closure.edges_by_id

    def test_vertex_start_resolves_to_fragment_root(self) -> None:
        graph = build([shader("f"), shader("v", ShaderStage.VERTEX)], [link("l1", "v", "f")])

        closure = find_node_and_dependencies(graph, graph.find_node("v"))

        assert closure.linked_fragment_node.id == "f"
        assert closure.linked_vertex_node.id == "v"

    def test_unlinked_node_has_no_vertex_partner(self) -> None:
        graph = _chain()
        closure = find_node_and_dependencies(graph, graph.find_node("frag"))

        assert closure.linked_vertex_node is None


class TestFullTree:
    def test_takes_shared_feeders(self) -> None:
        graph = build(
            [data("n"), shader("f"), shader("g")],
            [edge("e1", "n", "f", "x"), edge("e2", "n", "g", "y", output="out2")],
        )

        dependencies = find_node_and_dependencies(graph, graph.find_node("f"))
        tree = find_node_tree(graph, graph.find_node("f"))

        assert dependencies.nodes_by_id == {"f"}
        assert tree.nodes_by_id == {"f", "n"}

    def test_includes_outbound_edges_of_root(self) -> None:
        graph = _chain()
        tree = find_node_tree(graph, graph.find_node("frag"))

        assert "e4" in tree.edges_by_id
        assert tree.nodes_by_id == {"frag", "op", "n1", "n2"}

# tests/unit/core/graph/test_integrity.py
"""Tests for structural validation, projection integrity, and the fix action."""

from __future__ import annotations

from structlog.testing import capture_logs

from shadergraph.core.config import GraphSettings
from shadergraph.core.flow.models import FlowElements
from shadergraph.core.flow.projection import graph_to_flow_graph
from shadergraph.core.graph.integrity import attempt_fix, check_integrity, find_dangling_edges, validate_graph
from shadergraph.core.graph.models import Graph
from shadergraph.core.graph.mutations import add_edge
from tests.conftest import binary, build, data, edge, link, shader


def _codes(graph: Graph) -> list[str]:
    return [issue.code for issue in validate_graph(graph)]


class TestValidateGraph:
    def test_well_formed_graph_has_no_issues(self, shared_feeder_graph: Graph) -> None:
        assert validate_graph(shared_feeder_graph) == []

    def test_dangling_edge(self) -> None:
        graph = build([shader("f")], [edge("e1", "ghost", "f", "x")])

        (issue,) = validate_graph(graph)

        assert issue.code == "dangling_edge"
        assert issue.edge_ids == ("e1",)

    def test_duplicate_writer(self) -> None:
        graph = build([data("a"), data("b"), shader("f")], [edge("e1", "a", "f", "x"), edge("e2", "b", "f", "x")])

        (issue,) = validate_graph(graph)

        assert issue.code == "duplicate_writer"
        assert issue.edge_ids == ("e1", "e2")

    def test_duplicate_consumer(self) -> None:
        graph = build([data("a"), shader("f"), shader("g")], [edge("e1", "a", "f", "x"), edge("e2", "a", "g", "y")])
        assert _codes(graph) == ["duplicate_consumer"]

    def test_arity_gap(self) -> None:
        graph = build([data("a"), binary("op")], [edge("e1", "a", "op", "b")])
        assert _codes(graph) == ["arity_gap"]

    def test_link_multiplicity(self) -> None:
        graph = build(
            [shader("v"), shader("f1"), shader("f2")],
            [link("l1", "v", "f1"), link("l2", "v", "f2")],
        )
        assert _codes(graph) == ["link_multiplicity"]

    def test_links_exempt_from_handle_rules(self) -> None:
        graph = build([shader("v"), shader("f")], [link("l1", "v", "f"), edge("e1", "v", "f", "x")])
        assert validate_graph(graph) == []

    def test_cycle_reports_edge_ids(self) -> None:
        graph = build([shader("a"), shader("b")], [edge("e1", "a", "b", "x"), edge("e2", "b", "a", "y")])

        (issue,) = validate_graph(graph)

        assert issue.code == "cycle"
        assert set(issue.edge_ids) == {"e1", "e2"}
        assert set(issue.node_ids) == {"a", "b"}

    def test_custom_variadic_settings(self) -> None:
        graph = build([data("a"), binary("op")], [edge("e1", "a", "op", "b")])
        settings = GraphSettings(variadic_node_types=frozenset())

        assert validate_graph(graph, settings) == []

    def test_reversed_alphabet_collapse_is_not_a_gap(self) -> None:
        settings = GraphSettings(handle_alphabet="zyx")
        graph = build([data("a"), data("b"), binary("op")], [])
        graph = add_edge(graph, edge("e1", "a", "op", "z"), settings)
        graph = add_edge(graph, edge("e2", "b", "op", "y"), settings)

        assert [e.input for e in graph.edges] == ["z", "y"]
        assert validate_graph(graph, settings) == []

    def test_reversed_alphabet_still_reports_gap(self) -> None:
        graph = build([data("a"), binary("op")], [edge("e1", "a", "op", "y")])
        settings = GraphSettings(handle_alphabet="zyx")

        (issue,) = validate_graph(graph, settings)

        assert issue.code == "arity_gap"


class TestCheckIntegrity:
    def test_fresh_projection_matches(self, shared_feeder_graph: Graph) -> None:
        report = check_integrity(shared_feeder_graph, graph_to_flow_graph(shared_feeder_graph))

        assert report.ok
        assert report.summary() == []

    def test_reports_each_direction(self, shared_feeder_graph: Graph) -> None:
        flow = graph_to_flow_graph(shared_feeder_graph)
        stale = FlowElements(
            nodes=tuple(n for n in flow.nodes if n.id != "num"),
            edges=tuple(e for e in flow.edges if e.id != "e5"),
        )
        graph = build([*shared_feeder_graph.nodes, data("extra")], shared_feeder_graph.edges)

        report = check_integrity(graph, stale)

        assert report.nodes_missing_from_flow == {"num", "extra"}
        assert report.edges_missing_from_flow == {"e5"}
        assert report.nodes_missing_from_graph == frozenset()
        assert not report.ok
        assert report.summary() == ["Nodes missing from flow: extra, num", "Edges missing from flow: e5"]

    def test_reports_dangling_edges(self) -> None:
        graph = build([shader("f")], [edge("e1", "ghost", "f", "x")])

        report = check_integrity(graph, FlowElements())

        assert report.dangling_edges == {"e1"}


class TestAttemptFix:
    def test_prunes_dangling_and_recollapses(self) -> None:
        graph = build(
            [data("a"), binary("op")],
            [edge("e1", "ghost", "op", "a"), edge("e2", "a", "op", "b")],
        )

        with capture_logs() as logs:
            result = attempt_fix(graph)

        assert result.pruned_edge_ids == {"e1"}
        assert [(e.id, e.input) for e in result.graph.edges] == [("e2", "a")]
        assert logs[0]["event"] == "graph_fix_attempted"
        assert find_dangling_edges(result.graph) == []

    def test_healthy_graph_unchanged(self, shared_feeder_graph: Graph) -> None:
        result = attempt_fix(shared_feeder_graph)

        assert result.graph is shared_feeder_graph
        assert result.pruned_edge_ids == frozenset()

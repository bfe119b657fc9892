# tests/unit/core/graph/test_arity.py
"""Tests for variadic input collapsing."""

from __future__ import annotations

import pytest

from shadergraph.contracts.errors import ArityOverflowError
from shadergraph.core.config import GraphSettings
from shadergraph.core.graph.arity import collapse_variadic_graph_edges, collapse_variadic_handles
from tests.conftest import binary, build, data, edge, link, shader


def test_renumbers_in_edge_order() -> None:
    graph = build(
        [data("x"), data("y"), data("z"), binary("op")],
        [edge("e1", "x", "op", "c"), edge("e2", "y", "op", "a"), edge("e3", "z", "op", "q")],
    )

    result = collapse_variadic_graph_edges(graph)

    assert [e.input for e in result.edges] == ["a", "b", "c"]


def test_groups_per_target() -> None:
    graph = build(
        [data("x"), data("y"), binary("op1"), binary("op2")],
        [edge("e1", "x", "op1", "b"), edge("e2", "y", "op2", "b")],
    )

    result = collapse_variadic_graph_edges(graph)

    assert [e.input for e in result.edges] == ["a", "a"]


def test_non_variadic_targets_untouched() -> None:
    graph = build([data("x"), shader("f")], [edge("e1", "x", "f", "whatever")])
    assert collapse_variadic_graph_edges(graph) is graph


def test_already_collapsed_returns_same_graph() -> None:
    graph = build([data("x"), data("y"), binary("op")], [edge("e1", "x", "op", "a"), edge("e2", "y", "op", "b")])
    assert collapse_variadic_graph_edges(graph) is graph


def test_unchanged_edges_keep_identity() -> None:
    first = edge("e1", "x", "op", "a")
    graph = build([data("x"), data("y"), binary("op")], [first, edge("e2", "y", "op", "z")])

    result = collapse_variadic_graph_edges(graph)

    assert result.edges[0] is first
    assert result.edges[1].input == "b"


def test_link_edges_ignored() -> None:
    graph = build([shader("v"), binary("op")], [link("l1", "v", "op")])
    assert collapse_variadic_graph_edges(graph) is graph


def test_edges_to_missing_target_left_alone() -> None:
    graph = build([data("x"), binary("op")], [edge("e1", "x", "ghost", "q")])
    assert collapse_variadic_graph_edges(graph) is graph


def test_custom_variadic_types_and_alphabet() -> None:
    settings = GraphSettings(variadic_node_types=frozenset({"source"}), handle_alphabet="xyz")
    graph = build([data("a"), data("b"), shader("f")], [edge("e1", "a", "f", "p"), edge("e2", "b", "f", "q")])

    result = collapse_variadic_graph_edges(graph, settings)

    assert [e.input for e in result.edges] == ["x", "y"]


def test_overflow_raises() -> None:
    settings = GraphSettings(handle_alphabet="ab")
    graph = build(
        [data("x"), data("y"), data("z"), binary("op")],
        [edge("e1", "x", "op", "a"), edge("e2", "y", "op", "b"), edge("e3", "z", "op", "c")],
    )

    with pytest.raises(ArityOverflowError) as exc_info:
        collapse_variadic_graph_edges(graph, settings)

    assert exc_info.value.node_id == "op"
    assert exc_info.value.edge_count == 3
    assert exc_info.value.alphabet_size == 2


def test_generic_over_edge_shape() -> None:
    edges = [("t", "?"), ("u", "?"), ("t", "?")]

    result = collapse_variadic_handles(
        edges,
        is_variadic_target=lambda target: target == "t",
        target_of=lambda e: e[0],
        handle_of=lambda e: e[1],
        with_handle=lambda e, h: (e[0], h),
        is_link=lambda e: False,
        alphabet="abc",
    )

    assert result == (("t", "a"), ("u", "?"), ("t", "b"))

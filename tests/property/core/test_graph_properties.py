# tests/property/core/test_graph_properties.py
"""Property-based tests for the canonical graph operations.

Random DAGs are built through ``add_edge``, so every generated graph went
through the same replace-and-collapse path the editor uses.

Key Invariants:
- Every input has at most one writer and every output at most one consumer
- Variadic inputs are always a contiguous a, b, c... prefix
- Collapsing an already collapsed graph is a no-op
- The dependency closure sits inside the full tree, and every feeder it
  takes feeds only the closure
- Splicing over a node leaves a structurally valid graph and keeps the
  downstream consumer's input count
- Deleting the spliced-in closure leaves the consumer exactly as deleting
  the replaced closure would have
"""

from __future__ import annotations

from hypothesis import assume, given
from hypothesis import strategies as st

from shadergraph.contracts.enums import ShaderStage
from shadergraph.core.graph.arity import collapse_variadic_graph_edges
from shadergraph.core.graph.integrity import validate_graph
from shadergraph.core.graph.models import Graph
from shadergraph.core.graph.mutations import add_edge, remove_edges, remove_nodes
from shadergraph.core.graph.splice import replace_node_with_graph
from shadergraph.core.graph.traversal import find_node_and_dependencies, find_node_tree
from tests.conftest import binary, build, data, edge, output, shader
from tests.property.settings import QUICK_SETTINGS, STANDARD_SETTINGS

_BUILDERS = {"data": data, "binary": binary, "shader": shader}


@st.composite
def dag_graphs(draw: st.DrawFn) -> Graph:
    """Graphs whose edges only run from lower to higher node index."""
    kinds = draw(st.lists(st.sampled_from(sorted(_BUILDERS)), min_size=2, max_size=8))
    graph = build([_BUILDERS[kind](f"n{i}") for i, kind in enumerate(kinds)])
    pairs = draw(st.lists(st.tuples(st.integers(0, len(kinds) - 1), st.integers(0, len(kinds) - 1)), max_size=16))
    for k, (source, target) in enumerate(pairs):
        if source >= target or kinds[target] == "data":
            continue
        graph = add_edge(graph, edge(f"e{k}", f"n{source}", f"n{target}", f"in{k}", output=f"out{k}"))
    return graph


def _incoming() -> Graph:
    return build(
        [data("dy"), shader("Y"), output("o")],
        [edge("h0", "dy", "Y", "z"), edge("h1", "Y", "o", "color", type=ShaderStage.FRAGMENT)],
    )


@given(graph=dag_graphs())
@STANDARD_SETTINGS
def test_generated_graphs_are_valid(graph: Graph) -> None:
    assert validate_graph(graph) == []


@given(graph=dag_graphs())
@QUICK_SETTINGS
def test_collapse_is_idempotent(graph: Graph) -> None:
    assert collapse_variadic_graph_edges(graph) is graph


@given(graph=dag_graphs(), data=st.data())
@STANDARD_SETTINGS
def test_removing_edges_keeps_invariants(graph: Graph, data: st.DataObject) -> None:
    assume(graph.edges)
    doomed = data.draw(st.sets(st.sampled_from([e.id for e in graph.edges])))

    result = remove_edges(graph, doomed)

    assert validate_graph(result) == []
    assert {e.id for e in result.edges} == {e.id for e in graph.edges} - doomed


@given(graph=dag_graphs(), data=st.data())
@STANDARD_SETTINGS
def test_dependency_closure_within_tree_and_exclusive(graph: Graph, data: st.DataObject) -> None:
    start = data.draw(st.sampled_from(graph.nodes))

    closure = find_node_and_dependencies(graph, start)
    tree = find_node_tree(graph, start)

    assert start.id in closure.nodes_by_id
    assert closure.nodes_by_id <= tree.nodes_by_id
    for node_id in closure.nodes_by_id - {start.id}:
        consumers = {e.to_node for e in graph.edges if e.from_node == node_id and not e.is_link}
        assert consumers <= closure.nodes_by_id


@given(graph=dag_graphs(), data=st.data())
@STANDARD_SETTINGS
def test_deleting_a_closure_leaves_valid_graph(graph: Graph, data: st.DataObject) -> None:
    start = data.draw(st.sampled_from(graph.nodes))
    closure = find_node_and_dependencies(graph, start)

    result = remove_nodes(graph, closure.nodes_by_id)

    assert validate_graph(result) == []
    assert not any(e.touches(closure.nodes_by_id) for e in result.edges)


@given(graph=dag_graphs(), data=st.data())
@STANDARD_SETTINGS
def test_splice_keeps_graph_valid_and_downstream_arity(graph: Graph, data: st.DataObject) -> None:
    start = data.draw(st.sampled_from(graph.nodes))
    closure = find_node_and_dependencies(graph, start)
    first_out = next((e for e in graph.edges if e.from_node == start.id), None)

    result = replace_node_with_graph(graph, start.id, _incoming())

    assert validate_graph(result.graph) == []
    assert not any(e.touches(closure.nodes_by_id) for e in result.graph.edges)
    if first_out is not None and first_out.to_node not in closure.nodes_by_id:
        before = len(graph.edges_to(first_out.to_node))
        after = [e for e in result.graph.edges if e.to_node == first_out.to_node]
        # Other feeders of the consumer may have been in the closure too
        lost = len([e for e in graph.edges_to(first_out.to_node) if e.from_node in closure.nodes_by_id and e is not first_out])
        assert len(after) == before - lost
        assert any(e.from_node in result.added_node_ids for e in after)


@given(graph=dag_graphs(), data=st.data())
@STANDARD_SETTINGS
def test_deleting_spliced_closure_matches_deleting_original(graph: Graph, data: st.DataObject) -> None:
    start = data.draw(st.sampled_from(graph.nodes))
    first_out = next((e for e in graph.edges if e.from_node == start.id), None)
    assume(first_out is not None)
    closure = find_node_and_dependencies(graph, start)
    assume(first_out.to_node not in closure.nodes_by_id)

    result = replace_node_with_graph(graph, start.id, _incoming())
    spliced_root = result.graph.find_node(result.reconnected_edges[0].from_node)
    spliced_closure = find_node_and_dependencies(result.graph, spliced_root)

    after_splice = remove_nodes(result.graph, spliced_closure.nodes_by_id)
    without_original = remove_nodes(graph, closure.nodes_by_id)

    assert spliced_closure.nodes_by_id == result.added_node_ids
    assert len(after_splice.edges_to(first_out.to_node)) == len(without_original.edges_to(first_out.to_node))

# src/shadergraph/core/graph/arity.py
"""Edge arity collapsing for variadic operator nodes.

A variadic node (binary add/multiply) grows and shrinks its inputs with
the edges connected to it, and its input handles must always be the
contiguous run a, b, c... in current edge order. When the edge into "a"
is removed, the edge into "b" moves down to "a".

This is a normalization pass, re-run after every edge insertion or
removal, not a rule enforced at insertion time. The same algorithm runs
over canonical edges (``input``) and projection edges (``target_handle``),
so it is written once against accessor callables.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Sequence
from dataclasses import replace
from typing import TypeVar

from shadergraph.contracts.errors import ArityOverflowError
from shadergraph.core.config import DEFAULT_SETTINGS, GraphSettings
from shadergraph.core.graph.models import Graph, GraphEdge

E = TypeVar("E")


def collapse_variadic_handles(
    edges: Sequence[E],
    *,
    is_variadic_target: Callable[[str], bool],
    target_of: Callable[[E], str],
    handle_of: Callable[[E], str | None],
    with_handle: Callable[[E, str], E],
    is_link: Callable[[E], bool],
    alphabet: str,
) -> tuple[E, ...]:
    """Renumber handles of edges into variadic targets by their order.

    Edges are grouped by target (preserving sequence order) and the i-th
    edge of each group is assigned ``alphabet[i]``. Edges that already
    carry the right handle are returned as the same object.

    Raises:
        ArityOverflowError: If a group is longer than the alphabet
    """
    group_sizes = Counter(target_of(edge) for edge in edges if not is_link(edge) and is_variadic_target(target_of(edge)))
    for target, size in group_sizes.items():
        if size > len(alphabet):
            raise ArityOverflowError(target, size, len(alphabet))

    seen: Counter[str] = Counter()
    collapsed: list[E] = []
    for edge in edges:
        target = target_of(edge)
        if target not in group_sizes or is_link(edge):
            collapsed.append(edge)
            continue
        handle = alphabet[seen[target]]
        seen[target] += 1
        collapsed.append(edge if handle_of(edge) == handle else with_handle(edge, handle))
    return tuple(collapsed)


def collapse_variadic_graph_edges(graph: Graph, settings: GraphSettings = DEFAULT_SETTINGS.graph) -> Graph:
    """Collapse the canonical graph's edges into variadic nodes.

    Returns the same Graph object when every handle was already in place.
    Edges whose target node is missing are left alone; integrity checks
    report them.
    """
    variadic_ids = {node.id for node in graph.nodes if node.type in settings.variadic_node_types}
    if not variadic_ids:
        return graph

    edges = collapse_variadic_handles(
        graph.edges,
        is_variadic_target=variadic_ids.__contains__,
        target_of=_edge_target,
        handle_of=_edge_input,
        with_handle=_with_input,
        is_link=_edge_is_link,
        alphabet=settings.handle_alphabet,
    )
    if all(new is old for new, old in zip(edges, graph.edges, strict=True)):
        return graph
    return graph.with_edges(edges)


def _edge_target(edge: GraphEdge) -> str:
    return edge.to_node


def _edge_input(edge: GraphEdge) -> str:
    return edge.input


def _with_input(edge: GraphEdge, handle: str) -> GraphEdge:
    return replace(edge, input=handle)


def _edge_is_link(edge: GraphEdge) -> bool:
    return edge.is_link

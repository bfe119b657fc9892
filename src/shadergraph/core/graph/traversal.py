# src/shadergraph/core/graph/traversal.py
"""Predicate-driven subgraph traversal.

One generic walk, ``filter_graph_from_node``, starts at a node and follows
its inbound edges back to the nodes that feed it, then their inbound
edges, and so on. Two pluggable predicates decide what the walk collects:

- the edge predicate decides whether an inbound edge joins the result
- the node predicate decides whether the node at the far end of an
  admitted edge joins the result and is expanded further

Two closures are built on top of it:

- dependency closure (``find_node_and_dependencies``): the node plus every
  node that exists only to feed it. A feeder that also feeds something
  outside the closure is shared infrastructure and is left alone.
- full tree (``find_node_tree``): the node plus everything that feeds it,
  transitively.

Both resolve the node's stage-linked partner and fold the partner's closure
in, then add the outbound edges of the node and its partner, which a walk
over inbound edges never discovers.

Traversal is best-effort over possibly stale graphs: an edge whose source
node no longer exists is logged and skipped.
"""

from __future__ import annotations

import math
from collections import defaultdict
from collections.abc import Callable
from dataclasses import dataclass, field

import structlog

from shadergraph.contracts.enums import ShaderStage
from shadergraph.core.graph.models import Graph, GraphEdge, GraphNode, NodeInput
from shadergraph.core.graph.mutations import find_linked_node

logger = structlog.get_logger(__name__)


@dataclass
class SearchResult:
    """Accumulated traversal result, in discovery order.

    Mutable while a walk is in progress; predicates receive the live
    accumulator so they can consult what has already been collected.
    """

    nodes: dict[str, GraphNode] = field(default_factory=dict)
    edges: dict[str, GraphEdge] = field(default_factory=dict)
    inputs: dict[str, list[NodeInput]] = field(default_factory=dict)


NodePredicate = Callable[[GraphNode, list[GraphEdge], SearchResult], bool]
EdgePredicate = Callable[[NodeInput | None, GraphNode, GraphEdge, GraphNode, SearchResult], bool]


def _always_node(node: GraphNode, inbound: list[GraphEdge], acc: SearchResult) -> bool:
    return True


def _always_edge(node_input: NodeInput | None, to_node: GraphNode, edge: GraphEdge, from_node: GraphNode, acc: SearchResult) -> bool:
    return True


@dataclass(frozen=True)
class Predicates:
    """Strategy pair for filter_graph_from_node.

    node: ``(node, inbound_edges, acc) -> expand?``
    edge: ``(input, to_node, edge, from_node, acc) -> include?``
    """

    node: NodePredicate = _always_node
    edge: EdgePredicate = _always_edge


ALWAYS = Predicates()


def filter_graph_from_node(
    graph: Graph,
    start: GraphNode,
    predicates: Predicates = ALWAYS,
    *,
    depth: float = math.inf,
    exclude_node_ids: frozenset[str] = frozenset(),
) -> SearchResult:
    """Walk back from ``start`` through inbound edges, filtered by predicates.

    The start node is always part of the result. A node rejected by the
    node predicate may be reconsidered when another admitted edge leads to
    it later in the walk; a node is expanded at most once. Stage link edges
    are never followed, and ids in ``exclude_node_ids`` are never entered.

    Args:
        graph: Graph to walk
        start: Node the walk begins at
        predicates: Edge and node filters
        depth: Maximum number of hops from start (1 = direct inputs only)
        exclude_node_ids: Nodes the walk must not enter

    Returns:
        SearchResult with collected nodes, edges, and the inputs of each
        collected node that admitted edges arrived at
    """
    nodes_by_id = graph.nodes_by_id()
    inbound: defaultdict[str, list[GraphEdge]] = defaultdict(list)
    for edge in graph.edges:
        if not edge.is_link:
            inbound[edge.to_node].append(edge)

    result = SearchResult()
    result.nodes[start.id] = start
    stack: list[tuple[GraphNode, float]] = [(start, depth)]

    while stack:
        node, remaining = stack.pop()
        for edge in inbound[node.id]:
            from_node = nodes_by_id.get(edge.from_node)
            if from_node is None:
                logger.warning("traversal_edge_source_missing", edge_id=edge.id, node_id=edge.from_node, start_id=start.id)
                continue
            node_input = node.find_input(edge.input)
            if not predicates.edge(node_input, node, edge, from_node, result):
                continue
            result.edges[edge.id] = edge
            if node_input is not None:
                result.inputs.setdefault(node.id, []).append(node_input)

            if from_node.id in result.nodes or from_node.id in exclude_node_ids or remaining <= 1:
                continue
            if predicates.node(from_node, inbound[from_node.id], result):
                result.nodes[from_node.id] = from_node
                stack.append((from_node, remaining - 1))

    return result


def merge_search_results(*results: SearchResult) -> SearchResult:
    """Union several results; earlier results win on discovery order."""
    merged = SearchResult()
    for result in results:
        for node_id, node in result.nodes.items():
            merged.nodes.setdefault(node_id, node)
        for edge_id, edge in result.edges.items():
            merged.edges.setdefault(edge_id, edge)
        for node_id, node_inputs in result.inputs.items():
            existing = merged.inputs.setdefault(node_id, [])
            existing.extend(i for i in node_inputs if i not in existing)
    return merged


@dataclass(frozen=True)
class NodeClosure:
    """A node's closure together with its resolved stage partners."""

    nodes_by_id: frozenset[str]
    edges_by_id: frozenset[str]
    nodes: tuple[GraphNode, ...]
    edges: tuple[GraphEdge, ...]
    linked_fragment_node: GraphNode
    linked_vertex_node: GraphNode | None


def dependency_predicates(graph: Graph, start: GraphNode, known_ids: frozenset[str] = frozenset()) -> Predicates:
    """Predicates admitting only nodes that exclusively feed the closure.

    An edge is admitted when its target is the start node or already in
    the closure. A feeder node is admitted when every one of its outbound
    data edges ends inside the closure (or at ``known_ids``, the part of the
    closure discovered by an earlier walk).
    """
    outbound: defaultdict[str, list[GraphEdge]] = defaultdict(list)
    for edge in graph.edges:
        if not edge.is_link:
            outbound[edge.from_node].append(edge)

    def in_closure(node_id: str, acc: SearchResult) -> bool:
        return node_id == start.id or node_id in acc.nodes or node_id in known_ids

    def node(candidate: GraphNode, inbound: list[GraphEdge], acc: SearchResult) -> bool:
        return all(in_closure(edge.to_node, acc) for edge in outbound[candidate.id])

    def edge(node_input: NodeInput | None, to_node: GraphNode, inbound_edge: GraphEdge, from_node: GraphNode, acc: SearchResult) -> bool:
        return in_closure(to_node.id, acc)

    return Predicates(node=node, edge=edge)


def _resolve_stage_pair(graph: Graph, start: GraphNode) -> tuple[GraphNode, GraphNode | None]:
    """Return (fragment-side node, vertex partner) for a start node.

    Selecting a vertex node swaps to its linked fragment node so both
    closures are always rooted the same way.
    """
    other = find_linked_node(graph, start.id)
    if other is None:
        return start, None
    if start.stage == ShaderStage.VERTEX:
        return other, start
    return start, other


def _closure(
    graph: Graph,
    start: GraphNode,
    make_predicates: Callable[[GraphNode, frozenset[str]], Predicates],
) -> NodeClosure:
    fragment, vertex = _resolve_stage_pair(graph, start)
    exclude = frozenset({vertex.id}) if vertex is not None else frozenset()

    current = filter_graph_from_node(graph, fragment, make_predicates(fragment, frozenset()), exclude_node_ids=exclude)
    if vertex is not None:
        other = filter_graph_from_node(
            graph,
            vertex,
            make_predicates(vertex, frozenset(current.nodes)),
            exclude_node_ids=frozenset({fragment.id}),
        )
        elements = merge_search_results(current, other)
    else:
        elements = current

    roots = {fragment.id} | ({vertex.id} if vertex is not None else set())
    for edge in graph.edges:
        if edge.from_node in roots:
            elements.edges.setdefault(edge.id, edge)

    return NodeClosure(
        nodes_by_id=frozenset(elements.nodes),
        edges_by_id=frozenset(elements.edges),
        nodes=tuple(elements.nodes.values()),
        edges=tuple(elements.edges.values()),
        linked_fragment_node=fragment,
        linked_vertex_node=vertex,
    )


def find_node_and_dependencies(graph: Graph, start: GraphNode) -> NodeClosure:
    """The node, its stage partner, and every node that exists only to feed them.

    Used to delete a node without deleting shared infrastructure.
    """
    return _closure(graph, start, lambda root, known: dependency_predicates(graph, root, known))


def find_node_tree(graph: Graph, start: GraphNode) -> NodeClosure:
    """The node, its stage partner, and everything that feeds them."""
    return _closure(graph, start, lambda root, known: ALWAYS)

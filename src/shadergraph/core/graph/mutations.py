# src/shadergraph/core/graph/mutations.py
"""Graph Model operations.

Every operation is a pure function ``Graph -> Graph``. Nodes and edges that
an operation does not touch are carried into the result as the same
objects, which lets the flow projection diff by identity.

Any operation that changes the edge set re-runs arity collapsing, so
variadic inputs stay contiguous no matter which edge was added or removed.
"""

from __future__ import annotations

from collections.abc import Collection, Iterable
from dataclasses import replace
from typing import Any

import structlog

from shadergraph.contracts.enums import ShaderStage
from shadergraph.core.config import DEFAULT_SETTINGS, GraphSettings
from shadergraph.core.graph.arity import collapse_variadic_graph_edges
from shadergraph.core.graph.models import Graph, GraphEdge, GraphNode

logger = structlog.get_logger(__name__)


def add_edge(graph: Graph, new_edge: GraphEdge, settings: GraphSettings = DEFAULT_SETTINGS.graph) -> Graph:
    """Connect two handles, replacing whatever occupied them.

    Removes any edge ending at the same ``(to_node, input)`` (single writer)
    and any edge starting at the same ``(from_node, output)`` (single
    consumer), appends the new edge, then collapses variadic inputs.

    Stage link edges only displace other link edges; data edges only
    displace other data edges.
    """
    kept = [
        edge
        for edge in graph.edges
        if edge.is_link != new_edge.is_link
        or not (
            (edge.to_node == new_edge.to_node and edge.input == new_edge.input)
            or (edge.from_node == new_edge.from_node and edge.output == new_edge.output)
        )
    ]
    kept.append(new_edge)
    return collapse_variadic_graph_edges(graph.with_edges(kept), settings)


def add_elements(
    graph: Graph,
    nodes: Iterable[GraphNode] = (),
    edges: Iterable[GraphEdge] = (),
    settings: GraphSettings = DEFAULT_SETTINGS.graph,
) -> Graph:
    """Union new nodes and edges into the graph (appended, in order)."""
    return collapse_variadic_graph_edges(
        Graph(nodes=(*graph.nodes, *nodes), edges=(*graph.edges, *edges)),
        settings,
    )


def update_node(graph: Graph, node_id: str, **changes: Any) -> Graph:
    """Replace fields on one node.

    A missing node is logged and the graph is returned unchanged.
    """
    found = False
    nodes: list[GraphNode] = []
    for node in graph.nodes:
        if node.id == node_id:
            found = True
            nodes.append(replace(node, **changes))
        else:
            nodes.append(node)
    if not found:
        logger.warning("update_node_missing", node_id=node_id, fields=sorted(changes))
        return graph
    return graph.with_nodes(nodes)


def update_node_input(graph: Graph, node_id: str, input_id: str, **changes: Any) -> Graph:
    """Replace fields on one input handle of one node."""
    node = graph.get_node(node_id)
    if node is None:
        logger.warning("update_node_input_missing_node", node_id=node_id, input_id=input_id)
        return graph
    if node.find_input(input_id) is None:
        logger.warning("update_node_input_missing_input", node_id=node_id, input_id=input_id)
        return graph
    inputs = tuple(replace(node_input, **changes) if node_input.id == input_id else node_input for node_input in node.inputs)
    return update_node(graph, node_id, inputs=inputs)


def remove_edges(graph: Graph, edge_ids: Collection[str], settings: GraphSettings = DEFAULT_SETTINGS.graph) -> Graph:
    """Remove edges by id, then collapse variadic inputs.

    Returns ``graph`` itself when no id matches.
    """
    kept = tuple(edge for edge in graph.edges if edge.id not in edge_ids)
    if len(kept) == len(graph.edges):
        return graph
    return collapse_variadic_graph_edges(graph.with_edges(kept), settings)


def remove_nodes(graph: Graph, node_ids: Collection[str], settings: GraphSettings = DEFAULT_SETTINGS.graph) -> Graph:
    """Remove nodes by id along with every edge touching them.

    Edges touching an id that names no node (dangling edges) go too. Returns
    ``graph`` itself when nothing is removed.
    """
    nodes = tuple(node for node in graph.nodes if node.id not in node_ids)
    edges = tuple(edge for edge in graph.edges if not edge.touches(node_ids))
    if len(nodes) == len(graph.nodes) and len(edges) == len(graph.edges):
        return graph
    return collapse_variadic_graph_edges(Graph(nodes=nodes, edges=edges), settings)


def find_link_edge(graph: Graph, node_id: str) -> GraphEdge | None:
    """The stage link edge attached to a node, if any."""
    for edge in graph.edges:
        if edge.is_link and (edge.from_node == node_id or edge.to_node == node_id):
            return edge
    return None


def find_linked_node(graph: Graph, node_id: str) -> GraphNode | None:
    """The node paired with this one by a stage link (vertex <-> fragment)."""
    link = find_link_edge(graph, node_id)
    if link is None:
        return None
    other_id = link.to_node if link.from_node == node_id else link.from_node
    other = graph.get_node(other_id)
    if other is None:
        logger.warning("linked_node_missing", node_id=node_id, linked_node_id=other_id, edge_id=link.id)
    return other


def find_output_producers(graph: Graph, output_node_types: Collection[str]) -> dict[ShaderStage, GraphEdge]:
    """Edges feeding each stage's Output node, keyed by stage.

    The stage comes from the Output node, falling back to the edge type.
    When several edges feed one stage the first in edge order wins.
    """
    outputs = {node.id: node for node in graph.nodes if node.type in output_node_types}
    producers: dict[ShaderStage, GraphEdge] = {}
    for edge in graph.edges:
        output = outputs.get(edge.to_node)
        if output is None or edge.is_link:
            continue
        stage = output.stage or _stage_of(edge.type)
        if stage is not None and stage not in producers:
            producers[stage] = edge
    return producers


def _stage_of(value: str | None) -> ShaderStage | None:
    try:
        return ShaderStage(value) if value is not None else None
    except ValueError:
        return None

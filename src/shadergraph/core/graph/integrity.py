# src/shadergraph/core/graph/integrity.py
"""Read-only structural checks, and the explicit repair action.

Nothing here runs during normal editing. ``validate_graph`` and
``check_integrity`` only report; ``attempt_fix`` is invoked by the user.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

import networkx as nx
import structlog

from shadergraph.core.config import DEFAULT_SETTINGS, GraphSettings
from shadergraph.core.graph.arity import collapse_variadic_graph_edges
from shadergraph.core.graph.models import Graph, GraphEdge

if TYPE_CHECKING:
    from collections.abc import Sequence

logger = structlog.get_logger(__name__)


class _Identified(Protocol):
    @property
    def id(self) -> str: ...


class ProjectionLike(Protocol):
    """Anything exposing node and edge collections with ids."""

    @property
    def nodes(self) -> Sequence[_Identified]: ...

    @property
    def edges(self) -> Sequence[_Identified]: ...


@dataclass(frozen=True, slots=True)
class GraphIssue:
    """One structural problem found in a graph."""

    code: str
    message: str
    node_ids: tuple[str, ...] = ()
    edge_ids: tuple[str, ...] = ()


def find_dangling_edges(graph: Graph) -> list[GraphEdge]:
    """Edges whose source or target node does not exist."""
    node_ids = {node.id for node in graph.nodes}
    return [edge for edge in graph.edges if edge.from_node not in node_ids or edge.to_node not in node_ids]


def _duplicates(edges: Iterable[GraphEdge], key_of: str) -> dict[tuple[str, str], list[GraphEdge]]:
    groups: defaultdict[tuple[str, str], list[GraphEdge]] = defaultdict(list)
    for edge in edges:
        if edge.is_link:
            continue
        key = (edge.to_node, edge.input) if key_of == "writer" else (edge.from_node, edge.output)
        groups[key].append(edge)
    return {key: group for key, group in groups.items() if len(group) > 1}


def validate_graph(graph: Graph, settings: GraphSettings = DEFAULT_SETTINGS.graph) -> list[GraphIssue]:
    """Check every structural invariant of the canonical graph.

    Returns:
        Issues in a stable order: dangling edges, duplicate writers,
        duplicate consumers, arity gaps, link multiplicity, cycles.
        Empty when the graph is well formed.
    """
    issues: list[GraphIssue] = []

    for edge in find_dangling_edges(graph):
        issues.append(
            GraphIssue(
                code="dangling_edge",
                message=f"Edge '{edge.id}' connects '{edge.from_node}' to '{edge.to_node}' but one of them does not exist",
                node_ids=(edge.from_node, edge.to_node),
                edge_ids=(edge.id,),
            )
        )

    for (to_node, input_id), group in _duplicates(graph.edges, "writer").items():
        issues.append(
            GraphIssue(
                code="duplicate_writer",
                message=f"Input '{input_id}' of node '{to_node}' has {len(group)} inbound edges",
                node_ids=(to_node,),
                edge_ids=tuple(edge.id for edge in group),
            )
        )

    for (from_node, output_id), group in _duplicates(graph.edges, "consumer").items():
        issues.append(
            GraphIssue(
                code="duplicate_consumer",
                message=f"Output '{output_id}' of node '{from_node}' has {len(group)} outbound edges",
                node_ids=(from_node,),
                edge_ids=tuple(edge.id for edge in group),
            )
        )

    for node in graph.nodes:
        if node.type not in settings.variadic_node_types:
            continue
        inbound = [edge for edge in graph.edges if edge.to_node == node.id and not edge.is_link]
        expected = sorted(settings.handle_alphabet[: len(inbound)])
        actual = sorted(edge.input for edge in inbound)
        if actual != expected:
            issues.append(
                GraphIssue(
                    code="arity_gap",
                    message=f"Variadic node '{node.id}' has inputs {actual}, expected {expected}",
                    node_ids=(node.id,),
                    edge_ids=tuple(edge.id for edge in inbound),
                )
            )

    links: defaultdict[str, list[GraphEdge]] = defaultdict(list)
    for edge in graph.edges:
        if edge.is_link:
            links[edge.from_node].append(edge)
            links[edge.to_node].append(edge)
    for node_id, group in links.items():
        if len(group) > 1:
            issues.append(
                GraphIssue(
                    code="link_multiplicity",
                    message=f"Node '{node_id}' has {len(group)} stage links, expected at most one",
                    node_ids=(node_id,),
                    edge_ids=tuple(edge.id for edge in group),
                )
            )

    view = graph.to_networkx()
    if not nx.is_directed_acyclic_graph(view):
        try:
            # MultiDiGraph yields (u, v, key) and the key is the edge id
            cycle = nx.find_cycle(view)
            issues.append(
                GraphIssue(
                    code="cycle",
                    message="Graph contains a cycle: " + " -> ".join(str(step[0]) for step in cycle),
                    node_ids=tuple(str(step[0]) for step in cycle),
                    edge_ids=tuple(str(step[2]) for step in cycle),
                )
            )
        except nx.NetworkXNoCycle:
            issues.append(GraphIssue(code="cycle", message="Graph contains a cycle"))

    return issues


@dataclass(frozen=True, slots=True)
class IntegrityReport:
    """Differences between the canonical graph and its projection."""

    nodes_missing_from_flow: frozenset[str] = frozenset()
    nodes_missing_from_graph: frozenset[str] = frozenset()
    edges_missing_from_flow: frozenset[str] = frozenset()
    edges_missing_from_graph: frozenset[str] = frozenset()
    dangling_edges: frozenset[str] = frozenset()

    @property
    def ok(self) -> bool:
        return not (
            self.nodes_missing_from_flow
            or self.nodes_missing_from_graph
            or self.edges_missing_from_flow
            or self.edges_missing_from_graph
            or self.dangling_edges
        )

    def summary(self) -> list[str]:
        lines: list[str] = []
        for label, ids in (
            ("Nodes missing from flow", self.nodes_missing_from_flow),
            ("Nodes missing from graph", self.nodes_missing_from_graph),
            ("Edges missing from flow", self.edges_missing_from_flow),
            ("Edges missing from graph", self.edges_missing_from_graph),
            ("Dangling edges", self.dangling_edges),
        ):
            if ids:
                lines.append(f"{label}: {', '.join(sorted(ids))}")
        return lines


def check_integrity(graph: Graph, flow: ProjectionLike) -> IntegrityReport:
    """Compare id sets of the canonical graph and the flow projection."""
    graph_node_ids = {node.id for node in graph.nodes}
    graph_edge_ids = {edge.id for edge in graph.edges}
    flow_node_ids = {node.id for node in flow.nodes}
    flow_edge_ids = {edge.id for edge in flow.edges}
    return IntegrityReport(
        nodes_missing_from_flow=frozenset(graph_node_ids - flow_node_ids),
        nodes_missing_from_graph=frozenset(flow_node_ids - graph_node_ids),
        edges_missing_from_flow=frozenset(graph_edge_ids - flow_edge_ids),
        edges_missing_from_graph=frozenset(flow_edge_ids - graph_edge_ids),
        dangling_edges=frozenset(edge.id for edge in find_dangling_edges(graph)),
    )


@dataclass(frozen=True, slots=True)
class FixResult:
    graph: Graph
    pruned_edge_ids: frozenset[str]


def attempt_fix(graph: Graph, settings: GraphSettings = DEFAULT_SETTINGS.graph) -> FixResult:
    """Prune edges whose endpoints do not resolve, then re-collapse arity."""
    dangling = frozenset(edge.id for edge in find_dangling_edges(graph))
    if dangling:
        graph = graph.with_edges(edge for edge in graph.edges if edge.id not in dangling)
    fixed = collapse_variadic_graph_edges(graph, settings)
    logger.info("graph_fix_attempted", pruned_edge_ids=sorted(dangling), edge_count=fixed.edge_count)
    return FixResult(graph=fixed, pruned_edge_ids=dangling)

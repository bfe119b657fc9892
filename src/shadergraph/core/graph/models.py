# src/shadergraph/core/graph/models.py
"""Types for the canonical shader graph.

Leaf module within the graph package: no intra-package imports.

Every type is frozen. Graph operations never mutate in place; they return
new Graph values that reuse every unchanged node and edge object, so
identity (``is``) comparisons tell consumers exactly what changed.
"""

from __future__ import annotations

from collections.abc import Container, Iterable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

import networkx as nx

from shadergraph.contracts.enums import EdgeLink, ShaderStage, is_data_node_type, is_source_node_type
from shadergraph.contracts.errors import NodeNotFoundError

_EMPTY_CONFIG: Mapping[str, Any] = MappingProxyType({})


@dataclass(frozen=True, slots=True)
class Position:
    """Canvas position of a node."""

    x: float
    y: float

    def translate(self, dx: float, dy: float) -> Position:
        return Position(self.x + dx, self.y + dy)

    def delta_to(self, other: Position) -> tuple[float, float]:
        """Offset that moves this position onto other."""
        return other.x - self.x, other.y - self.y


@dataclass(frozen=True, slots=True)
class NodeInput:
    """An input handle on a node.

    category distinguishes uniform inputs, property inputs, and filler
    (code replacement) inputs. Bakeable inputs can be compiled in as source
    code instead of bound as a uniform; baked records the current choice.
    """

    id: str
    display_name: str
    category: str | None = None
    data_type: str | None = None
    bakeable: bool = False
    baked: bool = False
    property: str | None = None
    accepts: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class NodeOutput:
    """An output handle on a node."""

    id: str
    name: str
    data_type: str | None = None


@dataclass(frozen=True, slots=True)
class GraphNode:
    """A node in the canonical graph.

    Source-kind nodes carry GLSL in ``source`` and may declare
    ``config["uniforms"]`` / ``config["properties"]``. Data-kind nodes carry
    a constant in ``value``. Operator nodes (binary add/multiply) are source
    kind with variadic lettered inputs.
    """

    id: str
    name: str
    type: str
    position: Position
    inputs: tuple[NodeInput, ...] = ()
    outputs: tuple[NodeOutput, ...] = ()
    stage: ShaderStage | None = None
    bi_stage: bool = False
    engine: bool = False
    value: Any = None
    source: str | None = None
    config: Mapping[str, Any] = field(default=_EMPTY_CONFIG)
    group_id: str | None = None

    @property
    def is_source(self) -> bool:
        return is_source_node_type(self.type)

    @property
    def is_data(self) -> bool:
        return is_data_node_type(self.type)

    def find_input(self, input_id: str) -> NodeInput | None:
        for node_input in self.inputs:
            if node_input.id == input_id:
                return node_input
        return None

    def default_output(self) -> NodeOutput | None:
        return self.outputs[0] if self.outputs else None


@dataclass(frozen=True, slots=True)
class GraphEdge:
    """A typed connection from (from_node, output) to (to_node, input).

    type is the vertex/fragment stage, a data type for plain data edges, or
    EdgeLink.NEXT_STAGE for the structural vertex-to-fragment link.
    """

    id: str
    from_node: str
    to_node: str
    output: str
    input: str
    type: str | None = None

    @property
    def is_link(self) -> bool:
        return self.type == EdgeLink.NEXT_STAGE

    def touches(self, node_ids: Container[str]) -> bool:
        return self.from_node in node_ids or self.to_node in node_ids


@dataclass(frozen=True, slots=True)
class Graph:
    """The canonical graph: the sole source of truth for the compiler.

    Node and edge order is meaningful. Variadic input letters are assigned
    by edge order, and projection regeneration keeps node order stable.
    """

    nodes: tuple[GraphNode, ...] = ()
    edges: tuple[GraphEdge, ...] = ()

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return len(self.edges)

    def nodes_by_id(self) -> dict[str, GraphNode]:
        return {node.id: node for node in self.nodes}

    def has_node(self, node_id: str) -> bool:
        return any(node.id == node_id for node in self.nodes)

    def get_node(self, node_id: str) -> GraphNode | None:
        """Lenient lookup: None when the node does not exist."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def find_node(self, node_id: str) -> GraphNode:
        """Strict lookup.

        Raises:
            NodeNotFoundError: If no node has this id
        """
        node = self.get_node(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        return node

    def edges_to(self, node_id: str) -> list[GraphEdge]:
        return [edge for edge in self.edges if edge.to_node == node_id]

    def edges_from(self, node_id: str) -> list[GraphEdge]:
        return [edge for edge in self.edges if edge.from_node == node_id]

    def with_nodes(self, nodes: Iterable[GraphNode]) -> Graph:
        return replace(self, nodes=tuple(nodes))

    def with_edges(self, edges: Iterable[GraphEdge]) -> Graph:
        return replace(self, edges=tuple(edges))

    def to_networkx(self, *, include_links: bool = False) -> nx.MultiDiGraph[str]:
        """Build a NetworkX view of the graph for topology analysis.

        Edges whose endpoints are missing are skipped; they are reported by
        integrity checks, not represented here. Edge keys are edge ids.
        """
        view: nx.MultiDiGraph[str] = nx.MultiDiGraph()
        for node in self.nodes:
            view.add_node(node.id, node=node)
        for edge in self.edges:
            if edge.is_link and not include_links:
                continue
            if edge.from_node in view and edge.to_node in view:
                view.add_edge(edge.from_node, edge.to_node, key=edge.id, edge=edge)
        return view


EMPTY_GRAPH = Graph()

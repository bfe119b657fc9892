# src/shadergraph/core/graph/splice.py
"""Splicing externally authored graphs into the live graph.

Two flows share one preparation pipeline:

Replace (drop a shader onto an existing node):
    1. compute the dependency closure of the node being replaced
    2. regenerate every incoming id
    3. strip the incoming Output nodes and their edges
    4. translate incoming positions so its output-producing node lands on
       the replaced node
    5. tag incoming nodes with a fresh group id
    6. find the edges that carried the replaced node (and its vertex
       partner) to their downstream consumers
    7. reconnect the incoming producers to those consumers at the same
       input handles
    8. result = old graph - closure - old outbound edges + incoming + reconnections

Import (drop a shader on empty canvas):
    steps 2-5, anchored at the drop position, then a plain union.
"""

from __future__ import annotations

from collections.abc import Collection
from dataclasses import dataclass, field, replace

import structlog

from shadergraph.contracts.enums import ShaderStage
from shadergraph.contracts.errors import SpliceError
from shadergraph.core.config import DEFAULT_SETTINGS, EditorSettings
from shadergraph.core.graph.arity import collapse_variadic_graph_edges
from shadergraph.core.graph.models import Graph, GraphEdge, GraphNode, Position
from shadergraph.core.graph.mutations import find_output_producers
from shadergraph.core.graph.nodes import make_edge
from shadergraph.core.graph.traversal import find_node_and_dependencies
from shadergraph.core.graph.uniforms import expand_uniform_data_nodes
from shadergraph.core.identifiers import IdMap, make_id

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Producer:
    """A node that fed an Output node, and the handle it fed it from."""

    node: GraphNode
    output: str


@dataclass(frozen=True)
class PreparedGraph:
    """An incoming graph ready to be unioned into the live graph."""

    graph: Graph
    group_id: str
    id_map: dict[str, str]
    producers: dict[ShaderStage, Producer] = field(default_factory=dict)


@dataclass(frozen=True)
class SpliceResult:
    """Outcome of a replace or import.

    ``graph is original`` (and every set empty) when the splice was
    rejected as a no-op.
    """

    graph: Graph
    added_node_ids: frozenset[str] = frozenset()
    removed_node_ids: frozenset[str] = frozenset()
    removed_edge_ids: frozenset[str] = frozenset()
    reconnected_edges: tuple[GraphEdge, ...] = ()
    group_id: str | None = None

    @property
    def changed(self) -> bool:
        return bool(self.added_node_ids or self.removed_node_ids or self.removed_edge_ids)


def regenerate_ids(graph: Graph) -> tuple[Graph, IdMap]:
    """Give every node and edge a fresh id, rewriting edge endpoints."""
    id_map = IdMap()
    id_map.mint_all(node.id for node in graph.nodes)
    id_map.mint_all(edge.id for edge in graph.edges)
    nodes = tuple(replace(node, id=id_map[node.id]) for node in graph.nodes)
    edges = tuple(
        replace(edge, id=id_map[edge.id], from_node=id_map[edge.from_node], to_node=id_map[edge.to_node]) for edge in graph.edges
    )
    return Graph(nodes=nodes, edges=edges), id_map


def strip_output_nodes(graph: Graph, output_node_types: Collection[str]) -> Graph:
    """Remove Output anchors and every edge touching them."""
    output_ids = {node.id for node in graph.nodes if node.type in output_node_types}
    if not output_ids:
        return graph
    return Graph(
        nodes=tuple(node for node in graph.nodes if node.id not in output_ids),
        edges=tuple(edge for edge in graph.edges if not edge.touches(output_ids)),
    )


def translate_graph(graph: Graph, dx: float, dy: float) -> Graph:
    if dx == 0 and dy == 0:
        return graph
    return graph.with_nodes(replace(node, position=node.position.translate(dx, dy)) for node in graph.nodes)


def tag_group(graph: Graph, group_id: str) -> Graph:
    return graph.with_nodes(replace(node, group_id=group_id) for node in graph.nodes)


def prepare_incoming(incoming: Graph, anchor: Position, settings: EditorSettings = DEFAULT_SETTINGS) -> PreparedGraph:
    """Remap, strip, translate, group, and expand an incoming graph.

    The anchor is where the incoming fragment producer should land (the
    vertex producer, or the first node, when there is no fragment output).

    Raises:
        SpliceError: If nothing is left once Output nodes are stripped
    """
    remapped, id_map = regenerate_ids(incoming)
    output_types = settings.graph.output_node_types
    producer_edges = find_output_producers(remapped, output_types)
    content = strip_output_nodes(remapped, output_types)
    if not content.nodes:
        raise SpliceError("Incoming graph has no nodes besides its Output nodes")

    by_id = content.nodes_by_id()
    producers: dict[ShaderStage, Producer] = {}
    for stage, edge in producer_edges.items():
        node = by_id.get(edge.from_node)
        if node is None:
            logger.warning("splice_producer_missing", stage=stage, node_id=edge.from_node, edge_id=edge.id)
            continue
        producers[stage] = Producer(node=node, output=edge.output)

    anchor_producer = producers.get(ShaderStage.FRAGMENT) or producers.get(ShaderStage.VERTEX)
    anchor_node = anchor_producer.node if anchor_producer is not None else content.nodes[0]
    dx, dy = anchor_node.position.delta_to(anchor)

    group_id = make_id()
    prepared = expand_uniform_data_nodes(tag_group(translate_graph(content, dx, dy), group_id), settings.uniforms)

    # Producers must point at the translated, grouped node objects
    final_by_id = prepared.nodes_by_id()
    producers = {stage: Producer(node=final_by_id[p.node.id], output=p.output) for stage, p in producers.items()}
    return PreparedGraph(graph=prepared, group_id=group_id, id_map=id_map.as_dict(), producers=producers)


def _outbound_data_edge(graph: Graph, node: GraphNode | None) -> GraphEdge | None:
    if node is None:
        return None
    for edge in graph.edges:
        if edge.from_node == node.id and not edge.is_link:
            return edge
    return None


def replace_node_with_graph(
    graph: Graph,
    node_id: str,
    incoming: Graph,
    settings: EditorSettings = DEFAULT_SETTINGS,
) -> SpliceResult:
    """Swap a node (and whatever exists only to feed it) for an incoming graph.

    Replacing an Output node, or a node that does not exist, is logged and
    returns the graph unchanged.

    Raises:
        SpliceError: If the incoming graph has no content
    """
    target = graph.get_node(node_id)
    if target is None:
        logger.warning("splice_target_missing", node_id=node_id)
        return SpliceResult(graph=graph)
    if target.type in settings.graph.output_node_types:
        logger.warning("splice_target_is_output", node_id=node_id)
        return SpliceResult(graph=graph)

    tree = find_node_and_dependencies(graph, target)
    prepared = prepare_incoming(incoming, target.position, settings)

    outbound = {
        ShaderStage.FRAGMENT: _outbound_data_edge(graph, tree.linked_fragment_node),
        ShaderStage.VERTEX: _outbound_data_edge(graph, tree.linked_vertex_node),
    }

    # Reconnections take the old edge's place in edge order, so a variadic
    # consumer keeps the same input letter after collapsing
    substitutions: dict[str, GraphEdge] = {}
    for stage, old_edge in outbound.items():
        if old_edge is None or old_edge.to_node in tree.nodes_by_id:
            continue
        producer = prepared.producers.get(stage)
        if producer is None:
            logger.warning("splice_no_producer_for_stage", stage=stage, node_id=node_id, downstream_id=old_edge.to_node)
            continue
        substitutions[old_edge.id] = make_edge(
            make_id(), producer.node.id, old_edge.to_node, producer.output, old_edge.input, old_edge.type
        )

    removed_edge_ids = set(tree.edges_by_id) | {edge.id for edge in outbound.values() if edge is not None}
    edges: list[GraphEdge] = []
    for edge in graph.edges:
        if edge.id in substitutions:
            edges.append(substitutions[edge.id])
        elif edge.id not in removed_edge_ids and not edge.touches(tree.nodes_by_id):
            edges.append(edge)
        else:
            removed_edge_ids.add(edge.id)
    edges.extend(prepared.graph.edges)

    nodes = (*(node for node in graph.nodes if node.id not in tree.nodes_by_id), *prepared.graph.nodes)
    result = collapse_variadic_graph_edges(Graph(nodes=nodes, edges=tuple(edges)), settings.graph)

    logger.info(
        "node_replaced",
        node_id=node_id,
        removed_nodes=len(tree.nodes_by_id),
        added_nodes=len(prepared.graph.nodes),
        reconnected=len(substitutions),
        group_id=prepared.group_id,
    )
    return SpliceResult(
        graph=result,
        added_node_ids=frozenset(node.id for node in prepared.graph.nodes),
        removed_node_ids=tree.nodes_by_id,
        removed_edge_ids=frozenset(removed_edge_ids),
        reconnected_edges=tuple(substitutions.values()),
        group_id=prepared.group_id,
    )


def import_graph(
    graph: Graph,
    incoming: Graph,
    position: Position,
    settings: EditorSettings = DEFAULT_SETTINGS,
) -> SpliceResult:
    """Drop an incoming graph onto empty canvas at ``position``.

    Raises:
        SpliceError: If the incoming graph has no content
    """
    prepared = prepare_incoming(incoming, position, settings)
    result = collapse_variadic_graph_edges(
        Graph(nodes=(*graph.nodes, *prepared.graph.nodes), edges=(*graph.edges, *prepared.graph.edges)),
        settings.graph,
    )
    logger.info("graph_imported", added_nodes=len(prepared.graph.nodes), group_id=prepared.group_id)
    return SpliceResult(
        graph=result,
        added_node_ids=frozenset(node.id for node in prepared.graph.nodes),
        group_id=prepared.group_id,
    )

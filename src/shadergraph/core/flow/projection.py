# src/shadergraph/core/flow/projection.py
"""Mapping between the canonical graph and the flow projection.

The canonical graph is the single source of truth. The projection is
regenerated or patched from it through these pure functions; it is never
edited along an independent path that could drift.

Every function returns its input object unchanged when there was nothing
to do, and reuses unchanged nodes and edges, so the renderer can diff by
identity.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Collection, Mapping
from dataclasses import replace
from typing import Any

import structlog

from shadergraph.contracts.enums import MAGIC_OUTPUT_STMTS, ShaderStage
from shadergraph.core.config import DEFAULT_SETTINGS, GraphSettings
from shadergraph.core.flow.models import FlowEdge, FlowElements, FlowNode, FlowNodeData, InputHandle, OutputHandle
from shadergraph.core.graph.arity import collapse_variadic_handles
from shadergraph.core.graph.models import Graph, GraphEdge, GraphNode, Position
from shadergraph.core.graph.nodes import DATA_OUTPUT_ID

logger = structlog.get_logger(__name__)

CODE_CATEGORY = "code"


def to_flow_inputs(node: GraphNode) -> tuple[InputHandle, ...]:
    """Input handles shown for a node; the output-statements filler is hidden."""
    return tuple(
        InputHandle(
            id=node_input.id,
            name=node_input.display_name,
            category=node_input.category,
            data_type=node_input.data_type,
            baked=node_input.baked,
            bakeable=node_input.bakeable,
            accepts=node_input.accepts,
        )
        for node_input in node.inputs
        if node_input.display_name != MAGIC_OUTPUT_STMTS
    )


def _flow_outputs(node: GraphNode) -> tuple[OutputHandle, ...]:
    return tuple(OutputHandle(id=output.id, name=output.name) for output in node.outputs)


def graph_node_to_flow_node(node: GraphNode, position: Position | None = None) -> FlowNode:
    if node.is_source:
        data = FlowNodeData(
            label=node.name,
            is_source=True,
            inputs=to_flow_inputs(node),
            outputs=_flow_outputs(node),
            stage=node.stage,
            bi_stage=node.bi_stage,
        )
    else:
        data = FlowNodeData(
            label=node.name,
            is_source=False,
            inputs=to_flow_inputs(node),
            outputs=_flow_outputs(node),
            type=node.type,
            value=node.value,
            config=node.config,
        )
    return FlowNode(id=node.id, type=node.type, position=position or node.position, data=data)


def graph_edge_to_flow_edge(edge: GraphEdge) -> FlowEdge:
    return FlowEdge(
        id=edge.id,
        source=edge.from_node,
        target=edge.to_node,
        source_handle=edge.output,
        target_handle=edge.input,
        type=edge.type,
        focusable=not edge.is_link,
    )


def flow_edge_to_graph_edge(edge: FlowEdge) -> GraphEdge:
    return GraphEdge(
        id=edge.id,
        from_node=edge.source,
        to_node=edge.target,
        output=edge.source_handle or DATA_OUTPUT_ID,
        input=edge.target_handle,
        type=edge.type,
    )


def find_input_stage(
    nodes_by_id: Mapping[str, FlowNode],
    edges_by_target: Mapping[str, list[FlowEdge]],
    node: FlowNode,
    _seen: set[str] | None = None,
) -> ShaderStage | None:
    """Stage of a node, found by walking back through its inputs.

    A fixed-stage source node answers for itself. Otherwise the first
    inbound edge typed with a stage, or the first feeder with a resolvable
    stage, decides.
    """
    data = node.data
    if data.is_source and not data.bi_stage and data.stage:
        return data.stage
    seen = _seen if _seen is not None else set()
    if node.id in seen:
        return None
    seen.add(node.id)
    for edge in edges_by_target.get(node.id, []):
        if edge.type in (ShaderStage.FRAGMENT, ShaderStage.VERTEX):
            return ShaderStage(edge.type)
        feeder = nodes_by_id.get(edge.source)
        if feeder is None:
            continue
        stage = find_input_stage(nodes_by_id, edges_by_target, feeder, seen)
        if stage is not None:
            return stage
    return None


def set_flow_node_stages(flow: FlowElements) -> FlowElements:
    """Resolve the stage of bi-stage (and unstaged) source nodes from their inputs.

    Edges leaving a restaged node carry its stage.
    """
    edges_by_target: defaultdict[str, list[FlowEdge]] = defaultdict(list)
    for edge in flow.edges:
        if not edge.is_link:
            edges_by_target[edge.target].append(edge)
    nodes_by_id = flow.nodes_by_id()

    restaged: dict[str, ShaderStage | None] = {}
    nodes: list[FlowNode] = []
    for node in flow.nodes:
        data = node.data
        if not data.is_source or (not data.bi_stage and data.stage):
            nodes.append(node)
            continue
        stage = find_input_stage(nodes_by_id, edges_by_target, node)
        restaged[node.id] = stage
        nodes.append(node if stage == data.stage else replace(node, data=replace(data, stage=stage)))

    edges = [
        replace(edge, stage=restaged[edge.source]) if edge.source in restaged and edge.stage != restaged[edge.source] else edge
        for edge in flow.edges
    ]
    if all(a is b for a, b in zip(nodes, flow.nodes, strict=True)) and all(a is b for a, b in zip(edges, flow.edges, strict=True)):
        return flow
    return FlowElements(nodes=tuple(nodes), edges=tuple(edges))


def collapse_variadic_flow_edges(flow: FlowElements, settings: GraphSettings = DEFAULT_SETTINGS.graph) -> FlowElements:
    """Same collapsing pass as the canonical graph, over ``target_handle``."""
    variadic_ids = {node.id for node in flow.nodes if node.type in settings.variadic_node_types}
    if not variadic_ids:
        return flow
    edges = collapse_variadic_handles(
        flow.edges,
        is_variadic_target=variadic_ids.__contains__,
        target_of=lambda edge: edge.target,
        handle_of=lambda edge: edge.target_handle,
        with_handle=lambda edge, handle: replace(edge, target_handle=handle),
        is_link=lambda edge: edge.is_link,
        alphabet=settings.handle_alphabet,
    )
    if all(new is old for new, old in zip(edges, flow.edges, strict=True)):
        return flow
    return flow.with_edges(edges)


def mark_inputs_connected(flow: FlowElements) -> FlowElements:
    """Flag every handle that has an edge attached."""
    attached: set[tuple[str, str]] = set()
    for edge in flow.edges:
        attached.add((edge.source, edge.source_handle))
        attached.add((edge.target, edge.target_handle))

    changed = False
    nodes: list[FlowNode] = []
    for node in flow.nodes:
        inputs = tuple(
            h if h.connected == ((node.id, h.id) in attached) else replace(h, connected=not h.connected) for h in node.data.inputs
        )
        outputs = tuple(
            h if h.connected == ((node.id, h.id) in attached) else replace(h, connected=not h.connected) for h in node.data.outputs
        )
        if inputs == node.data.inputs and outputs == node.data.outputs:
            nodes.append(node)
        else:
            changed = True
            nodes.append(replace(node, data=replace(node.data, inputs=inputs, outputs=outputs)))
    return flow.with_nodes(nodes) if changed else flow


def graph_to_flow_graph(graph: Graph) -> FlowElements:
    """Project the whole canonical graph from scratch."""
    flow = FlowElements(
        nodes=tuple(graph_node_to_flow_node(node) for node in graph.nodes),
        edges=tuple(graph_edge_to_flow_edge(edge) for edge in graph.edges),
    )
    return mark_inputs_connected(set_flow_node_stages(flow))


def sync_flow_elements(flow: FlowElements, previous_graph: Graph, graph: Graph) -> FlowElements:
    """Re-project only what changed between two canonical graphs.

    A canonical node or edge that is the same object in both graphs keeps
    its existing flow counterpart, along with any UI state on it (dragged
    position, selection, compile flags). Everything else is projected anew;
    a changed node that was already projected keeps its selection, active
    flag and category. Order follows the new canonical graph.
    """
    previous_nodes = {node.id: node for node in previous_graph.nodes}
    previous_edges = {edge.id: edge for edge in previous_graph.edges}
    flow_nodes = flow.nodes_by_id()
    flow_edges = {edge.id: edge for edge in flow.edges}

    nodes: list[FlowNode] = []
    for node in graph.nodes:
        existing = flow_nodes.get(node.id)
        if existing is not None and previous_nodes.get(node.id) is node:
            nodes.append(existing)
            continue
        projected = graph_node_to_flow_node(node)
        if existing is not None:
            projected = replace(
                projected,
                selected=existing.selected,
                data=replace(projected.data, active=existing.data.active, category=existing.data.category),
            )
        nodes.append(projected)
    edges = tuple(
        flow_edges[edge.id] if previous_edges.get(edge.id) is edge and edge.id in flow_edges else graph_edge_to_flow_edge(edge)
        for edge in graph.edges
    )
    return mark_inputs_connected(set_flow_node_stages(FlowElements(nodes=tuple(nodes), edges=edges)))


def add_flow_edge(flow: FlowElements, new_edge: FlowEdge, settings: GraphSettings = DEFAULT_SETTINGS.graph) -> FlowElements:
    """Projection counterpart of canonical ``add_edge``."""
    kept = [
        edge
        for edge in flow.edges
        if edge.is_link != new_edge.is_link
        or not (
            (edge.target == new_edge.target and edge.target_handle == new_edge.target_handle)
            or (edge.source == new_edge.source and edge.source_handle == new_edge.source_handle)
        )
    ]
    kept.append(new_edge)
    return collapse_variadic_flow_edges(set_flow_node_stages(flow.with_edges(kept)), settings)


def remove_flow_edges(flow: FlowElements, edge_ids: Collection[str], settings: GraphSettings = DEFAULT_SETTINGS.graph) -> FlowElements:
    if not edge_ids:
        return flow
    pruned = flow.with_edges(edge for edge in flow.edges if edge.id not in edge_ids)
    return collapse_variadic_flow_edges(set_flow_node_stages(pruned), settings)


def remove_flow_nodes(flow: FlowElements, node_ids: Collection[str], settings: GraphSettings = DEFAULT_SETTINGS.graph) -> FlowElements:
    if not node_ids:
        return flow
    pruned = FlowElements(
        nodes=tuple(node for node in flow.nodes if node.id not in node_ids),
        edges=tuple(edge for edge in flow.edges if edge.source not in node_ids and edge.target not in node_ids),
    )
    return collapse_variadic_flow_edges(set_flow_node_stages(pruned), settings)


def update_flow_node_data(flow: FlowElements, node_id: str, **changes: Any) -> FlowElements:
    if flow.get_node(node_id) is None:
        logger.warning("flow_node_missing", node_id=node_id, fields=sorted(changes))
        return flow
    return flow.with_nodes(replace(node, data=replace(node.data, **changes)) if node.id == node_id else node for node in flow.nodes)


def update_flow_node_config(flow: FlowElements, node_id: str, config: Mapping[str, Any]) -> FlowElements:
    """Merge config keys into a data node's displayed config."""
    node = flow.get_node(node_id)
    if node is None:
        logger.warning("flow_node_missing", node_id=node_id, fields=["config"])
        return flow
    return update_flow_node_data(flow, node_id, config={**node.data.config, **config})


def update_flow_node_input(flow: FlowElements, node_id: str, input_id: str, **changes: Any) -> FlowElements:
    node = flow.get_node(node_id)
    if node is None:
        logger.warning("flow_node_missing", node_id=node_id, input_id=input_id)
        return flow
    inputs = tuple(replace(h, **changes) if h.id == input_id else h for h in node.data.inputs)
    return update_flow_node_data(flow, node_id, inputs=inputs)


def set_flow_node_categories(flow: FlowElements, data_node_ids: Collection[str]) -> FlowElements:
    """Categorise nodes the compiler reported as data nodes as "code"."""
    if not any(node.id in data_node_ids for node in flow.nodes):
        return flow
    return flow.with_nodes(
        replace(node, data=replace(node.data, category=CODE_CATEGORY))
        if node.id in data_node_ids and node.data.category != CODE_CATEGORY
        else node
        for node in flow.nodes
    )


def apply_compile_result(
    flow: FlowElements,
    graph: Graph,
    active_node_ids: Collection[str],
    data_node_ids: Collection[str],
) -> FlowElements:
    """Refresh inputs, active flags and categories after a successful compile.

    Inputs come from the compiled canonical nodes; flow nodes with no
    canonical counterpart keep their inputs.
    """
    by_id = graph.nodes_by_id()
    nodes: list[FlowNode] = []
    for node in flow.nodes:
        canonical = by_id.get(node.id)
        inputs = to_flow_inputs(canonical) if canonical is not None else node.data.inputs
        active = node.id in active_node_ids
        if inputs == node.data.inputs and active == node.data.active:
            nodes.append(node)
        else:
            nodes.append(replace(node, data=replace(node.data, inputs=inputs, active=active)))
    return set_flow_node_categories(mark_inputs_connected(flow.with_nodes(nodes)), data_node_ids)


def update_graph_from_flow_graph(graph: Graph, flow: FlowElements) -> Graph:
    """Copy dragged flow positions back onto canonical nodes."""
    positions = {node.id: node.position for node in flow.nodes}
    changed = False
    nodes: list[GraphNode] = []
    for node in graph.nodes:
        position = positions.get(node.id)
        if position is None or position == node.position:
            nodes.append(node)
        else:
            changed = True
            nodes.append(replace(node, position=position))
    return graph.with_nodes(nodes) if changed else graph

"""Flow projection: the positioned, UI-facing mirror of the canonical graph."""

from shadergraph.core.flow.models import (
    EMPTY_FLOW,
    FlowEdge,
    FlowElements,
    FlowNode,
    FlowNodeData,
    InputHandle,
    OutputHandle,
)
from shadergraph.core.flow.projection import (
    CODE_CATEGORY,
    add_flow_edge,
    apply_compile_result,
    collapse_variadic_flow_edges,
    find_input_stage,
    flow_edge_to_graph_edge,
    graph_edge_to_flow_edge,
    graph_node_to_flow_node,
    graph_to_flow_graph,
    mark_inputs_connected,
    remove_flow_edges,
    remove_flow_nodes,
    set_flow_node_categories,
    set_flow_node_stages,
    sync_flow_elements,
    to_flow_inputs,
    update_flow_node_config,
    update_flow_node_data,
    update_flow_node_input,
    update_graph_from_flow_graph,
)

__all__ = [
    "CODE_CATEGORY",
    "EMPTY_FLOW",
    "FlowEdge",
    "FlowElements",
    "FlowNode",
    "FlowNodeData",
    "InputHandle",
    "OutputHandle",
    "add_flow_edge",
    "apply_compile_result",
    "collapse_variadic_flow_edges",
    "find_input_stage",
    "flow_edge_to_graph_edge",
    "graph_edge_to_flow_edge",
    "graph_node_to_flow_node",
    "graph_to_flow_graph",
    "mark_inputs_connected",
    "remove_flow_edges",
    "remove_flow_nodes",
    "set_flow_node_categories",
    "set_flow_node_stages",
    "sync_flow_elements",
    "to_flow_inputs",
    "update_flow_node_config",
    "update_flow_node_data",
    "update_flow_node_input",
    "update_graph_from_flow_graph",
]

"""Canonical shader graph: model, structural edits, and analysis.

Every operation in this package is a pure function over frozen values.
"""

from shadergraph.core.graph.arity import collapse_variadic_graph_edges, collapse_variadic_handles
from shadergraph.core.graph.factory import PendingEdge, create_graph_node
from shadergraph.core.graph.integrity import (
    FixResult,
    GraphIssue,
    IntegrityReport,
    attempt_fix,
    check_integrity,
    find_dangling_edges,
    validate_graph,
)
from shadergraph.core.graph.models import EMPTY_GRAPH, Graph, GraphEdge, GraphNode, NodeInput, NodeOutput, Position
from shadergraph.core.graph.mutations import (
    add_edge,
    add_elements,
    find_link_edge,
    find_linked_node,
    find_output_producers,
    remove_edges,
    remove_nodes,
    update_node,
    update_node_input,
)
from shadergraph.core.graph.serialization import dump_graph, graph_from_dict, graph_to_dict, load_graph
from shadergraph.core.graph.splice import SpliceResult, import_graph, replace_node_with_graph
from shadergraph.core.graph.traversal import (
    NodeClosure,
    Predicates,
    SearchResult,
    filter_graph_from_node,
    find_node_and_dependencies,
    find_node_tree,
)
from shadergraph.core.graph.uniforms import expand_uniform_data_nodes, uniform_input_id

__all__ = [
    "EMPTY_GRAPH",
    "FixResult",
    "Graph",
    "GraphEdge",
    "GraphIssue",
    "GraphNode",
    "IntegrityReport",
    "NodeClosure",
    "NodeInput",
    "NodeOutput",
    "PendingEdge",
    "Position",
    "Predicates",
    "SearchResult",
    "SpliceResult",
    "add_edge",
    "add_elements",
    "attempt_fix",
    "check_integrity",
    "collapse_variadic_graph_edges",
    "collapse_variadic_handles",
    "create_graph_node",
    "dump_graph",
    "expand_uniform_data_nodes",
    "filter_graph_from_node",
    "find_dangling_edges",
    "find_link_edge",
    "find_linked_node",
    "find_node_and_dependencies",
    "find_node_tree",
    "find_output_producers",
    "graph_from_dict",
    "graph_to_dict",
    "import_graph",
    "load_graph",
    "remove_edges",
    "remove_nodes",
    "replace_node_with_graph",
    "update_node",
    "update_node_input",
    "uniform_input_id",
    "validate_graph",
]

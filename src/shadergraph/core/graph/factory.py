# src/shadergraph/core/graph/factory.py
"""Node factory for the editor's "add node" actions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from shadergraph.contracts.enums import ShaderStage
from shadergraph.contracts.errors import GraphError
from shadergraph.core.config import DEFAULT_SETTINGS, EditorSettings
from shadergraph.core.graph.models import Graph, GraphEdge, GraphNode, Position
from shadergraph.core.graph.nodes import (
    DATA_OUTPUT_ID,
    add_node,
    array_node,
    color_node,
    link_from_vert_to_frag,
    make_edge,
    multiply_node,
    number_node,
    sampler_cube_node,
    source_node,
    texture_node,
    vector_node,
)
from shadergraph.core.graph.uniforms import expand_uniform_data_nodes
from shadergraph.core.identifiers import make_id

DEFAULT_FRAGMENT_SOURCE = """void main() {
  gl_FragColor = vec4(0.0, 1.0, 0.0, 1.0);
}"""

DEFAULT_VERTEX_SOURCE = """void main() {
  gl_Position = vec4(1.0);
}"""


@dataclass(frozen=True, slots=True)
class PendingEdge:
    """An edge the new node should feed, minus the end that doesn't exist yet.

    Created when the user drags a connection out of an input and drops it
    on empty canvas.
    """

    to_node: str
    input: str
    output: str = DATA_OUTPUT_ID
    type: str | None = None


def _default_source_config(stage: ShaderStage) -> dict[str, Any]:
    strategies = ["uniform", "texture2D"] if stage == ShaderStage.FRAGMENT else ["uniform"]
    return {"version": 2, "preprocess": True, "strategies": strategies, "uniforms": []}


def _value_or(default_value: Any, fallback: Any) -> Any:
    return fallback if default_value is None else default_value


def create_graph_node(
    node_type: str,
    name: str,
    position: Position,
    new_edge: PendingEdge | None = None,
    default_value: Any = None,
    *,
    settings: EditorSettings = DEFAULT_SETTINGS,
) -> tuple[frozenset[str], Graph]:
    """Build the node(s) for one "add node" action.

    Args:
        node_type: Data type ("number", "vector3", "rgb", ...), operator
            ("add", "multiply"), or stage ("fragment", "vertex",
            "fragmentandvertex")
        name: Display name; empty means "use the type"
        position: Where to place the node
        new_edge: Optional connection from the new node to an existing input
        default_value: Initial value for data nodes
        settings: Uniform layout and multi-node placement

    Returns:
        (ids of the originally created nodes, graph of everything created
        including expanded uniform nodes)

    Raises:
        GraphError: If node_type is unknown
    """
    node_id = make_id()
    label = name or node_type
    nodes: list[GraphNode]
    edges: list[GraphEdge] = []

    match node_type:
        case "number":
            nodes = [number_node(node_id, label, position, _value_or(default_value, "1"))]
        case "texture":
            nodes = [texture_node(node_id, label, position, default_value or "grayscale-noise")]
        case "samplerCube":
            nodes = [sampler_cube_node(node_id, label, position, default_value or "warehouseEnvTexture")]
        case "vector2":
            nodes = [vector_node(node_id, name or "vec2", position, default_value or ["1", "1"])]
        case "vector3":
            nodes = [vector_node(node_id, name or "vec3", position, default_value or ["1", "1", "1"])]
        case "vector4":
            nodes = [vector_node(node_id, name or "vec4", position, default_value or ["1", "1", "1", "1"])]
        case "array":
            nodes = [array_node(node_id, label, position, default_value or ["1", "1"])]
        case "rgb":
            nodes = [color_node(node_id, label, position, default_value or ["1", "1", "1"])]
        case "rgba":
            nodes = [color_node(node_id, label, position, default_value or ["1", "1", "1", "1"])]
        case "add":
            nodes = [add_node(node_id, position)]
        case "multiply":
            nodes = [multiply_node(node_id, position)]
        case "fragment" | "vertex":
            stage = ShaderStage(node_type)
            source = DEFAULT_FRAGMENT_SOURCE if stage == ShaderStage.FRAGMENT else DEFAULT_VERTEX_SOURCE
            nodes = [source_node(node_id, f"Source Code {node_id}", position, _default_source_config(stage), source, stage)]
        case "fragmentandvertex":
            fragment = source_node(
                node_id,
                f"Source Code {node_id}",
                position,
                _default_source_config(ShaderStage.FRAGMENT),
                DEFAULT_FRAGMENT_SOURCE,
                ShaderStage.FRAGMENT,
            )
            vertex = source_node(
                make_id(),
                f"Source Code {node_id}",
                position.translate(settings.placement.stagger_x, settings.placement.stagger_y),
                _default_source_config(ShaderStage.VERTEX),
                DEFAULT_VERTEX_SOURCE,
                ShaderStage.VERTEX,
            )
            nodes = [fragment, vertex]
            edges.append(link_from_vert_to_frag(make_id(), vertex.id, fragment.id))
        case _:
            raise GraphError(f'Could not create node: Unknown node type "{node_type}"')

    if new_edge is not None:
        edges.append(make_edge(make_id(), node_id, new_edge.to_node, new_edge.output, new_edge.input, new_edge.type))

    original_ids = frozenset(node.id for node in nodes)
    return original_ids, expand_uniform_data_nodes(Graph(nodes=tuple(nodes), edges=tuple(edges)), settings.uniforms)
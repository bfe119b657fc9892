# src/shadergraph/core/graph/nodes.py
"""Node and edge constructors.

Engine-specific material nodes (physical, phong, toon) come from engine
plugins; everything the editor itself creates is built here.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from types import MappingProxyType
from typing import Any

from shadergraph.contracts.enums import DataType, EdgeLink, NodeType, ShaderStage
from shadergraph.core.graph.models import GraphEdge, GraphNode, NodeInput, NodeOutput, Position

DATA_OUTPUT_ID = "out"
SOURCE_OUTPUT_ID = "out"
OUTPUT_COLOR_INPUT = "color"
OUTPUT_POSITION_INPUT = "position"

_VECTOR_TYPES = {2: NodeType.VECTOR2, 3: NodeType.VECTOR3, 4: NodeType.VECTOR4}
_COLOR_TYPES = {3: NodeType.RGB, 4: NodeType.RGBA}


def _frozen(config: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(config or {}))


def _data_node(
    node_id: str,
    name: str,
    position: Position,
    node_type: str,
    value: Any,
    config: Mapping[str, Any] | None = None,
) -> GraphNode:
    return GraphNode(
        id=node_id,
        name=name,
        type=node_type,
        position=position,
        outputs=(NodeOutput(DATA_OUTPUT_ID, DATA_OUTPUT_ID, node_type),),
        value=value,
        config=_frozen(config),
    )


def number_node(
    node_id: str,
    name: str,
    position: Position,
    value: str,
    *,
    value_range: tuple[float, float] | None = None,
    stepper: float | None = None,
) -> GraphNode:
    config: dict[str, Any] = {}
    if value_range is not None:
        config["range"] = tuple(value_range)
    if stepper is not None:
        config["stepper"] = stepper
    return _data_node(node_id, name, position, NodeType.NUMBER, value, config)


def vector_node(node_id: str, name: str, position: Position, value: Sequence[str]) -> GraphNode:
    """Vector constant; the type (vector2/3/4) follows the component count."""
    try:
        node_type = _VECTOR_TYPES[len(value)]
    except KeyError:
        raise ValueError(f"Vector node '{name}' needs 2-4 components, got {len(value)}") from None
    return _data_node(node_id, name, position, node_type, tuple(value))


def color_node(node_id: str, name: str, position: Position, value: Sequence[str]) -> GraphNode:
    """Color constant; 3 components make rgb, 4 make rgba."""
    try:
        node_type = _COLOR_TYPES[len(value)]
    except KeyError:
        raise ValueError(f"Color node '{name}' needs 3 or 4 components, got {len(value)}") from None
    return _data_node(node_id, name, position, node_type, tuple(value))


def texture_node(node_id: str, name: str, position: Position, value: str) -> GraphNode:
    return _data_node(node_id, name, position, NodeType.TEXTURE, value)


def sampler_cube_node(node_id: str, name: str, position: Position, value: str) -> GraphNode:
    return _data_node(node_id, name, position, NodeType.SAMPLER_CUBE, value)


def array_node(node_id: str, name: str, position: Position, value: Sequence[str]) -> GraphNode:
    return _data_node(node_id, name, position, NodeType.ARRAY, tuple(value))


def binary_node(node_id: str, name: str, position: Position, operator: str) -> GraphNode:
    """Variadic operator node.

    Starts with two lettered inputs. The compiler rewrites inputs to match
    however many edges end up connected.
    """
    return GraphNode(
        id=node_id,
        name=name,
        type=NodeType.BINARY,
        position=position,
        inputs=(
            NodeInput("a", "a", category="filler", bakeable=False),
            NodeInput("b", "b", category="filler", bakeable=False),
        ),
        outputs=(NodeOutput(SOURCE_OUTPUT_ID, SOURCE_OUTPUT_ID),),
        bi_stage=True,
        config=_frozen({"operator": operator}),
    )


def add_node(node_id: str, position: Position) -> GraphNode:
    return binary_node(node_id, "add", position, "+")


def multiply_node(node_id: str, position: Position) -> GraphNode:
    return binary_node(node_id, "multiply", position, "*")


def source_node(
    node_id: str,
    name: str,
    position: Position,
    config: Mapping[str, Any],
    source: str,
    stage: ShaderStage | None,
    *,
    engine: bool = False,
) -> GraphNode:
    return GraphNode(
        id=node_id,
        name=name,
        type=NodeType.SOURCE,
        position=position,
        outputs=(NodeOutput(SOURCE_OUTPUT_ID, SOURCE_OUTPUT_ID),),
        stage=stage,
        engine=engine,
        source=source,
        config=_frozen(config),
    )


def output_node(node_id: str, name: str, position: Position, stage: ShaderStage) -> GraphNode:
    """The Output anchor for one stage; the graph's contract with the compiler."""
    if stage == ShaderStage.FRAGMENT:
        inputs = (NodeInput(OUTPUT_COLOR_INPUT, "color", category="filler", data_type=DataType.VECTOR4),)
    else:
        inputs = (NodeInput(OUTPUT_POSITION_INPUT, "position", category="filler", data_type=DataType.VECTOR4),)
    return GraphNode(
        id=node_id,
        name=name,
        type=NodeType.OUTPUT,
        position=position,
        inputs=inputs,
        stage=stage,
        source="",
    )


def make_edge(
    edge_id: str,
    from_node: str,
    to_node: str,
    output: str,
    input: str,
    type: str | None = None,
) -> GraphEdge:
    return GraphEdge(id=edge_id, from_node=from_node, to_node=to_node, output=output, input=input, type=type)


def link_from_vert_to_frag(edge_id: str, vertex_id: str, fragment_id: str) -> GraphEdge:
    """The structural link pairing a vertex node with its fragment node."""
    return make_edge(edge_id, vertex_id, fragment_id, EdgeLink.NEXT_STAGE, EdgeLink.NEXT_STAGE, EdgeLink.NEXT_STAGE)

# src/shadergraph/core/graph/uniforms.py
"""Uniform expansion: turn declared uniforms into standalone data nodes.

A node whose ``config["uniforms"]`` lists ``{name, type, value, ...}``
entries gets one data node per uniform, placed to the left of and
staggered below the parent, plus one edge from the data node's output to
the parent's ``uniform_<name>`` input.

Expansion is idempotent: a uniform whose ``uniform_<name>`` input already
has an inbound edge is skipped, so expanding an already expanded graph (a
reload, a re-splice) adds nothing.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, Literal

import structlog
from pydantic import BaseModel, ConfigDict, ValidationError

from shadergraph.core.config import DEFAULT_SETTINGS, UniformLayoutSettings
from shadergraph.core.graph.models import Graph, GraphEdge, GraphNode, Position
from shadergraph.core.graph.nodes import (
    DATA_OUTPUT_ID,
    color_node,
    make_edge,
    number_node,
    sampler_cube_node,
    texture_node,
    vector_node,
)
from shadergraph.core.identifiers import make_id

logger = structlog.get_logger(__name__)

UNIFORM_INPUT_PREFIX = "uniform_"

UniformType = Literal["number", "vector2", "vector3", "vector4", "rgb", "color", "rgba", "texture", "samplerCube"]


class UniformDeclaration(BaseModel):
    """One entry of a node's ``config["uniforms"]`` list.

    Declarations come from stored or imported shaders, so they are
    validated before anything is built from them. Unknown extra keys are
    kept for the compiler.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    name: str
    type: UniformType
    value: Any = None
    range: tuple[float, float] | None = None
    stepper: float | None = None


def uniform_input_id(name: str) -> str:
    """Input handle on the parent node that a uniform's data node feeds."""
    return f"{UNIFORM_INPUT_PREFIX}{name}"


def _number(uniform: UniformDeclaration, node_id: str, position: Position) -> GraphNode:
    return number_node(
        node_id,
        uniform.name,
        position,
        uniform.value,
        value_range=uniform.range,
        stepper=uniform.stepper,
    )


def _vector(uniform: UniformDeclaration, node_id: str, position: Position) -> GraphNode:
    return vector_node(node_id, uniform.name, position, uniform.value)


def _color(uniform: UniformDeclaration, node_id: str, position: Position) -> GraphNode:
    return color_node(node_id, uniform.name, position, uniform.value)


def _texture(uniform: UniformDeclaration, node_id: str, position: Position) -> GraphNode:
    return texture_node(node_id, uniform.name, position, uniform.value)


def _sampler_cube(uniform: UniformDeclaration, node_id: str, position: Position) -> GraphNode:
    return sampler_cube_node(node_id, uniform.name, position, uniform.value)


_CONSTRUCTORS: dict[str, Callable[[UniformDeclaration, str, Position], GraphNode]] = {
    "number": _number,
    "vector2": _vector,
    "vector3": _vector,
    "vector4": _vector,
    "rgb": _color,
    "color": _color,
    "rgba": _color,
    "texture": _texture,
    "samplerCube": _sampler_cube,
}


def parse_uniforms(node: GraphNode) -> list[UniformDeclaration]:
    """Validated uniform declarations of a node; invalid entries are skipped."""
    raw = node.config.get("uniforms")
    if not raw:
        return []
    declarations: list[UniformDeclaration] = []
    for index, entry in enumerate(raw):
        try:
            declarations.append(UniformDeclaration.model_validate(dict(entry) if isinstance(entry, Mapping) else entry))
        except ValidationError as e:
            logger.warning(
                "uniform_declaration_invalid",
                node_id=node.id,
                index=index,
                errors=e.errors(include_url=False),
            )
    return declarations


def expand_node_uniforms(
    node: GraphNode,
    existing_edges: tuple[GraphEdge, ...] = (),
    layout: UniformLayoutSettings = DEFAULT_SETTINGS.uniforms,
) -> tuple[list[GraphNode], list[GraphEdge]]:
    """Data nodes and edges for one node's uniforms.

    The n-th declaration (in config order, counting skipped ones) is placed
    at the parent position offset by the layout settings, so positions stay
    stable regardless of which uniforms were already connected.
    """
    connected = {edge.input for edge in existing_edges if edge.to_node == node.id}
    new_nodes: list[GraphNode] = []
    new_edges: list[GraphEdge] = []
    for index, uniform in enumerate(parse_uniforms(node)):
        input_id = uniform_input_id(uniform.name)
        if input_id in connected:
            continue
        position = Position(
            node.position.x + layout.offset_x,
            node.position.y + layout.offset_y + index * layout.stagger_y,
        )
        try:
            data_node = _CONSTRUCTORS[uniform.type](uniform, make_id(), position)
        except (ValueError, TypeError) as e:
            logger.warning("uniform_expansion_failed", node_id=node.id, uniform=uniform.name, uniform_type=uniform.type, error=str(e))
            continue
        new_nodes.append(data_node)
        new_edges.append(make_edge(make_id(), data_node.id, node.id, DATA_OUTPUT_ID, input_id, uniform.type))
        connected.add(input_id)
    return new_nodes, new_edges


def expand_uniform_data_nodes(graph: Graph, layout: UniformLayoutSettings = DEFAULT_SETTINGS.uniforms) -> Graph:
    """Expand the uniforms of every node in the graph.

    Used for freshly created nodes, graphs loaded from storage, and graphs
    spliced in. Returns the same Graph object when nothing was expanded.
    """
    added_nodes: list[GraphNode] = []
    added_edges: list[GraphEdge] = []
    for node in graph.nodes:
        if "uniforms" not in node.config:
            continue
        new_nodes, new_edges = expand_node_uniforms(node, graph.edges, layout)
        added_nodes.extend(new_nodes)
        added_edges.extend(new_edges)

    if not added_nodes:
        return graph
    logger.debug("uniforms_expanded", node_count=len(added_nodes))
    return Graph(nodes=(*graph.nodes, *added_nodes), edges=(*graph.edges, *added_edges))

"""Node types, shader stages, and edge kinds used across the graph.

Node "kind" matters more than node type for most algorithms:

- source kind: nodes holding shader code (including the Output anchor and
  binary operators, which the compiler also turns into code)
- data kind: constant leaves (numbers, vectors, colors, textures) whose
  values are bound as uniforms and never require a recompile
"""

from enum import StrEnum


class ShaderStage(StrEnum):
    """Pipeline stage a source node belongs to."""

    VERTEX = "vertex"
    FRAGMENT = "fragment"


class EdgeLink(StrEnum):
    """Edge types that are structural links rather than data flow.

    NEXT_STAGE joins a vertex node to its paired fragment node. It does not
    count toward single-writer or single-consumer handle rules.
    """

    NEXT_STAGE = "next_stage"


class NodeType(StrEnum):
    """Type of node in the shader graph."""

    # Source kind
    SOURCE = "source"
    OUTPUT = "output"
    BINARY = "binary"
    SHADER = "shader"
    PHYSICAL = "physical"
    PHONG = "phong"
    TOON = "toon"

    # Data kind
    NUMBER = "number"
    TEXTURE = "texture"
    SAMPLER_CUBE = "samplerCube"
    ARRAY = "array"
    VECTOR2 = "vector2"
    VECTOR3 = "vector3"
    VECTOR4 = "vector4"
    RGB = "rgb"
    RGBA = "rgba"
    MAT2 = "mat2"
    MAT3 = "mat3"
    MAT4 = "mat4"


class DataType(StrEnum):
    """GLSL-facing data types carried on handles and uniform declarations."""

    NUMBER = "number"
    TEXTURE = "texture"
    SAMPLER_CUBE = "samplerCube"
    ARRAY = "array"
    VECTOR2 = "vector2"
    VECTOR3 = "vector3"
    VECTOR4 = "vector4"
    RGB = "rgb"
    RGBA = "rgba"
    MAT2 = "mat2"
    MAT3 = "mat3"
    MAT4 = "mat4"


SOURCE_NODE_TYPES: frozenset[str] = frozenset(
    {
        NodeType.SOURCE,
        NodeType.OUTPUT,
        NodeType.BINARY,
        NodeType.SHADER,
        NodeType.PHYSICAL,
        NodeType.PHONG,
        NodeType.TOON,
    }
)

DATA_NODE_TYPES: frozenset[str] = frozenset(
    {
        NodeType.NUMBER,
        NodeType.TEXTURE,
        NodeType.SAMPLER_CUBE,
        NodeType.ARRAY,
        NodeType.VECTOR2,
        NodeType.VECTOR3,
        NodeType.VECTOR4,
        NodeType.RGB,
        NodeType.RGBA,
        NodeType.MAT2,
        NodeType.MAT3,
        NodeType.MAT4,
    }
)

# Display name of the synthetic input the compiler adds for a node's trailing
# output statements. Never shown in the projection.
MAGIC_OUTPUT_STMTS = "return statements"


def is_source_node_type(node_type: str) -> bool:
    """Whether nodes of this type hold shader code."""
    return node_type in SOURCE_NODE_TYPES


def is_data_node_type(node_type: str) -> bool:
    """Whether nodes of this type are constant data leaves."""
    return node_type in DATA_NODE_TYPES

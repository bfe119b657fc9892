# tests/conftest.py
"""Shared test fixtures and graph builders.

Builders here create small canonical graphs with readable, fixed ids so
assertions can name nodes and edges directly.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/
"""

from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from dataclasses import replace
from typing import Any

import pytest
from hypothesis import Phase, Verbosity, settings

from shadergraph.contracts.enums import ShaderStage
from shadergraph.core.graph.models import Graph, GraphEdge, GraphNode, NodeInput, Position
from shadergraph.core.graph.nodes import (
    add_node,
    link_from_vert_to_frag,
    make_edge,
    number_node,
    output_node,
    source_node,
)

# =============================================================================
# Graph builders
# =============================================================================

ORIGIN = Position(0, 0)


def data(node_id: str, value: str = "1", position: Position = ORIGIN) -> GraphNode:
    return number_node(node_id, node_id, position, value)


def binary(node_id: str, position: Position = ORIGIN) -> GraphNode:
    return add_node(node_id, position)


def shader(
    node_id: str,
    stage: ShaderStage = ShaderStage.FRAGMENT,
    *,
    position: Position = ORIGIN,
    uniforms: Sequence[Mapping[str, Any]] | None = None,
    inputs: Sequence[NodeInput] = (),
) -> GraphNode:
    config: dict[str, Any] = {"version": 2, "strategies": []}
    if uniforms is not None:
        config["uniforms"] = [dict(u) for u in uniforms]
    node = source_node(node_id, node_id, position, config, "void main() {}", stage)
    if inputs:
        node = replace(node, inputs=tuple(inputs))
    return node


def output(node_id: str = "output", stage: ShaderStage = ShaderStage.FRAGMENT, position: Position = ORIGIN) -> GraphNode:
    return output_node(node_id, "Output", position, stage)


def edge(edge_id: str, from_node: str, to_node: str, input: str, output: str = "out", type: str | None = None) -> GraphEdge:
    return make_edge(edge_id, from_node, to_node, output, input, type)


def link(edge_id: str, vertex_id: str, fragment_id: str) -> GraphEdge:
    return link_from_vert_to_frag(edge_id, vertex_id, fragment_id)


def build(nodes: Sequence[GraphNode], edges: Sequence[GraphEdge] = ()) -> Graph:
    return Graph(nodes=tuple(nodes), edges=tuple(edges))


def edge_by_id(graph: Graph, edge_id: str) -> GraphEdge:
    return next(e for e in graph.edges if e.id == edge_id)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def shared_feeder_graph() -> Graph:
    """A data node feeding two operators, which feed a shader into Output.

    number --a--> add1 --x--> frag --color--> output
       \\--a--> add2 --y--/

    The number node has two consumers, so it uses two output handles.
    """
    return build(
        [data("num"), binary("add1"), binary("add2"), shader("frag"), output()],
        [
            edge("e1", "num", "add1", "a", output="out"),
            edge("e2", "num", "add2", "a", output="out2"),
            edge("e3", "add1", "frag", "x"),
            edge("e4", "add2", "frag", "y"),
            edge("e5", "frag", "output", "color", type=ShaderStage.FRAGMENT),
        ],
    )


# =============================================================================
# Hypothesis Configuration
# =============================================================================

# CI profile: Fast tests for continuous integration
settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

# Nightly profile: Thorough testing for scheduled runs
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Debug profile: Minimal examples with verbose output for debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Load profile from environment, default to "ci"
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))

# tests/unit/core/graph/test_uniforms.py
"""Tests for expanding uniform declarations into data nodes."""

from __future__ import annotations

from structlog.testing import capture_logs

from shadergraph.core.config import UniformLayoutSettings
from shadergraph.core.graph.models import Position
from shadergraph.core.graph.uniforms import (
    expand_node_uniforms,
    expand_uniform_data_nodes,
    parse_uniforms,
    uniform_input_id,
)
from tests.conftest import build, data, edge, shader

SPEED = {"name": "speed", "type": "number", "value": "1.0", "range": [0, 5], "stepper": 0.5}
TINT = {"name": "tint", "type": "rgb", "value": ["1", "0", "0"]}


class TestExpandUniformDataNodes:
    def test_number_uniform_adds_one_node_and_edge(self) -> None:
        node = shader("N", position=Position(100, 100), uniforms=[SPEED])
        graph = build([node])

        result = expand_uniform_data_nodes(graph)

        assert result.node_count == 2
        created = result.nodes[1]
        assert created.type == "number"
        assert created.name == "speed"
        assert created.value == "1.0"
        assert created.position == Position(-150, -100)
        assert [(e.from_node, e.to_node, e.input, e.output) for e in result.edges] == [(created.id, "N", "uniform_speed", "out")]

    def test_carries_range_and_stepper(self) -> None:
        graph = build([shader("N", uniforms=[SPEED])])
        created = expand_uniform_data_nodes(graph).nodes[1]

        assert created.config["range"] == (0, 5)
        assert created.config["stepper"] == 0.5

    def test_staggers_successive_uniforms(self) -> None:
        graph = build([shader("N", position=Position(0, 0), uniforms=[SPEED, TINT])])

        result = expand_uniform_data_nodes(graph)

        assert [n.position for n in result.nodes[1:]] == [Position(-250, -200), Position(-250, -100)]
        assert result.nodes[2].type == "rgb"

    def test_is_idempotent(self) -> None:
        graph = build([shader("N", uniforms=[SPEED, TINT])])

        once = expand_uniform_data_nodes(graph)
        twice = expand_uniform_data_nodes(once)

        assert twice is once

    def test_skips_already_connected_inputs_but_keeps_slot(self) -> None:
        graph = build(
            [data("existing"), shader("N", uniforms=[SPEED, TINT])],
            [edge("e1", "existing", "N", uniform_input_id("speed"))],
        )

        result = expand_uniform_data_nodes(graph)

        assert result.node_count == 3
        assert result.nodes[2].name == "tint"
        assert result.nodes[2].position == Position(-250, -100)

    def test_custom_layout(self) -> None:
        layout = UniformLayoutSettings(offset_x=-10, offset_y=0, stagger_y=5)
        graph = build([shader("N", uniforms=[SPEED, TINT])])

        result = expand_uniform_data_nodes(graph, layout)

        assert [n.position for n in result.nodes[1:]] == [Position(-10, 0), Position(-10, 5)]

    def test_no_uniforms_returns_same_graph(self) -> None:
        graph = build([shader("N"), data("d")])
        assert expand_uniform_data_nodes(graph) is graph

    def test_unbuildable_value_is_logged_and_skipped(self) -> None:
        bad_vector = {"name": "v", "type": "vector3", "value": ["1"]}
        graph = build([shader("N", uniforms=[bad_vector, SPEED])])

        with capture_logs() as logs:
            result = expand_uniform_data_nodes(graph)

        assert [n.name for n in result.nodes[1:]] == ["speed"]
        assert any(log["event"] == "uniform_expansion_failed" for log in logs)


class TestParseUniforms:
    def test_invalid_declarations_logged_and_dropped(self) -> None:
        node = shader("N", uniforms=[{"name": "x", "type": "not-a-type"}, SPEED, {"type": "number"}])

        with capture_logs() as logs:
            declarations = parse_uniforms(node)

        assert [d.name for d in declarations] == ["speed"]
        assert [log["event"] for log in logs] == ["uniform_declaration_invalid", "uniform_declaration_invalid"]
        assert logs[0]["index"] == 0

    def test_extra_keys_preserved(self) -> None:
        node = shader("N", uniforms=[{**SPEED, "description": "how fast"}])
        assert parse_uniforms(node)[0].model_extra == {"description": "how fast"}


def test_expand_node_uniforms_respects_existing_edges() -> None:
    node = shader("N", uniforms=[SPEED])
    existing = (edge("e1", "d", "N", "uniform_speed"),)

    nodes, edges = expand_node_uniforms(node, existing)

    assert nodes == []
    assert edges == []

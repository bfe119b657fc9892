# src/shadergraph/core/flow/models.py
"""Types for the flow projection: the positioned, UI-facing graph mirror.

The projection holds display state the canonical graph does not (handle
connection markers, active flags, categories, selection, dragged
positions). It never feeds the compiler.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

from shadergraph.contracts.enums import EdgeLink, ShaderStage
from shadergraph.core.graph.models import Position

_EMPTY_CONFIG: Mapping[str, Any] = MappingProxyType({})


@dataclass(frozen=True, slots=True)
class InputHandle:
    id: str
    name: str
    category: str | None = None
    data_type: str | None = None
    baked: bool = False
    bakeable: bool = False
    valid_target: bool = False
    connected: bool = False
    accepts: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class OutputHandle:
    id: str
    name: str
    connected: bool = False


@dataclass(frozen=True, slots=True)
class FlowNodeData:
    """Display data of a projected node.

    Source-kind nodes use stage/bi_stage/active; data-kind nodes use
    type/value/config. category is set to "code" for nodes the compiler
    reported as data nodes.
    """

    label: str
    is_source: bool
    inputs: tuple[InputHandle, ...] = ()
    outputs: tuple[OutputHandle, ...] = ()
    stage: ShaderStage | None = None
    bi_stage: bool = False
    active: bool = False
    type: str | None = None
    value: Any = None
    config: Mapping[str, Any] = field(default=_EMPTY_CONFIG)
    category: str | None = None


@dataclass(frozen=True, slots=True)
class FlowNode:
    id: str
    type: str
    position: Position
    data: FlowNodeData
    selected: bool = False


@dataclass(frozen=True, slots=True)
class FlowEdge:
    """A projected edge. type mirrors the canonical edge type; stage is
    the stage of the (possibly bi-stage) source node."""

    id: str
    source: str
    target: str
    source_handle: str
    target_handle: str
    type: str | None = None
    stage: ShaderStage | None = None
    focusable: bool = True

    @property
    def is_link(self) -> bool:
        return self.type == EdgeLink.NEXT_STAGE


@dataclass(frozen=True, slots=True)
class FlowElements:
    nodes: tuple[FlowNode, ...] = ()
    edges: tuple[FlowEdge, ...] = ()

    def nodes_by_id(self) -> dict[str, FlowNode]:
        return {node.id: node for node in self.nodes}

    def get_node(self, node_id: str) -> FlowNode | None:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def with_nodes(self, nodes: Iterable[FlowNode]) -> FlowElements:
        return replace(self, nodes=tuple(nodes))

    def with_edges(self, edges: Iterable[FlowEdge]) -> FlowElements:
        return replace(self, edges=tuple(edges))


EMPTY_FLOW = FlowElements()

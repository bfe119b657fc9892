# src/shadergraph/engine/session.py
"""EditorSession: one canonical graph, its projection, and its compiler.

The session is what a host editor drives. Each UI action is a method that
replaces the canonical graph through the pure graph operations, patches
the flow projection from the change, and marks the compile scheduler
dirty when compiled output is affected. The projection is never edited
independently, except for UI-only state (dragged positions), which is
committed back before the next structural change.
"""

from __future__ import annotations

from collections.abc import Collection, Mapping
from dataclasses import replace
from types import MappingProxyType
from typing import Any

import structlog

from shadergraph.contracts.enums import NodeType
from shadergraph.contracts.events import CompileCompleted, CompileFailed
from shadergraph.core.config import DEFAULT_SETTINGS, EditorSettings
from shadergraph.core.events import EventBus
from shadergraph.core.flow.models import FlowElements
from shadergraph.core.flow.projection import (
    apply_compile_result,
    graph_to_flow_graph,
    sync_flow_elements,
    update_graph_from_flow_graph,
)
from shadergraph.core.graph.factory import PendingEdge, create_graph_node
from shadergraph.core.graph.integrity import FixResult, GraphIssue, IntegrityReport, attempt_fix, check_integrity, validate_graph
from shadergraph.core.graph.models import EMPTY_GRAPH, Graph, GraphEdge, Position
from shadergraph.core.graph.mutations import add_edge, add_elements, remove_edges, remove_nodes, update_node, update_node_input
from shadergraph.core.graph.nodes import make_edge
from shadergraph.core.graph.splice import SpliceResult, import_graph, replace_node_with_graph
from shadergraph.core.graph.traversal import find_node_and_dependencies, find_node_tree
from shadergraph.core.graph.uniforms import expand_uniform_data_nodes
from shadergraph.core.identifiers import make_id
from shadergraph.engine.scheduler import CompileResult, CompileScheduler, CompileSource

logger = structlog.get_logger(__name__)


class EditorSession:
    """Facade over the canonical graph for one open shader.

    Args:
        compile_source: External compiler coroutine
        graph: Initial (stored) graph; its uniforms are expanded on load
        settings: Editor settings
        engine: Opaque engine handle passed to the compiler
        ctx: Opaque engine context passed to the compiler
        event_bus: Bus for compile lifecycle events; a private one is
            created when omitted
    """

    def __init__(
        self,
        compile_source: CompileSource,
        graph: Graph = EMPTY_GRAPH,
        *,
        settings: EditorSettings = DEFAULT_SETTINGS,
        engine: Any = None,
        ctx: Any = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self._settings = settings
        self._graph = expand_uniform_data_nodes(graph, settings.uniforms)
        self._flow = graph_to_flow_graph(self._graph)
        self._compile_result: CompileResult | None = None
        self._compile_error: str | None = None

        self._events = event_bus if event_bus is not None else EventBus()
        self._events.subscribe(CompileCompleted, self._on_compile_completed)
        self._events.subscribe(CompileFailed, self._on_compile_failed)
        self._scheduler = CompileScheduler(
            compile_source,
            lambda: self._graph,
            engine=engine,
            ctx=ctx,
            event_bus=self._events,
        )
        self._scheduler.mark_dirty("session_opened")

    # === State ===

    @property
    def graph(self) -> Graph:
        return self._graph

    @property
    def flow(self) -> FlowElements:
        return self._flow

    @property
    def settings(self) -> EditorSettings:
        return self._settings

    @property
    def events(self) -> EventBus:
        return self._events

    @property
    def scheduler(self) -> CompileScheduler:
        return self._scheduler

    @property
    def needs_compile(self) -> bool:
        return self._scheduler.needs_compile

    @property
    def compiling(self) -> bool:
        return self._scheduler.compiling

    @property
    def compile_result(self) -> CompileResult | None:
        return self._compile_result

    @property
    def compile_error(self) -> str | None:
        return self._compile_error

    def close(self) -> None:
        """Detach from the event bus and drop any pending compile request."""
        self._scheduler.cancel_pending_request()
        self._events.unsubscribe(CompileCompleted, self._on_compile_completed)
        self._events.unsubscribe(CompileFailed, self._on_compile_failed)

    # === Internals ===

    def _base(self) -> Graph:
        """The canonical graph with dragged positions committed."""
        self._graph = update_graph_from_flow_graph(self._graph, self._flow)
        return self._graph

    def _apply(self, base: Graph, graph: Graph, reason: str | None, *, debounced: bool = False) -> bool:
        if graph is base:
            return False
        self._graph = graph
        self._flow = sync_flow_elements(self._flow, base, graph)
        if reason is None:
            return True
        if debounced:
            self._scheduler.request_compile(reason, self._settings.compile.debounce_ms / 1000)
        else:
            self._scheduler.mark_dirty(reason)
        return True

    # === Edges ===

    def connect(self, source_id: str, source_handle: str, target_id: str, target_handle: str) -> GraphEdge:
        """Connect an output handle to an input handle.

        The edge type is the source's stage (resolved through the projection
        for bi-stage nodes), else the source's node type. A bakeable target
        input is baked when fed by source code and unbaked otherwise.

        Raises:
            NodeNotFoundError: If either node does not exist
        """
        base = self._base()
        source = base.find_node(source_id)
        target = base.find_node(target_id)

        stage = source.stage
        if stage is None:
            flow_source = self._flow.get_node(source_id)
            stage = flow_source.data.stage if flow_source is not None else None
        edge = make_edge(make_id(), source_id, target_id, source_handle, target_handle, stage or source.type)

        graph = add_edge(base, edge, self._settings.graph)
        target_input = target.find_input(target_handle)
        if target_input is not None and target_input.bakeable:
            graph = update_node_input(graph, target_id, target_handle, baked=source.type == NodeType.SOURCE)
        self._apply(base, graph, "edge_added")

        # Collapsing may have moved the edge to another letter
        return next(e for e in self._graph.edges if e.id == edge.id)

    def remove_edges(self, edge_ids: Collection[str]) -> None:
        base = self._base()
        self._apply(base, remove_edges(base, edge_ids, self._settings.graph), "edges_removed")

    # === Nodes ===

    def add_node(
        self,
        node_type: str,
        name: str,
        position: Position,
        new_edge: PendingEdge | None = None,
        default_value: Any = None,
    ) -> frozenset[str]:
        """Create node(s) of a type, with uniforms expanded.

        Returns:
            Ids of the nodes the action created (not counting uniform nodes)
        """
        base = self._base()
        original_ids, created = create_graph_node(node_type, name, position, new_edge, default_value, settings=self._settings)

        pending: GraphEdge | None = None
        if new_edge is not None:
            pending = next(
                (e for e in created.edges if e.to_node == new_edge.to_node and e.input == new_edge.input and e.from_node in original_ids),
                None,
            )
        graph = add_elements(base, created.nodes, (e for e in created.edges if e is not pending), self._settings.graph)
        if pending is not None:
            graph = add_edge(graph, pending, self._settings.graph)
        self._apply(base, graph, "node_added")
        logger.debug("node_added", node_type=node_type, node_ids=sorted(original_ids), total_created=created.node_count)
        return original_ids

    def remove_nodes(self, node_ids: Collection[str]) -> None:
        base = self._base()
        self._apply(base, remove_nodes(base, node_ids, self._settings.graph), "nodes_removed")

    def delete_node_and_dependencies(self, node_id: str) -> frozenset[str]:
        """Delete a node, its stage partner, and anything that only feeds them.

        Returns:
            Ids of the deleted nodes; empty when the node does not exist
        """
        base = self._base()
        node = base.get_node(node_id)
        if node is None:
            logger.warning("delete_target_missing", node_id=node_id)
            return frozenset()
        closure = find_node_and_dependencies(base, node)
        self._apply(base, remove_nodes(base, closure.nodes_by_id, self._settings.graph), "nodes_removed")
        return closure.nodes_by_id

    def delete_node_tree(self, node_id: str) -> frozenset[str]:
        """Delete a node, its stage partner, and everything feeding them."""
        base = self._base()
        node = base.get_node(node_id)
        if node is None:
            logger.warning("delete_target_missing", node_id=node_id)
            return frozenset()
        closure = find_node_tree(base, node)
        self._apply(base, remove_nodes(base, closure.nodes_by_id, self._settings.graph), "nodes_removed")
        return closure.nodes_by_id

    def set_node_value(self, node_id: str, value: Any) -> None:
        """Change a node's value.

        Data nodes (and nodes the compiler bound as uniforms) are updated
        live by the renderer, so their value changes do not recompile.
        Other value changes request a debounced compile, so typing into a
        source node compiles once the typing pauses.
        """
        base = self._base()
        node = base.get_node(node_id)
        if node is None:
            logger.warning("set_value_target_missing", node_id=node_id)
            return
        bound = self._compile_result is not None and node_id in self._compile_result.output.data_nodes
        reason = None if node.is_data or bound else "node_value_changed"
        self._apply(base, update_node(base, node_id, value=value), reason, debounced=True)

    def update_node_config(self, node_id: str, config: Mapping[str, Any]) -> None:
        """Merge keys into a node's config; newly declared uniforms are expanded."""
        base = self._base()
        node = base.get_node(node_id)
        if node is None:
            logger.warning("update_config_target_missing", node_id=node_id)
            return
        graph = update_node(base, node_id, config=MappingProxyType({**node.config, **config}))
        graph = expand_uniform_data_nodes(graph, self._settings.uniforms)
        self._apply(base, graph, "node_config_changed")

    def set_input_baked(self, node_id: str, input_id: str, baked: bool) -> None:
        base = self._base()
        self._apply(base, update_node_input(base, node_id, input_id, baked=baked), "input_baked_toggled", debounced=True)

    def move_node(self, node_id: str, position: Position) -> None:
        """UI drag: moves the projected node only, until positions are committed."""
        node = self._flow.get_node(node_id)
        if node is None:
            logger.warning("move_target_missing", node_id=node_id)
            return
        self._flow = self._flow.with_nodes(replace(n, position=position) if n.id == node_id else n for n in self._flow.nodes)

    def commit_positions(self) -> Graph:
        return self._base()

    # === Splicing ===

    def replace_node(self, node_id: str, incoming: Graph) -> SpliceResult:
        base = self._base()
        result = replace_node_with_graph(base, node_id, incoming, self._settings)
        self._apply(base, result.graph, "node_replaced")
        return result

    def import_graph(self, incoming: Graph, position: Position) -> SpliceResult:
        base = self._base()
        result = import_graph(base, incoming, position, self._settings)
        self._apply(base, result.graph, "graph_imported")
        return result

    # === Integrity ===

    def validate(self) -> list[GraphIssue]:
        return validate_graph(self._graph, self._settings.graph)

    def check_integrity(self) -> IntegrityReport:
        report = check_integrity(self._graph, self._flow)
        if not report.ok:
            logger.warning("integrity_check_failed", problems=report.summary())
        return report

    def attempt_fix(self) -> FixResult:
        """Prune dangling edges and rebuild the projection from the result."""
        base = self._base()
        result = attempt_fix(base, self._settings.graph)
        self._graph = result.graph
        self._flow = sync_flow_elements(self._flow, base, result.graph)
        if result.graph is not base:
            self._scheduler.mark_dirty("graph_fixed")
        return result

    # === Compiling ===

    def maybe_compile(self) -> bool:
        """Start a compile if one is needed and none is running."""
        return self._scheduler.maybe_compile() is not None

    async def wait_for_compile(self) -> CompileResult | None:
        return await self._scheduler.wait_for_compile()

    def _on_compile_completed(self, event: CompileCompleted) -> None:
        if event.source != self._scheduler.name:
            return
        result: CompileResult = event.result
        self._compile_result = result
        self._compile_error = None

        # Parsed inputs flow back only onto nodes unchanged since the snapshot
        snapshot = result.graph.nodes_by_id()
        compiled = result.compiled_graph.nodes_by_id()
        base = self._graph
        graph = base.with_nodes(
            replace(node, inputs=compiled[node.id].inputs)
            if snapshot.get(node.id) is node and node.id in compiled and compiled[node.id].inputs != node.inputs
            else node
            for node in base.nodes
        )
        if any(a is not b for a, b in zip(graph.nodes, base.nodes, strict=True)):
            self._apply(base, graph, None)
        self._flow = apply_compile_result(
            self._flow,
            self._graph,
            result.output.active_node_ids,
            frozenset(result.output.data_nodes),
        )

    def _on_compile_failed(self, event: CompileFailed) -> None:
        if event.source == self._scheduler.name:
            self._compile_error = event.message
